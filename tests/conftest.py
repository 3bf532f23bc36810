import os

# Configure the app for tests before anything imports settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["EMAIL_HOST"] = ""
os.environ["EXPOSE_OTP_IN_RESPONSE"] = "true"

import random
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from identity_api import models  # noqa: F401
from identity_api.database import Base, SessionLocal, engine
from identity_api.main import app
from identity_api.models.user import User
from identity_api.services.otp_service import OTPService, get_otp_service
from identity_api.utils.hash import hash_password


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def service(clock):
    return OTPService(rng=random.Random(1234), clock=clock)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_otp_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture
def make_user(db, clock):
    def _make_user(email="jane@example.com", mobile="9876543210", password="secret-pass", verified=False):
        user = User(
            name="Jane Doe",
            username="jane_doe",
            email=email,
            mobile_no=mobile,
            password_hash=hash_password(password),
            email_verified_at=clock() if verified else None,
            mobile_verified_at=clock() if verified else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user
