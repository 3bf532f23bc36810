# identity_api/models/user.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from identity_api.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    username = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    mobile_no = Column(String(10), unique=True, nullable=False, index=True)
    role = Column(String, nullable=False, default="user")
    password_hash = Column(String, nullable=False)

    email_verified_at = Column(DateTime, nullable=True)
    mobile_verified_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    verification_code = relationship(
        "VerificationCode",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def is_fully_verified(self) -> bool:
        return self.email_verified_at is not None and self.mobile_verified_at is not None

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
