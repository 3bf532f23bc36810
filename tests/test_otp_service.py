from datetime import timedelta

import pytest

from identity_api.errors import (
    CodeExpired,
    EmailCodeMismatch,
    InternalError,
    MobileCodeMismatch,
    NotFound,
    Unauthorized,
    UnverifiedAccount,
    ValidationFailed,
)
from identity_api.models.password_reset_token import PasswordResetToken
from identity_api.models.user import User
from identity_api.models.verification_code import VerificationCode
from identity_api.schemas.auth import RegisterRequest
from identity_api.services import verification_store
from identity_api.services.otp_service import Channel
from identity_api.utils.hash import verify_password


def register(service, db, email="jane@example.com", mobile="9876543210"):
    return service.register(db, RegisterRequest(
        name="Jane Doe",
        email=email,
        mobile=mobile,
        password="secret-pass",
        confirm_password="secret-pass",
    ))


def test_register_issues_both_codes(service, db, clock):
    result = register(service, db)

    assert len(result.data["mobile_otp"]) == 6 and result.data["mobile_otp"].isdigit()
    assert len(result.data["email_otp"]) == 6 and result.data["email_otp"].isdigit()
    assert result.data["expire_at"] == (clock() + timedelta(minutes=5)).isoformat()

    user = db.query(User).filter(User.mobile_no == "9876543210").one()
    assert user.username == "jane_doe"
    assert user.email_verified_at is None and user.mobile_verified_at is None

    record = verification_store.get_record(db, user.id)
    assert record.mobile_otp == result.data["mobile_otp"]
    assert record.email_otp == result.data["email_otp"]

    notification = result.notifications[0]
    assert notification.to_email == "jane@example.com"
    assert notification.mobile_otp == result.data["mobile_otp"]


def test_register_rejects_duplicate_email(service, db):
    register(service, db)
    with pytest.raises(ValidationFailed):
        register(service, db, mobile="9999999999")


def test_register_rolls_back_when_issuance_fails(service, db, monkeypatch):
    def broken_generator(*args, **kwargs):
        raise RuntimeError("rng unavailable")

    monkeypatch.setattr("identity_api.services.otp_service.generate_otp", broken_generator)

    with pytest.raises(InternalError):
        register(service, db)

    assert db.query(User).count() == 0
    assert db.query(VerificationCode).count() == 0


def test_verify_registration_marks_user_verified_and_consumes_record(service, db):
    codes = register(service, db).data

    result = service.verify_registration(db, "9876543210", "jane@example.com", codes["mobile_otp"], codes["email_otp"])

    assert result.data["token_type"] == "bearer"
    assert result.data["access_token"]
    assert result.data["user"]["email_verified_at"] is not None
    assert result.data["user"]["mobile_verified_at"] is not None
    assert db.query(VerificationCode).count() == 0

    with pytest.raises(NotFound):
        service.verify_registration(db, "9876543210", "jane@example.com", codes["mobile_otp"], codes["email_otp"])


def test_verify_registration_requires_matching_email(service, db):
    codes = register(service, db).data
    with pytest.raises(NotFound):
        service.verify_registration(db, "9876543210", "other@example.com", codes["mobile_otp"], codes["email_otp"])


def test_expired_codes_are_rejected_and_record_kept(service, db, clock):
    codes = register(service, db).data
    clock.advance(minutes=5, seconds=1)

    with pytest.raises(CodeExpired):
        service.verify_registration(db, "9876543210", "jane@example.com", codes["mobile_otp"], codes["email_otp"])

    record = db.query(VerificationCode).one()
    assert record.mobile_otp == codes["mobile_otp"]
    assert record.email_otp == codes["email_otp"]


def test_codes_are_valid_up_to_the_expiry_instant(service, db, clock):
    codes = register(service, db).data
    clock.advance(minutes=5)

    result = service.verify_registration(db, "9876543210", "jane@example.com", codes["mobile_otp"], codes["email_otp"])
    assert result.data["access_token"]


def test_mobile_mismatch_is_reported_before_email_mismatch(service, db):
    register(service, db)
    with pytest.raises(MobileCodeMismatch):
        service.verify_registration(db, "9876543210", "jane@example.com", "wrong1", "wrong2")


def test_email_mismatch_after_correct_mobile_code(service, db):
    codes = register(service, db).data
    with pytest.raises(EmailCodeMismatch):
        service.verify_registration(db, "9876543210", "jane@example.com", codes["mobile_otp"], "wrong")

    # failed attempt leaves the record usable
    result = service.verify_registration(db, "9876543210", "jane@example.com", codes["mobile_otp"], codes["email_otp"])
    assert result.data["access_token"]


def test_resend_invalidates_previous_codes(service, db):
    first = register(service, db).data
    second = service.resend_registration_otp(db, "9876543210").data

    assert db.query(VerificationCode).count() == 1
    if first["mobile_otp"] != second["mobile_otp"]:
        with pytest.raises(MobileCodeMismatch):
            service.verify_registration(db, "9876543210", "jane@example.com", first["mobile_otp"], first["email_otp"])

    result = service.verify_registration(db, "9876543210", "jane@example.com", second["mobile_otp"], second["email_otp"])
    assert result.data["access_token"]


def test_resend_message_masks_destinations(service, db):
    register(service, db)
    result = service.resend_registration_otp(db, "9876543210")
    assert "98*****210" in result.message
    assert "ja*****ample.com" in result.message


def test_login_otp_requires_verified_account(service, db, make_user):
    make_user(verified=False)

    with pytest.raises(UnverifiedAccount):
        service.send_login_otp(db, "9876543210")
    assert db.query(VerificationCode).count() == 0


def test_login_otp_flow(service, db, make_user):
    make_user(verified=True)

    issued = service.send_login_otp(db, "9876543210").data
    assert "email_otp" not in issued
    assert verification_store.get_record(db, db.query(User).one().id).email_otp is None

    result = service.verify_login_otp(db, "9876543210", issued["mobile_otp"])
    assert result.data["access_token"]
    assert db.query(VerificationCode).count() == 0


def test_login_otp_unknown_mobile(service, db):
    with pytest.raises(NotFound):
        service.send_login_otp(db, "1234567890")


def test_login_with_password(service, db, make_user):
    make_user(verified=True)

    with pytest.raises(Unauthorized):
        service.login_with_password(db, "jane@example.com", "wrong-password")

    result = service.login_with_password(db, "Jane@Example.com", "secret-pass")
    assert result.data["user"]["email"] == "jane@example.com"


def test_login_with_password_requires_verified_account(service, db, make_user):
    make_user(verified=False)
    with pytest.raises(UnverifiedAccount):
        service.login_with_password(db, "jane@example.com", "secret-pass")


def test_forgot_password_exchange_token_is_single_use(service, db, make_user):
    make_user(verified=True)
    codes = service.forgot_password(db, "9876543210").data

    temp_token = service.verify_forgot_password(db, "9876543210", codes["mobile_otp"], codes["email_otp"]).data["temp_token"]
    assert db.query(PasswordResetToken).count() == 1

    service.update_password(db, temp_token, "brand-new-pass")
    user = db.query(User).one()
    db.refresh(user)
    assert verify_password("brand-new-pass", user.password_hash)
    assert db.query(PasswordResetToken).count() == 0

    with pytest.raises(Unauthorized):
        service.update_password(db, temp_token, "another-pass")


def test_exchange_token_expires(service, db, make_user, clock):
    make_user(verified=True)
    codes = service.forgot_password(db, "9876543210").data
    temp_token = service.verify_forgot_password(db, "9876543210", codes["mobile_otp"], codes["email_otp"]).data["temp_token"]

    clock.advance(minutes=16)
    with pytest.raises(Unauthorized):
        service.update_password(db, temp_token, "brand-new-pass")


def test_new_exchange_token_replaces_previous_one(service, db, make_user):
    make_user(verified=True)

    codes = service.forgot_password(db, "9876543210").data
    first = service.verify_forgot_password(db, "9876543210", codes["mobile_otp"], codes["email_otp"]).data["temp_token"]
    codes = service.forgot_password(db, "9876543210").data
    second = service.verify_forgot_password(db, "9876543210", codes["mobile_otp"], codes["email_otp"]).data["temp_token"]

    assert db.query(PasswordResetToken).count() == 1
    with pytest.raises(Unauthorized):
        service.update_password(db, first, "brand-new-pass")
    service.update_password(db, second, "brand-new-pass")


def test_forgot_password_verification_needs_email_code(service, db, make_user):
    make_user(verified=True)
    login_codes = service.send_login_otp(db, "9876543210").data

    # a mobile-only record cannot satisfy a flow that also requires the email code
    with pytest.raises(EmailCodeMismatch):
        service.verify_forgot_password(db, "9876543210", login_codes["mobile_otp"], "123456")


def test_channel_otp_stamps_only_that_channel(service, db, make_user):
    user = make_user(verified=False)

    issued = service.send_channel_otp(db, user, Channel.EMAIL).data
    assert "mobile_otp" not in issued

    result = service.verify_channel_otp(db, user, Channel.EMAIL, issued["email_otp"])
    assert result.data["user"]["email_verified_at"] is not None
    assert result.data["user"]["mobile_verified_at"] is None


def test_channel_otp_rejects_both(service, db, make_user):
    user = make_user()
    with pytest.raises(ValidationFailed):
        service.send_channel_otp(db, user, Channel.BOTH)
