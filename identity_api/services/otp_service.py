# identity_api/services/otp_service.py
"""
OTP-gated verification workflow.

Every flow follows the same shape: lock the user row, issue or check codes
against the single `VerificationCode` row for that user, and commit the whole
thing as one unit. Issued codes are handed back together with an
`OTPNotification`; the caller is expected to dispatch it only after the flow
returned, i.e. after the commit.

Verification state per user:

    NO_CODE -> CODE_ISSUED -> VERIFIED (record deleted)
                           -> EXPIRED / INVALID_ATTEMPT (record kept, retry or resend)

Reissuing always overwrites the outstanding record, even if it has not
expired yet.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional
import logging

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from identity_api.config import settings
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
from identity_api.models.revoked_token import RevokedToken
from identity_api.models.user import User
from identity_api.schemas.auth import RegisterRequest
from identity_api.schemas.user import UserOut
from identity_api.services import verification_store
from identity_api.services.notification import OTPNotification
from identity_api.utils.hash import hash_password, verify_password
from identity_api.utils.otp import generate_otp, mask
from identity_api.utils.token import (
    generate_exchange_token,
    hash_exchange_token,
    issue_session_token,
)

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    MOBILE = "mobile"
    EMAIL = "email"
    BOTH = "both"

    @property
    def needs_mobile(self) -> bool:
        return self in (Channel.MOBILE, Channel.BOTH)

    @property
    def needs_email(self) -> bool:
        return self in (Channel.EMAIL, Channel.BOTH)


@dataclass
class IssuedCodes:
    expire_at: datetime
    mobile_otp: Optional[str] = None
    email_otp: Optional[str] = None

    def as_dict(self, expose_codes: bool = True) -> dict:
        data = {}
        if expose_codes:
            if self.mobile_otp is not None:
                data["mobile_otp"] = self.mobile_otp
            if self.email_otp is not None:
                data["email_otp"] = self.email_otp
        data["expire_at"] = self.expire_at.isoformat()
        return data


@dataclass
class FlowResult:
    message: str
    data: Optional[dict] = None
    notifications: list = field(default_factory=list)


def serialize_user(user: User) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json")


def slugify_username(name: str) -> str:
    return "_".join(part for part in "".join(
        ch.lower() if ch.isalnum() else " " for ch in name
    ).split())


@contextmanager
def atomic(db: Session, action: str):
    """Commit on success, roll back on any error and hide non-HTTP failures."""
    try:
        yield
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"{action} failed")
        raise InternalError()


class OTPService:
    def __init__(
        self,
        rng=None,
        clock: Optional[Callable[[], datetime]] = None,
        otp_length: Optional[int] = None,
        expire_minutes: Optional[int] = None,
        reset_token_minutes: Optional[int] = None,
    ):
        self.rng = rng
        self.clock = clock or datetime.utcnow
        self.otp_length = otp_length or settings.OTP_LENGTH
        self.expire_minutes = expire_minutes or settings.OTP_EXPIRE_MINUTES
        self.reset_token_minutes = reset_token_minutes or settings.RESET_TOKEN_EXPIRE_MINUTES

    # -------------------- LOOKUPS --------------------
    @staticmethod
    def _lock_user(db: Session, user: User) -> User:
        # Serialises issue/verify for one user; a no-op on SQLite
        return db.query(User).filter(User.id == user.id).with_for_update().one()

    @staticmethod
    def _user_by_mobile(db: Session, mobile: str) -> User:
        user = db.query(User).filter(User.mobile_no == mobile).first()
        if not user:
            raise NotFound("The selected mobile is invalid.")
        return user

    def _expires_in_text(self) -> str:
        return f"OTPs expire within {self.expire_minutes} min."

    # -------------------- ISSUE --------------------
    def issue_codes(self, db: Session, user: User, channel: Channel, purpose: str):
        """Generate codes for `channel`, replace the user's record and build the notification."""
        user = self._lock_user(db, user)

        issued = IssuedCodes(
            expire_at=self.clock() + timedelta(minutes=self.expire_minutes),
            mobile_otp=generate_otp(self.otp_length, self.rng) if channel.needs_mobile else None,
            email_otp=generate_otp(self.otp_length, self.rng) if channel.needs_email else None,
        )

        verification_store.upsert_record(
            db,
            user_id=user.id,
            mobile_otp=issued.mobile_otp,
            email_otp=issued.email_otp,
            expire_at=issued.expire_at,
        )
        logger.info(f"Issued {channel.value} OTP for user {user.id} ({purpose}), expires {issued.expire_at}")
        if settings.DEBUG:
            logger.info(f"DEBUG: OTPs for {user.id} mobile={issued.mobile_otp} email={issued.email_otp}")

        notification = OTPNotification(
            to_email=user.email,
            name=user.name,
            expire_at=issued.expire_at,
            purpose=purpose,
            mobile_otp=issued.mobile_otp,
            email_otp=issued.email_otp,
        )
        return issued, notification

    # -------------------- VERIFY --------------------
    def verify_codes(
        self,
        db: Session,
        user: User,
        channel: Channel,
        mobile_otp: Optional[str] = None,
        email_otp: Optional[str] = None,
    ) -> User:
        """
        Check submitted codes against the outstanding record.

        Order matters and stops at the first failure: existence, expiry,
        mobile code, email code. Failures leave the record in place; success
        deletes it and stamps the verified timestamp of each checked channel.
        """
        user = self._lock_user(db, user)
        record = verification_store.get_record(db, user.id)
        now = self.clock()

        if record is None:
            logger.warning(f"No outstanding OTP for user {user.id}")
            raise NotFound("Some error occurred. Please resend OTP.")
        if record.is_expired(now):
            logger.warning(f"Expired OTP submitted for user {user.id}")
            raise CodeExpired()
        if channel.needs_mobile and (record.mobile_otp is None or mobile_otp != record.mobile_otp):
            logger.warning(f"Mobile OTP mismatch for user {user.id}")
            raise MobileCodeMismatch()
        if channel.needs_email and (record.email_otp is None or email_otp != record.email_otp):
            logger.warning(f"Email OTP mismatch for user {user.id}")
            raise EmailCodeMismatch()

        verification_store.delete_record(db, record)

        if channel.needs_mobile and user.mobile_verified_at is None:
            user.mobile_verified_at = now
        if channel.needs_email and user.email_verified_at is None:
            user.email_verified_at = now
        db.flush()

        logger.info(f"OTP verified for user {user.id} ({channel.value})")
        return user

    # -------------------- REGISTRATION --------------------
    def register(self, db: Session, data: RegisterRequest) -> FlowResult:
        email = data.email.strip().lower()

        with atomic(db, "Registration"):
            if db.query(User).filter(func.lower(User.email) == email).first():
                raise ValidationFailed("The email has already been taken.")
            if db.query(User).filter(User.mobile_no == data.mobile).first():
                raise ValidationFailed("The mobile has already been taken.")

            user = User(
                name=data.name,
                username=slugify_username(data.name),
                email=email,
                mobile_no=data.mobile,
                role="user",
                password_hash=hash_password(data.password),
            )
            db.add(user)
            try:
                db.flush()
            except IntegrityError:
                raise ValidationFailed("The email or mobile has already been taken.")

            issued, notification = self.issue_codes(db, user, Channel.BOTH, "registration")

        logger.info(f"User registered: {user.id}")
        return FlowResult(
            message=f"We have sent OTP to your mobile number & email. {self._expires_in_text()}",
            data=issued.as_dict(settings.EXPOSE_OTP_IN_RESPONSE),
            notifications=[notification],
        )

    def resend_registration_otp(self, db: Session, mobile: str) -> FlowResult:
        with atomic(db, "Resend registration OTP"):
            user = self._user_by_mobile(db, mobile)
            issued, notification = self.issue_codes(db, user, Channel.BOTH, "registration")

        return FlowResult(
            message=(
                f"We have sent OTP to your registered mobile number({mask(user.mobile_no)}) "
                f"& email({mask(user.email)}). {self._expires_in_text()}"
            ),
            data=issued.as_dict(settings.EXPOSE_OTP_IN_RESPONSE),
            notifications=[notification],
        )

    def verify_registration(self, db: Session, mobile: str, email: str, mobile_otp: str, email_otp: str) -> FlowResult:
        with atomic(db, "Registration OTP verification"):
            user = self._user_by_mobile(db, mobile)
            if user.email.lower() != email.strip().lower():
                raise NotFound("The selected email is invalid.")

            user = self.verify_codes(db, user, Channel.BOTH, mobile_otp=mobile_otp, email_otp=email_otp)
            token = issue_session_token(user)

        return FlowResult(
            message="OTP verified successfully. Verification completed.",
            data={**token, "user": serialize_user(user)},
        )

    # -------------------- LOGIN --------------------
    def send_login_otp(self, db: Session, mobile: str) -> FlowResult:
        with atomic(db, "Login OTP"):
            user = self._user_by_mobile(db, mobile)
            if not user.is_fully_verified:
                raise UnverifiedAccount()
            issued, notification = self.issue_codes(db, user, Channel.MOBILE, "login")

        return FlowResult(
            message=f"We have sent OTP to your registered mobile number({mask(user.mobile_no)}). {self._expires_in_text()}",
            data=issued.as_dict(settings.EXPOSE_OTP_IN_RESPONSE),
            notifications=[notification],
        )

    def verify_login_otp(self, db: Session, mobile: str, mobile_otp: str) -> FlowResult:
        with atomic(db, "Login OTP verification"):
            user = self._user_by_mobile(db, mobile)
            user = self.verify_codes(db, user, Channel.MOBILE, mobile_otp=mobile_otp)
            token = issue_session_token(user)

        return FlowResult(
            message="OTP verified successfully. Verification completed.",
            data={**token, "user": serialize_user(user)},
        )

    def login_with_password(self, db: Session, email: str, password: str) -> FlowResult:
        user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

        if not user or not verify_password(password, user.password_hash):
            raise Unauthorized("Please check your email and password.")
        if not user.is_fully_verified:
            raise UnverifiedAccount()

        token = issue_session_token(user)
        logger.info(f"User {user.id} logged in with password")
        return FlowResult(
            message="User Logged-in successfully.",
            data={**token, "user": serialize_user(user)},
        )

    def logout(self, db: Session, claims: dict) -> FlowResult:
        with atomic(db, "Logout"):
            db.add(RevokedToken(
                jti=claims["jti"],
                user_id=claims["sub"],
                expires_at=datetime.utcfromtimestamp(claims["exp"]),
            ))

        logger.info(f"Token {claims['jti']} revoked for user {claims['sub']}")
        return FlowResult(message="Successfully logged out")

    # -------------------- PASSWORD RESET --------------------
    def forgot_password(self, db: Session, mobile: str) -> FlowResult:
        with atomic(db, "Forgot password"):
            user = self._user_by_mobile(db, mobile)
            issued, notification = self.issue_codes(db, user, Channel.BOTH, "password_reset")

        return FlowResult(
            message=(
                f"We have sent OTP to your registered mobile number({mask(user.mobile_no)}) "
                f"& email({mask(user.email)}). {self._expires_in_text()}"
            ),
            data=issued.as_dict(settings.EXPOSE_OTP_IN_RESPONSE),
            notifications=[notification],
        )

    def verify_forgot_password(self, db: Session, mobile: str, mobile_otp: str, email_otp: str) -> FlowResult:
        with atomic(db, "Forgot password OTP verification"):
            user = self._user_by_mobile(db, mobile)
            user = self.verify_codes(db, user, Channel.BOTH, mobile_otp=mobile_otp, email_otp=email_otp)

            raw_token = generate_exchange_token()
            expires_at = self.clock() + timedelta(minutes=self.reset_token_minutes)

            # One outstanding exchange token per user
            db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).delete()
            db.add(PasswordResetToken(
                user_id=user.id,
                token_hash=hash_exchange_token(raw_token),
                expires_at=expires_at,
            ))

        logger.info(f"Password reset exchange token issued for user {user.id}")
        return FlowResult(
            message="OTP verified successfully.",
            data={"temp_token": raw_token, "expires_at": expires_at.isoformat()},
        )

    def update_password(self, db: Session, temp_token: str, password: str) -> FlowResult:
        with atomic(db, "Password update"):
            reset_token = db.query(PasswordResetToken).filter(
                PasswordResetToken.token_hash == hash_exchange_token(temp_token)
            ).with_for_update().first()

            if not reset_token:
                raise Unauthorized("The selected temp token is invalid.")
            if self.clock() > reset_token.expires_at:
                raise Unauthorized("The temp token has expired. Please request a new OTP.")

            user = db.query(User).filter(User.id == reset_token.user_id).with_for_update().one()
            user.password_hash = hash_password(password)
            db.delete(reset_token)

        logger.info(f"Password updated for user {user.id}")
        return FlowResult(message="Your password successfully changed. Please login using new password.")

    # -------------------- AUTHENTICATED CHANNEL OTP --------------------
    def send_channel_otp(self, db: Session, user: User, channel: Channel) -> FlowResult:
        if channel == Channel.BOTH:
            raise ValidationFailed("Choose either the mobile or the email channel.")

        with atomic(db, f"{channel.value} OTP"):
            issued, notification = self.issue_codes(db, user, channel, "channel")

        destination = "mobile number" if channel == Channel.MOBILE else "email"
        return FlowResult(
            message=f"We have sent OTP to your {destination}. {self._expires_in_text()}",
            data=issued.as_dict(settings.EXPOSE_OTP_IN_RESPONSE),
            notifications=[notification],
        )

    def verify_channel_otp(self, db: Session, user: User, channel: Channel, otp: str) -> FlowResult:
        if channel == Channel.BOTH:
            raise ValidationFailed("Choose either the mobile or the email channel.")

        with atomic(db, f"{channel.value} OTP verification"):
            user = self.verify_codes(
                db,
                user,
                channel,
                mobile_otp=otp if channel == Channel.MOBILE else None,
                email_otp=otp if channel == Channel.EMAIL else None,
            )

        return FlowResult(
            message="OTP verified successfully.",
            data={"user": serialize_user(user)},
        )


otp_service = OTPService()


def get_otp_service() -> OTPService:
    return otp_service
