# identity_api/services/verification_store.py
"""
Persistence for outstanding OTPs.

A user owns at most one `VerificationCode` row (the user id is the primary
key), so writing codes for a user always replaces whatever was there. None of
these helpers commit: the caller decides where the transaction ends.
"""
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from identity_api.models.verification_code import VerificationCode

logger = logging.getLogger(__name__)


def get_record(db: Session, user_id: str) -> Optional[VerificationCode]:
    return db.query(VerificationCode).filter(VerificationCode.user_id == user_id).first()


def upsert_record(
    db: Session,
    user_id: str,
    mobile_otp: Optional[str],
    email_otp: Optional[str],
    expire_at: datetime,
) -> VerificationCode:
    record = get_record(db, user_id)

    if record:
        logger.info(f"Replacing outstanding OTP record for user {user_id}")
        record.mobile_otp = mobile_otp
        record.email_otp = email_otp
        record.expire_at = expire_at
    else:
        record = VerificationCode(
            user_id=user_id,
            mobile_otp=mobile_otp,
            email_otp=email_otp,
            expire_at=expire_at,
        )
        db.add(record)

    db.flush()
    return record


def delete_record(db: Session, record: VerificationCode) -> None:
    db.delete(record)
    db.flush()
