# identity_api/models/verification_code.py
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from identity_api.database import Base


class VerificationCode(Base):
    """Outstanding OTPs for a user. Keyed by user so a user never has more than one."""

    __tablename__ = "verification_codes"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    mobile_otp = Column(String(10), nullable=True)
    email_otp = Column(String(10), nullable=True)
    expire_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="verification_code")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expire_at

    def __repr__(self):
        return f"<VerificationCode user_id={self.user_id} expire_at={self.expire_at}>"
