# identity_api/models/password_reset_token.py
from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime
import uuid

from identity_api.database import Base


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)  # sha256 hex
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<PasswordResetToken user_id={self.user_id} expires_at={self.expires_at}>"
