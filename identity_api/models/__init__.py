# identity_api/models/__init__.py

from .user import User
from .verification_code import VerificationCode
from .password_reset_token import PasswordResetToken
from .revoked_token import RevokedToken

__all__ = ["User", "VerificationCode", "PasswordResetToken", "RevokedToken"]
