# identity_api/errors.py
from fastapi import HTTPException, status


class IdentityError(HTTPException):
    """HTTPException carrying a stable machine-readable error code."""

    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Some error occurred."

    def __init__(self, message: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail


class ValidationFailed(IdentityError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "The given data was invalid."


class NotFound(IdentityError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Record not found."


class Unauthorized(IdentityError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class CodeExpired(IdentityError):
    code = "EXPIRED_CODE"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OTP expired. Please resend OTP."


class CodeMismatch(IdentityError):
    code = "CODE_MISMATCH"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OTP invalid. Please resend OTP."


class MobileCodeMismatch(CodeMismatch):
    code = "INVALID_MOBILE_CODE"
    default_message = "Mobile OTP invalid. Please resend OTP."


class EmailCodeMismatch(CodeMismatch):
    code = "INVALID_EMAIL_CODE"
    default_message = "Email OTP invalid. Please resend OTP."


class UnverifiedAccount(IdentityError):
    code = "UNVERIFIED_ACCOUNT"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Please verify your mobile number and email address."


class InternalError(IdentityError):
    pass


def error_code_for(status_code: int) -> str:
    """Fallback code for plain HTTPExceptions raised by FastAPI itself."""
    if status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        return Unauthorized.code
    if status_code == status.HTTP_404_NOT_FOUND:
        return NotFound.code
    if status_code in (status.HTTP_400_BAD_REQUEST, status.HTTP_422_UNPROCESSABLE_ENTITY):
        return ValidationFailed.code
    return InternalError.code
