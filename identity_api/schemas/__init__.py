# identity_api/schemas/__init__.py
from .auth import (
    RegisterRequest,
    MobileRequest,
    VerifyRegistrationRequest,
    VerifyLoginRequest,
    VerifyForgotPasswordRequest,
    UpdatePasswordRequest,
    EmailLoginRequest,
    ChannelVerifyRequest
)
from .user import UserOut
from .response import ApiResponse, success_response, error_response

__all__ = [
    "RegisterRequest",
    "MobileRequest",
    "VerifyRegistrationRequest",
    "VerifyLoginRequest",
    "VerifyForgotPasswordRequest",
    "UpdatePasswordRequest",
    "EmailLoginRequest",
    "ChannelVerifyRequest",
    "UserOut",
    "ApiResponse",
    "success_response",
    "error_response"
]
