# identity_api/schemas/auth.py
from typing import Literal
from pydantic import BaseModel, EmailStr, Field, model_validator

MOBILE_PATTERN = r"^\d{10}$"


class PasswordConfirmation(BaseModel):
    password: str = Field(..., min_length=8)
    confirm_password: str = Field(..., min_length=8)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("The password field must match confirm password.")
        return self


class RegisterRequest(PasswordConfirmation):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    mobile: str = Field(..., pattern=MOBILE_PATTERN)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "mobile": "9876543210",
                "password": "secret-pass",
                "confirm_password": "secret-pass"
            }
        }


class MobileRequest(BaseModel):
    mobile: str = Field(..., pattern=MOBILE_PATTERN)


class VerifyRegistrationRequest(BaseModel):
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    email: EmailStr
    mobile_otp: str
    email_otp: str


class VerifyLoginRequest(BaseModel):
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    mobile_otp: str


class VerifyForgotPasswordRequest(BaseModel):
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    mobile_otp: str
    email_otp: str


class UpdatePasswordRequest(PasswordConfirmation):
    temp_token: str = Field(..., min_length=1)


class EmailLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class ChannelVerifyRequest(BaseModel):
    channel: Literal["mobile", "email"]
    otp: str
