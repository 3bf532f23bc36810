# identity_api/routes/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from identity_api.auth.dependencies import get_token_claims
from identity_api.database import get_db
from identity_api.schemas.auth import (
    RegisterRequest,
    MobileRequest,
    VerifyRegistrationRequest,
    VerifyLoginRequest,
    VerifyForgotPasswordRequest,
    UpdatePasswordRequest,
    EmailLoginRequest
)
from identity_api.schemas.response import ApiResponse, success_response
from identity_api.services.notification import schedule_notifications
from identity_api.services.otp_service import OTPService, get_otp_service

router = APIRouter(prefix="/api/v1", tags=["Auth"])


# ------------------ Registration ------------------

@router.post("/register", response_model=ApiResponse)
def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    """Create an unverified account and send mobile + email OTPs."""
    result = service.register(db, payload)
    schedule_notifications(background_tasks, *result.notifications)
    return success_response(result.data, result.message)


@router.post("/resend-registration-otp", response_model=ApiResponse)
def resend_registration_otp(
    payload: MobileRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.resend_registration_otp(db, payload.mobile)
    schedule_notifications(background_tasks, *result.notifications)
    return success_response(result.data, result.message)


@router.post("/verify-registration-otp", response_model=ApiResponse)
def verify_registration_otp(
    payload: VerifyRegistrationRequest,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    """Verify both registration OTPs and return a bearer token."""
    result = service.verify_registration(
        db,
        mobile=payload.mobile,
        email=payload.email,
        mobile_otp=payload.mobile_otp,
        email_otp=payload.email_otp,
    )
    return success_response(result.data, result.message)


# ------------------ Login ------------------

@router.post("/login-otp-send", response_model=ApiResponse)
def login_otp_send(
    payload: MobileRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.send_login_otp(db, payload.mobile)
    schedule_notifications(background_tasks, *result.notifications)
    return success_response(result.data, result.message)


@router.post("/verify-login-otp", response_model=ApiResponse)
def verify_login_otp(
    payload: VerifyLoginRequest,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.verify_login_otp(db, payload.mobile, payload.mobile_otp)
    return success_response(result.data, result.message)


@router.post("/login-using-email", response_model=ApiResponse)
def login_using_email(
    payload: EmailLoginRequest,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.login_with_password(db, payload.email, payload.password)
    return success_response(result.data, result.message)


@router.post("/logout", response_model=ApiResponse)
def logout(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.logout(db, claims)
    return success_response(None, result.message)


# ------------------ Password reset ------------------

@router.post("/forgot-password", response_model=ApiResponse)
def forgot_password(
    payload: MobileRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.forgot_password(db, payload.mobile)
    schedule_notifications(background_tasks, *result.notifications)
    return success_response(result.data, result.message)


@router.post("/verify-forgot-password-otp", response_model=ApiResponse)
def verify_forgot_password_otp(
    payload: VerifyForgotPasswordRequest,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    """Exchange both OTPs for a single-use temp token."""
    result = service.verify_forgot_password(
        db,
        mobile=payload.mobile,
        mobile_otp=payload.mobile_otp,
        email_otp=payload.email_otp,
    )
    return success_response(result.data, result.message)


@router.post("/update-password", response_model=ApiResponse)
def update_password(
    payload: UpdatePasswordRequest,
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.update_password(db, payload.temp_token, payload.password)
    return success_response(None, result.message)
