# identity_api/routes/user.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from identity_api.auth.dependencies import get_current_user
from identity_api.database import get_db
from identity_api.models.user import User
from identity_api.schemas.auth import ChannelVerifyRequest
from identity_api.schemas.response import ApiResponse, success_response
from identity_api.services.notification import schedule_notifications
from identity_api.services.otp_service import Channel, OTPService, get_otp_service, serialize_user

router = APIRouter(prefix="/api/v1", tags=["User"])


@router.get("/get-authenticate-user", response_model=ApiResponse)
def get_authenticate_user(current_user: User = Depends(get_current_user)):
    return success_response(serialize_user(current_user), "User Fetched")


@router.post("/user/send-mobile-otp", response_model=ApiResponse)
def send_mobile_otp(
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.send_channel_otp(db, current_user, Channel.MOBILE)
    schedule_notifications(background_tasks, *result.notifications)
    return success_response(result.data, result.message)


@router.post("/user/send-email-otp", response_model=ApiResponse)
def send_email_otp(
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.send_channel_otp(db, current_user, Channel.EMAIL)
    schedule_notifications(background_tasks, *result.notifications)
    return success_response(result.data, result.message)


@router.post("/user/verify-otp", response_model=ApiResponse)
def verify_channel_otp(
    payload: ChannelVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: OTPService = Depends(get_otp_service)
):
    result = service.verify_channel_otp(db, current_user, Channel(payload.channel), payload.otp)
    return success_response(result.data, result.message)
