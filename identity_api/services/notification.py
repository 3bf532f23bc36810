# identity_api/services/notification.py
"""
Fire-and-forget OTP delivery.

Workflow operations hand back `OTPNotification` payloads instead of sending
anything themselves. Routes schedule them with `BackgroundTasks` after the
service has committed, so a rolled-back operation never notifies.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from fastapi import BackgroundTasks

from identity_api.services.email_service import send_otp_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OTPNotification:
    to_email: str
    name: str
    expire_at: datetime
    purpose: str
    mobile_otp: Optional[str] = None
    email_otp: Optional[str] = None


async def dispatch_otp_notification(notification: OTPNotification) -> bool:
    try:
        sent = await send_otp_email(
            to_email=notification.to_email,
            name=notification.name,
            mobile_otp=notification.mobile_otp,
            email_otp=notification.email_otp,
            expire_at=notification.expire_at,
            purpose=notification.purpose,
        )
    except Exception:
        logger.exception(f"OTP dispatch to {notification.to_email} failed")
        return False

    if not sent:
        logger.warning(f"OTP notification ({notification.purpose}) was not delivered to {notification.to_email}")
    return sent


def schedule_notifications(background_tasks: BackgroundTasks, *notifications: Optional[OTPNotification]) -> None:
    for notification in notifications:
        if notification is not None:
            background_tasks.add_task(dispatch_otp_notification, notification)
