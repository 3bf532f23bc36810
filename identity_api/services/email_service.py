from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
import logging

from identity_api.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

SUBJECTS = {
    "registration": "Verify Your Account",
    "login": "Login Verification",
    "password_reset": "Password Reset",
    "channel": "Verification Code",
}


def _connection_config(port: int, use_ssl: bool) -> ConnectionConfig:
    # Two configs: STARTTLS on 587, implicit SSL on 465
    return ConnectionConfig(
        MAIL_USERNAME=settings.EMAIL_HOST_USER,
        MAIL_PASSWORD=settings.EMAIL_HOST_PASSWORD,
        MAIL_FROM=settings.EMAIL_FROM,
        MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
        MAIL_PORT=port,
        MAIL_SERVER=settings.EMAIL_HOST,
        MAIL_STARTTLS=not use_ssl,
        MAIL_SSL_TLS=use_ssl,
        USE_CREDENTIALS=bool(settings.EMAIL_HOST_USER),
        VALIDATE_CERTS=True,
    )


def email_configured() -> bool:
    return bool(settings.EMAIL_HOST and settings.EMAIL_FROM)


# 🔁 Central retry wrapper
async def send_email_with_retry(message: MessageSchema, subject: str, to_email: str) -> bool:
    """Try sending via TLS first (587), then SSL (465) if it fails"""
    try:
        fm = FastMail(_connection_config(settings.EMAIL_PORT, use_ssl=False))
        await fm.send_message(message)
        logger.info(f"{subject} email sent to {to_email} via port {settings.EMAIL_PORT}")
        return True
    except Exception as e:
        logger.warning(f"Failed to send {subject} via port {settings.EMAIL_PORT}: {str(e)}")
        try:
            fm = FastMail(_connection_config(465, use_ssl=True))
            await fm.send_message(message)
            logger.info(f"{subject} email sent to {to_email} via port 465")
            return True
        except Exception as e2:
            logger.error(f"Failed to send {subject} email via both ports: {str(e2)}")
            return False


def render_otp_email(name: str, mobile_otp, email_otp, expire_at, purpose: str) -> str:
    return env.get_template("otp.html").render(
        name=name,
        mobile_otp=mobile_otp,
        email_otp=email_otp,
        expire_at=expire_at.strftime("%d %b %Y %I:%M:%S %p"),
        purpose=purpose,
    )


# 🔑 OTP email
async def send_otp_email(to_email: str, name: str, mobile_otp, email_otp, expire_at, purpose: str) -> bool:
    """Send the OTP payload to `to_email`. Never raises."""
    if not email_configured():
        logger.warning(f"EMAIL_HOST/EMAIL_FROM not configured, skipping OTP email to {to_email}")
        return False

    try:
        subject = SUBJECTS.get(purpose, SUBJECTS["channel"])
        html = render_otp_email(name, mobile_otp, email_otp, expire_at, purpose)

        message = MessageSchema(
            subject=subject,
            recipients=[to_email],
            body=html,
            subtype=MessageType.html
        )

        return await send_email_with_retry(message, subject, to_email)
    except Exception as e:
        logger.error(f"Failed to build/send OTP email to {to_email}: {str(e)}")
        return False
