import asyncio
from datetime import datetime

from identity_api.services.email_service import render_otp_email, send_otp_email
from identity_api.services.notification import OTPNotification, dispatch_otp_notification

EXPIRE_AT = datetime(2026, 1, 1, 12, 5, 0)


def test_render_otp_email_includes_both_codes():
    html = render_otp_email("Jane", "123456", "654321", EXPIRE_AT, "registration")

    assert "Hello Jane" in html
    assert "123456" in html
    assert "654321" in html
    assert "01 Jan 2026 12:05:00 PM" in html


def test_render_otp_email_skips_missing_channel():
    html = render_otp_email("Jane", "123456", None, EXPIRE_AT, "login")
    assert "Email OTP" not in html


def test_send_otp_email_skips_when_smtp_not_configured():
    sent = asyncio.run(send_otp_email(
        to_email="jane@example.com",
        name="Jane",
        mobile_otp="123456",
        email_otp="654321",
        expire_at=EXPIRE_AT,
        purpose="registration",
    ))
    assert sent is False


def test_dispatch_swallows_transport_errors(monkeypatch):
    async def exploding_send(**kwargs):
        raise ConnectionError("smtp down")

    monkeypatch.setattr("identity_api.services.notification.send_otp_email", exploding_send)

    notification = OTPNotification(
        to_email="jane@example.com",
        name="Jane",
        expire_at=EXPIRE_AT,
        purpose="registration",
        mobile_otp="123456",
        email_otp="654321",
    )
    assert asyncio.run(dispatch_otp_notification(notification)) is False
