from __future__ import annotations

import json
import logging
import smtplib
import ssl
from email.message import EmailMessage
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from app.config import settings

LOGGER = logging.getLogger(__name__)

RESEND_SEND_ENDPOINT = "https://api.resend.com/emails"


class EmailSendError(RuntimeError):
    pass


def send_otp_email(to_email: str, code: str) -> None:
    provider = settings.email_provider
    subject = settings.otp_email_subject
    text_body = _build_body(code, settings.otp_expiry_minutes)
    html_body = _build_html(code, settings.otp_expiry_minutes)

    if provider == "resend":
        _send_via_resend(to_email, subject, text_body, html_body)
    elif provider == "smtp":
        _send_via_smtp(to_email, subject, text_body, html_body)
    elif provider == "console":
        LOGGER.warning("[DEV MODE] OTP for %s: %s", to_email, code)
    else:
        raise EmailSendError(f"Unknown email provider: {provider}")


def _send_via_resend(to_email: str, subject: str, text_body: str, html_body: str) -> None:
    if not settings.resend_api_key:
        raise EmailSendError("Resend API key is not configured")

    payload = json.dumps(
        {
            "from": settings.otp_email_sender,
            "to": [to_email],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
    ).encode("utf-8")
    request = Request(
        RESEND_SEND_ENDPOINT,
        data=payload,
        headers={
            "Authorization": f"Bearer {settings.resend_api_key}",
            "Content-Type": "application/json",
        },
        method="POST",
    )

    try:
        with urlopen(request, timeout=10) as response:
            response.read()
    except HTTPError as exc:
        error_body = exc.read().decode("utf-8", errors="replace")
        LOGGER.error("Resend API error to=%s response=%s", to_email, error_body)
        raise EmailSendError("Failed to send OTP email") from exc
    except URLError as exc:
        raise EmailSendError("Failed to reach Resend API") from exc
    LOGGER.info("OTP email sent via Resend to=%s", to_email)


def _send_via_smtp(to_email: str, subject: str, text_body: str, html_body: str) -> None:
    if not settings.smtp_host or not settings.smtp_user:
        raise EmailSendError("SMTP is not configured")

    message = EmailMessage()
    message["From"] = f"Auth Service <{settings.smtp_user}>"
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text_body)
    message.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            smtp.starttls(context=ssl.create_default_context())
            smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        LOGGER.error("SMTP delivery failed to=%s error=%s", to_email, exc)
        raise EmailSendError("Failed to send OTP email") from exc
    LOGGER.info("OTP email sent via SMTP to=%s", to_email)


def _build_body(code: str, expiry_minutes: int) -> str:
    return (
        f"Your blog login OTP is {code}.\n\n"
        f"It expires in {expiry_minutes} minute(s).\n\n"
        "If you did not request this code, you can ignore this email."
    )


def _build_html(code: str, expiry_minutes: int) -> str:
    return (
        '<div style="font-family: Arial, sans-serif">'
        "<h2>Blog System Login</h2>"
        "<p>Your OTP is:</p>"
        f'<h1 style="letter-spacing:4px">{code}</h1>'
        f"<p>This OTP expires in <strong>{expiry_minutes} minutes</strong>.</p>"
        "<p>If you didn't request this, ignore this email.</p>"
        "</div>"
    )
