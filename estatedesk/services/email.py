from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import httpx

from estatedesk.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailSendResult:
    provider: str
    message_id: Optional[str] = None


class EmailSendError(RuntimeError):
    pass


def send_email(*, to_address: str, subject: str, html: str, text: str | None = None) -> EmailSendResult:
    provider = (settings.EMAIL_PROVIDER or "disabled").lower()
    if provider in {"disabled", "none"}:
        raise EmailSendError("EMAIL_PROVIDER disabled")
    if not settings.EMAIL_FROM:
        raise EmailSendError("EMAIL_FROM not configured")

    if provider == "resend":
        return _send_resend(to_address=to_address, subject=subject, html=html, text=text)
    if provider == "smtp":
        return _send_smtp(to_address=to_address, subject=subject, html=html, text=text)

    raise EmailSendError(f"Unsupported EMAIL_PROVIDER: {settings.EMAIL_PROVIDER}")


def notify(*, to_address: str | None, content: dict[str, str]) -> bool:
    """Send a rendered email; failures are logged and never raised."""
    if not to_address:
        logger.warning("email_skipped: recipient missing", extra={"reason": content.get("subject")})
        return False
    try:
        send_email(
            to_address=to_address,
            subject=content["subject"],
            html=content["html"],
            text=content.get("text"),
        )
    except EmailSendError as exc:
        logger.warning("email_not_sent: %s", exc, extra={"email": to_address})
        return False
    except (httpx.HTTPError, smtplib.SMTPException, OSError):
        logger.exception("email_delivery_failed", extra={"email": to_address})
        return False
    return True


def _send_resend(*, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.EMAIL_API_KEY:
        raise EmailSendError("EMAIL_API_KEY not configured for Resend")
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_address],
        "subject": subject,
        "html": html,
    }
    if text:
        payload["text"] = text
    headers = {
        "Authorization": f"Bearer {settings.EMAIL_API_KEY}",
        "Content-Type": "application/json",
    }
    with httpx.Client(timeout=15) as client:
        resp = client.post("https://api.resend.com/emails", json=payload, headers=headers)
    if resp.status_code >= 400:
        raise EmailSendError(f"Resend error: {resp.status_code} {resp.text}")
    data = resp.json()
    return EmailSendResult(provider="resend", message_id=data.get("id"))


def _send_smtp(*, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.SMTP_HOST:
        raise EmailSendError("SMTP_HOST not configured")
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.EMAIL_FROM
    message["To"] = to_address
    message.set_content(text or "This email requires an HTML-capable client.")
    message.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=15) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(message)
    return EmailSendResult(provider="smtp")
