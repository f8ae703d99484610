"""
Transactional email through Resend.

``send_email`` never raises: delivery problems are logged and reported in
the returned :class:`EmailResult` so that callers can record them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import resend

from immopro.core.logging_config import get_logger
from immopro.server.core.config import settings

logger = get_logger(__name__)


@dataclass
class EmailResult:
    """Result of an email delivery attempt."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def is_configured() -> bool:
    return bool(settings.resend.api_key)


async def send_email(to: str, subject: str, html: str) -> EmailResult:
    """
    Send one HTML email.

    Args:
        to: Recipient address
        subject: Email subject
        html: HTML body

    Returns:
        The delivery result, with the Resend message id on success
    """
    config = settings.resend
    if not config.api_key:
        logger.warning(f"Email to {to} not sent: RESEND_API_KEY is not configured")
        return EmailResult(success=False, error="Email service not configured")

    resend.api_key = config.api_key
    params = {"from": config.from_email, "to": [to], "subject": subject, "html": html}

    try:
        response = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        logger.error(f"Failed to send email to {to}: {e}", extra={"subject": subject})
        return EmailResult(success=False, error=str(e))

    message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
    logger.info(f"Email sent to {to}", extra={"subject": subject, "message_id": message_id})
    return EmailResult(success=True, message_id=message_id)
