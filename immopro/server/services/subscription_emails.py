"""
Billing lifecycle emails sent from the Stripe webhook.
"""

from __future__ import annotations

from typing import Any, Mapping

from immopro.core.database.entities.subscriptions import Subscription
from immopro.core.database.entities.users import User
from immopro.core.logging_config import get_logger

from . import email_service, email_templates
from .email_service import EmailResult

logger = get_logger(__name__)


async def _send(user: User, kind: str, subject: str, html: str) -> EmailResult:
    result = await email_service.send_email(user.email, subject, html)
    if not result.success:
        logger.warning(f"Subscription {kind} email to user {user.id} not delivered: {result.error}")
    return result


async def send_welcome(user: User, subscription: Subscription) -> EmailResult:
    subject, html = email_templates.subscription_welcome_email(user.first_name, subscription)
    return await _send(user, "welcome", subject, html)


async def send_renewal(user: User, subscription: Subscription, invoice: Mapping[str, Any]) -> EmailResult:
    subject, html = email_templates.subscription_renewal_email(user.first_name, subscription, invoice)
    return await _send(user, "renewal", subject, html)


async def send_canceled(user: User, subscription: Subscription) -> EmailResult:
    subject, html = email_templates.subscription_canceled_email(user.first_name, subscription)
    return await _send(user, "cancellation", subject, html)


async def send_payment_failed(user: User, invoice: Mapping[str, Any]) -> EmailResult:
    subject, html = email_templates.payment_failed_email(user.first_name, invoice)
    return await _send(user, "payment failed", subject, html)
