"""
Web push notifications with VAPID.

Agents register the ``PushSubscription`` of their browsers; contacts store the
serialized subscription of their device in ``push_token``. Deliveries go
through pywebpush, whose blocking HTTP call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pywebpush import WebPushException, webpush
from sqlalchemy.ext.asyncio import AsyncSession

from immopro.core.database.repositories.notifications import PushSubscriptionRepository
from immopro.core.logging_config import get_logger
from immopro.server.core.config import settings

logger = get_logger(__name__)

# Push services answer these once a subscription was revoked by the browser
EXPIRED_STATUS_CODES = (404, 410)

DEFAULT_ICON = "/icon-192x192.png"


@dataclass
class PushResult:
    """Result of a push notification attempt"""

    success: bool
    endpoint: str
    error: Optional[str] = None
    expired: bool = False


def is_configured() -> bool:
    config = settings.web_push
    return bool(config.public_key and config.private_key)


def parse_push_token(push_token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode the subscription stored in ``Contact.push_token``.

    Returns:
        The subscription info expected by pywebpush, or ``None`` when the
        token is empty or not a valid serialized subscription
    """
    if not push_token:
        return None
    try:
        info = json.loads(push_token)
    except ValueError:
        logger.warning("Ignoring push token that is not a JSON subscription")
        return None
    if not isinstance(info, dict) or not info.get("endpoint") or not isinstance(info.get("keys"), dict):
        return None
    return info


async def send_push(subscription_info: Dict[str, Any], payload: Dict[str, Any]) -> PushResult:
    """
    Send one push message.

    Args:
        subscription_info: ``{"endpoint", "keys": {"p256dh", "auth"}}``
        payload: JSON serializable message shown by the service worker

    Returns:
        The delivery result. ``expired`` is set when the push service reports
        the subscription as gone.
    """
    endpoint = subscription_info.get("endpoint", "")
    config = settings.web_push
    if not is_configured():
        logger.warning("Push not sent: VAPID keys are not configured")
        return PushResult(success=False, endpoint=endpoint, error="Push service not configured")

    try:
        await asyncio.to_thread(
            webpush,
            subscription_info=subscription_info,
            data=json.dumps(payload),
            vapid_private_key=config.private_key,
            vapid_claims={"sub": config.subject},
        )
    except WebPushException as e:
        status_code = getattr(e.response, "status_code", None)
        expired = status_code in EXPIRED_STATUS_CODES
        logger.error(f"Push to {endpoint} failed: {e}", extra={"status_code": status_code})
        return PushResult(success=False, endpoint=endpoint, error=str(e), expired=expired)
    except Exception as e:
        logger.error(f"Push to {endpoint} failed: {e}")
        return PushResult(success=False, endpoint=endpoint, error=str(e))

    logger.debug(f"Push sent to {endpoint}")
    return PushResult(success=True, endpoint=endpoint)


async def send_to_user(session: AsyncSession, agent_id: int, payload: Dict[str, Any]) -> List[PushResult]:
    """
    Send a push message to every browser registered by an agent.

    Subscriptions reported as expired are deleted.
    """
    repository = PushSubscriptionRepository(session)
    results = []
    for subscription in await repository.list_for_agent(agent_id):
        result = await send_push(subscription.to_subscription_info(), payload)
        if result.expired:
            logger.info(f"Removing expired push subscription {subscription.id} of agent {agent_id}")
            await repository.delete(subscription)
        results.append(result)
    return results


def _payload(title: str, body: str, url: str, tag: str, **data: Any) -> Dict[str, Any]:
    return {
        "title": title,
        "body": body,
        "icon": DEFAULT_ICON,
        "tag": tag,
        "data": {"url": url, **data},
    }


def appointment_payload(appointment: Any) -> Dict[str, Any]:
    when = appointment.appointment_date.strftime("%d/%m/%Y %H:%M")
    return _payload(
        "New appointment",
        f"{appointment.client_name} booked a visit on {when}",
        "/appointments",
        f"appointment-{appointment.id}",
        appointment_id=appointment.id,
    )


def property_match_payload(prop: Any, score: int) -> Dict[str, Any]:
    return _payload(
        "New property for you",
        f"{prop.address}, {prop.city or ''} - {prop.price} EUR ({score}% match)".replace(" ,", ","),
        f"/public/properties/{prop.id}",
        f"property-{prop.id}",
        property_id=prop.id,
        score=score,
    )


def reminder_payload(appointment: Any) -> Dict[str, Any]:
    when = appointment.appointment_date.strftime("%H:%M")
    return _payload(
        "Appointment tomorrow",
        f"Visit with {appointment.client_name} at {when}",
        "/appointments",
        f"reminder-{appointment.id}",
        appointment_id=appointment.id,
    )


def new_lead_payload(contact: Any) -> Dict[str, Any]:
    return _payload(
        "New lead",
        f"{contact.first_name} {contact.last_name} wants to be contacted",
        f"/contacts/{contact.id}",
        f"lead-{contact.id}",
        contact_id=contact.id,
    )
