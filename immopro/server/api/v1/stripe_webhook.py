"""
Stripe Webhook Endpoint.

Receives the events Stripe sends about checkouts, subscriptions and invoices.
The raw request body is needed to verify the ``Stripe-Signature`` header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse

from immopro.core.logging_config import get_logger
from immopro.server.services.deps import SessionDep
from immopro.server.services.stripe_webhooks import StripeWebhookProcessor, parse_event

logger = get_logger(__name__)

router = APIRouter(tags=["stripe"])


@router.post(
    "/webhook",
    summary="Stripe Webhook",
    description="Journal and handle a Stripe event. Events already processed are acknowledged without effect.",
    responses={
        400: {"description": "Malformed payload or invalid signature"},
        500: {"description": "The event handler failed, Stripe will retry"},
    },
)
async def stripe_webhook(
    request: Request,
    session: SessionDep,
    stripe_signature: Optional[str] = Header(default=None),
):
    payload = await request.body()
    event = parse_event(payload, stripe_signature)

    try:
        await StripeWebhookProcessor(session).process(event)
    except Exception as e:
        logger.error(f"Stripe webhook {event.get('id')} failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook handler failed", "event_id": event.get("id")},
        )
    return {"received": True}
