"""
Stripe webhook processing.

Every received event is journaled in ``stripe_webhook_events`` before being
dispatched to its handler. Handlers keep the local ``Subscription`` and the
user's subscription columns in sync with Stripe and send the billing emails.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from immopro.core.database.entities.subscriptions import Subscription
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.subscriptions import StripeWebhookEventRepository, SubscriptionRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import SubscriptionStatus
from immopro.core.monitoring import log_webhook_event
from immopro.server.core.config import settings
from immopro.server.exception_handlers.errors import InvalidRequestError

from . import stripe_service, subscription_emails
from .stripe_service import field

logger = get_logger(__name__)

EventObject = Dict[str, Any]


def parse_event(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """
    Decode a webhook request body into an event.

    The ``Stripe-Signature`` header is verified when a webhook secret is
    configured. Without one the payload is trusted as is.

    Raises:
        InvalidRequestError: When the payload is not JSON or the signature is invalid
    """
    webhook_secret = settings.stripe.webhook_secret
    try:
        body = payload.decode("utf-8")
        if webhook_secret:
            stripe.WebhookSignature.verify_header(body, signature or "", webhook_secret)
        else:
            logger.warning("Webhook signature not verified: STRIPE_WEBHOOK_SECRET is not configured")
        event = json.loads(body)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise InvalidRequestError(f"Webhook Error: {e}")

    if not isinstance(event, dict) or not event.get("id") or not event.get("type"):
        raise InvalidRequestError("Webhook Error: malformed event")
    return event


def _metadata_user_id(obj: EventObject) -> Optional[int]:
    metadata = field(obj, "metadata", {})
    raw = field(metadata, "user_id") or field(metadata, "userId")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


class StripeWebhookProcessor:
    """Journal and dispatch Stripe events within one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.events = StripeWebhookEventRepository(session)
        self.subscriptions = SubscriptionRepository(session)
        self.users = UserRepository(session)
        self.handlers: Dict[str, Callable[[EventObject], Awaitable[None]]] = {
            "checkout.session.completed": self.handle_checkout_session_completed,
            "customer.subscription.created": self.handle_subscription_created,
            "customer.subscription.updated": self.handle_subscription_updated,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "invoice.payment_succeeded": self.handle_invoice_payment_succeeded,
            "invoice.payment_failed": self.handle_invoice_payment_failed,
        }

    async def process(self, event: Dict[str, Any]) -> bool:
        """
        Journal and handle one event.

        Returns:
            False when the event was already processed and is skipped

        Raises:
            Exception: The handler failure, after the error was journaled
        """
        event_id, event_type = event["id"], event["type"]
        logger.info(f"Stripe webhook received: {event_type}", extra={"event_id": event_id})

        record = await self.events.record(event_id, event_type, event.get("data") or {})
        if record is None:
            record = await self.events.get_by_event_id(event_id)
            if record is None or record.processed:
                logger.info(f"Stripe event {event_id} already processed, skipping")
                return False

        handler = self.handlers.get(event_type)
        try:
            if handler is None:
                logger.info(f"Unhandled webhook event type: {event_type}")
            else:
                await handler((event.get("data") or {}).get("object") or {})
        except Exception as e:
            logger.error(f"Error processing webhook {event_type}: {e}", extra={"event_id": event_id})
            await self.session.rollback()
            await self.events.mark_failed(record, str(e))
            log_webhook_event(event_id, event_type, processed=False, error=str(e))
            raise

        await self.events.mark_processed(record)
        log_webhook_event(event_id, event_type, processed=True)
        return True

    async def _upsert_subscription(self, user_id: int, fields: Dict[str, Any]) -> Subscription:
        subscription = await self.subscriptions.get_by_user_id(user_id)
        if subscription is None:
            return await self.subscriptions.create(Subscription(user_id=user_id, **fields))
        for key, value in fields.items():
            setattr(subscription, key, value)
        return await self.subscriptions.update(subscription)

    async def _sync_user(self, user: User, subscription: Subscription) -> User:
        user.stripe_customer_id = subscription.stripe_customer_id
        user.subscription_status = subscription.status
        user.subscription_plan = subscription.plan_name
        user.subscription_end_date = subscription.current_period_end
        return await self.users.update(user)

    async def _resolve_user(self, obj: EventObject) -> Optional[User]:
        user_id = _metadata_user_id(obj)
        if user_id is not None:
            user = await self.users.get_by_id(user_id)
            if user is not None:
                return user
        customer_id = field(obj, "customer")
        return await self.users.get_by_stripe_customer_id(customer_id) if customer_id else None

    async def handle_checkout_session_completed(self, checkout: EventObject) -> None:
        user_id = _metadata_user_id(checkout)
        stripe_subscription_id = field(checkout, "subscription")
        if user_id is None or not stripe_subscription_id:
            logger.error(f"Checkout session {field(checkout, 'id')} has no user_id metadata or subscription")
            return

        user = await self.users.get_by_id(user_id)
        if user is None:
            logger.error(f"Checkout session {field(checkout, 'id')} references unknown user {user_id}")
            return

        stripe_subscription = await stripe_service.retrieve_subscription(stripe_subscription_id)
        fields = stripe_service.subscription_fields(stripe_subscription)
        fields["stripe_customer_id"] = field(checkout, "customer") or fields["stripe_customer_id"]
        subscription = await self._upsert_subscription(user.id, fields)
        user = await self._sync_user(user, subscription)
        logger.info(f"Subscription created from checkout for user {user.id}", extra={"plan": subscription.plan_name})

        await subscription_emails.send_welcome(user, subscription)

    async def handle_subscription_created(self, stripe_subscription: EventObject) -> None:
        user = await self._resolve_user(stripe_subscription)
        if user is None:
            logger.error(f"Cannot find user for subscription {field(stripe_subscription, 'id')}")
            return
        subscription = await self._upsert_subscription(user.id, stripe_service.subscription_fields(stripe_subscription))
        await self._sync_user(user, subscription)

    async def handle_subscription_updated(self, stripe_subscription: EventObject) -> None:
        fields = stripe_service.subscription_fields(stripe_subscription)
        subscription = await self.subscriptions.get_by_stripe_id(fields["stripe_subscription_id"])
        if subscription is None:
            user = await self._resolve_user(stripe_subscription)
            if user is None:
                logger.error(f"Cannot find user for subscription {fields['stripe_subscription_id']}")
                return
            subscription = await self._upsert_subscription(user.id, fields)
        else:
            for key, value in fields.items():
                setattr(subscription, key, value)
            subscription = await self.subscriptions.update(subscription)
            user = await self.users.get_by_id(subscription.user_id)

        if user is not None:
            await self._sync_user(user, subscription)
        logger.info(f"Subscription {subscription.stripe_subscription_id} updated", extra={"status": subscription.status})

    async def handle_subscription_deleted(self, stripe_subscription: EventObject) -> None:
        subscription = await self.subscriptions.get_by_stripe_id(field(stripe_subscription, "id"))
        if subscription is None:
            logger.warning(f"Deleted subscription {field(stripe_subscription, 'id')} is unknown")
            return

        subscription.status = SubscriptionStatus.CANCELED.value
        subscription.canceled_at = datetime.utcnow()
        subscription = await self.subscriptions.update(subscription)

        user = await self.users.get_by_id(subscription.user_id)
        if user is not None:
            user.subscription_status = SubscriptionStatus.INACTIVE.value
            user.subscription_plan = None
            user = await self.users.update(user)
            await subscription_emails.send_canceled(user, subscription)
        logger.info(f"Subscription {subscription.stripe_subscription_id} deleted")

    async def handle_invoice_payment_succeeded(self, invoice: EventObject) -> None:
        logger.info(f"Invoice payment succeeded: {field(invoice, 'id')}")
        # The first payment is covered by checkout.session.completed
        if field(invoice, "billing_reason") != "subscription_cycle":
            return

        user = await self.users.get_by_stripe_customer_id(field(invoice, "customer"))
        if user is None:
            return
        subscription = await self.subscriptions.get_by_user_id(user.id)
        if subscription is not None:
            await subscription_emails.send_renewal(user, subscription, invoice)

    async def handle_invoice_payment_failed(self, invoice: EventObject) -> None:
        logger.error(f"Invoice payment failed: {field(invoice, 'id')}", extra={"customer": field(invoice, "customer")})
        user = await self.users.get_by_stripe_customer_id(field(invoice, "customer"))
        if user is None:
            return

        user.subscription_status = SubscriptionStatus.PAST_DUE.value
        user = await self.users.update(user)

        subscription = await self.subscriptions.get_by_user_id(user.id)
        if subscription is not None:
            subscription.status = SubscriptionStatus.PAST_DUE.value
            await self.subscriptions.update(subscription)
            await subscription_emails.send_payment_failed(user, invoice)
        logger.warning(f"User {user.id} subscription is past due")
