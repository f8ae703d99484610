"""
Stripe billing service.

Thin async layer over the Stripe SDK: customers, checkout and billing portal
sessions, subscription changes and invoices. SDK calls are blocking and run
in a worker thread. Stripe errors propagate as ``stripe.StripeError`` and
are answered by the registered exception handler.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from immopro.core.database.entities.users import User
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import PlanName
from immopro.server.core.config import settings
from immopro.server.exception_handlers.errors import IntegrationNotConfiguredError

logger = get_logger(__name__)

PREMIUM_MIN_AMOUNT = 9900
PRO_MIN_AMOUNT = 4900


def is_configured() -> bool:
    return bool(settings.stripe.secret_key)


def _configure() -> None:
    secret_key = settings.stripe.secret_key
    if not secret_key:
        raise IntegrationNotConfiguredError("Stripe is not configured")
    stripe.api_key = secret_key


def field(obj: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a Stripe object or from a decoded webhook payload."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
    """Convert a Stripe unix timestamp to a naive UTC datetime."""
    if value is None:
        return None
    return datetime.utcfromtimestamp(int(value))


def plan_name_for_amount(unit_amount: Optional[int]) -> str:
    """Derive the plan name from the monthly price in cents."""
    amount = unit_amount or 0
    if amount >= PREMIUM_MIN_AMOUNT:
        return PlanName.PREMIUM.value
    if amount >= PRO_MIN_AMOUNT:
        return PlanName.PRO.value
    return PlanName.STARTER.value


def first_item(subscription: Any) -> Any:
    items = field(field(subscription, "items"), "data", [])
    return items[0] if items else None


def subscription_fields(subscription: Any) -> Dict[str, Any]:
    """
    Map a Stripe subscription onto the columns of ``Subscription``.

    Recent API versions moved the billing period onto the subscription
    items, so the first item is used when the subscription has none.
    """
    item = first_item(subscription)
    price = field(item, "price", {})
    recurring = field(price, "recurring", {})
    period_start = field(subscription, "current_period_start") or field(item, "current_period_start")
    period_end = field(subscription, "current_period_end") or field(item, "current_period_end")
    unit_amount = field(price, "unit_amount", 0)
    return {
        "stripe_subscription_id": field(subscription, "id"),
        "stripe_price_id": field(price, "id", ""),
        "stripe_customer_id": field(subscription, "customer"),
        "status": field(subscription, "status"),
        "plan_name": plan_name_for_amount(unit_amount),
        "amount": unit_amount,
        "currency": field(price, "currency", "eur"),
        "interval": field(recurring, "interval", "month"),
        "current_period_start": from_timestamp(period_start),
        "current_period_end": from_timestamp(period_end),
        "cancel_at_period_end": bool(field(subscription, "cancel_at_period_end", False)),
        "canceled_at": from_timestamp(field(subscription, "canceled_at")),
        "trial_end": from_timestamp(field(subscription, "trial_end")),
    }


async def get_or_create_customer(session: AsyncSession, user: User) -> str:
    """
    Return the Stripe customer id of a user, creating the customer on first use.

    The new id is stored on the user.
    """
    if user.stripe_customer_id:
        return user.stripe_customer_id

    _configure()
    customer = await asyncio.to_thread(
        stripe.Customer.create,
        email=user.email,
        name=user.full_name,
        metadata={"user_id": str(user.id), "role": user.role},
    )
    user.stripe_customer_id = customer["id"]
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Stripe customer created for user {user.id}", extra={"customer_id": customer["id"]})
    return user.stripe_customer_id


async def create_checkout_session(
    session: AsyncSession, user: User, price_id: str, success_url: str, cancel_url: str
) -> Any:
    """Open a subscription checkout for ``price_id``."""
    customer_id = await get_or_create_customer(session, user)
    _configure()
    checkout = await asyncio.to_thread(
        stripe.checkout.Session.create,
        customer=customer_id,
        mode="subscription",
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": 1}],
        success_url=success_url,
        cancel_url=cancel_url,
        metadata={"user_id": str(user.id)},
        subscription_data={"metadata": {"user_id": str(user.id)}},
    )
    logger.info(f"Checkout session created for user {user.id}", extra={"session_id": checkout["id"]})
    return checkout


async def create_billing_portal_session(customer_id: str, return_url: str) -> Any:
    _configure()
    return await asyncio.to_thread(
        stripe.billing_portal.Session.create,
        customer=customer_id,
        return_url=return_url,
    )


async def retrieve_subscription(stripe_subscription_id: str) -> Any:
    _configure()
    return await asyncio.to_thread(stripe.Subscription.retrieve, stripe_subscription_id)


async def cancel_subscription(stripe_subscription_id: str, immediate: bool = False) -> Any:
    """Cancel a subscription at the end of its period, or right away when ``immediate``."""
    _configure()
    if immediate:
        result = await asyncio.to_thread(stripe.Subscription.cancel, stripe_subscription_id)
    else:
        result = await asyncio.to_thread(
            stripe.Subscription.modify, stripe_subscription_id, cancel_at_period_end=True
        )
    logger.info(f"Subscription {stripe_subscription_id} canceled", extra={"immediate": immediate})
    return result


async def reactivate_subscription(stripe_subscription_id: str) -> Any:
    _configure()
    result = await asyncio.to_thread(
        stripe.Subscription.modify, stripe_subscription_id, cancel_at_period_end=False
    )
    logger.info(f"Subscription {stripe_subscription_id} reactivated")
    return result


async def update_subscription_price(stripe_subscription_id: str, new_price_id: str) -> Any:
    """Swap the price of the subscription's first item without proration."""
    current = await retrieve_subscription(stripe_subscription_id)
    item = first_item(current)
    return await asyncio.to_thread(
        stripe.Subscription.modify,
        stripe_subscription_id,
        items=[{"id": field(item, "id"), "price": new_price_id}],
        proration_behavior="none",
    )


async def extend_trial(stripe_subscription_id: str, new_end: datetime) -> Any:
    """Offer free days by moving the trial end of the subscription to ``new_end``."""
    _configure()
    trial_end = int((new_end - datetime(1970, 1, 1)).total_seconds())
    return await asyncio.to_thread(
        stripe.Subscription.modify,
        stripe_subscription_id,
        trial_end=trial_end,
        proration_behavior="none",
    )


async def list_invoices(customer_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    """List the invoices of a customer, newest first, formatted for display."""
    _configure()
    invoices = await asyncio.to_thread(stripe.Invoice.list, customer=customer_id, limit=limit)
    return [
        {
            "id": field(invoice, "id"),
            "number": field(invoice, "number"),
            "amount_paid": field(invoice, "amount_paid", 0),
            "currency": field(invoice, "currency", "eur"),
            "status": field(invoice, "status"),
            "created": from_timestamp(field(invoice, "created")),
            "invoice_pdf": field(invoice, "invoice_pdf"),
            "hosted_invoice_url": field(invoice, "hosted_invoice_url"),
        }
        for invoice in field(invoices, "data", [])
    ]
