"""
Billing Endpoints.

Subscription of the caller's agency: Stripe checkout, cancellation,
reactivation, the customer portal, invoices and the catalog of plans.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status

from immopro.core.database.repositories.subscriptions import SubscriptionPlanRepository, SubscriptionRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import SubscriptionStatus
from immopro.core.models.io.billing import (
    BillingInvoice,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PlanRead,
    PortalSessionResponse,
    SubscriptionRead,
    SubscriptionStatusResponse,
)
from immopro.server.core.config import settings
from immopro.server.services import stripe_service
from immopro.server.services.deps import CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["billing"])


@router.get(
    "/subscription",
    response_model=SubscriptionStatusResponse,
    summary="Current Subscription",
    description="Subscription of the caller's agency, or an inactive status when there is none.",
)
async def get_subscription_status(user: CurrentUser, session: SessionDep) -> SubscriptionStatusResponse:
    subscription = await SubscriptionRepository(session).get_by_user_id(user.agency_id)
    if subscription is None:
        return SubscriptionStatusResponse(has_subscription=False, status=SubscriptionStatus.INACTIVE.value)
    return SubscriptionStatusResponse(
        has_subscription=True,
        status=subscription.status,
        subscription=SubscriptionRead.model_validate(subscription),
    )


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Start Checkout",
    description="Open a Stripe checkout page subscribing the caller to a plan price.",
    responses={
        502: {"description": "Stripe rejected the request"},
        503: {"description": "Stripe is not configured"},
    },
)
async def create_checkout_session(
    payload: CheckoutSessionRequest,
    user: CurrentUser,
    session: SessionDep,
) -> CheckoutSessionResponse:
    checkout = await stripe_service.create_checkout_session(
        session,
        user,
        payload.price_id,
        success_url=f"{settings.frontend_url}/dashboard?subscription=success&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{settings.frontend_url}/pricing?subscription=canceled",
    )
    return CheckoutSessionResponse(url=checkout["url"], session_id=checkout["id"])


@router.post(
    "/cancel-subscription",
    response_model=SubscriptionRead,
    summary="Cancel Subscription",
    description="Cancel the caller's subscription at the end of the current period.",
    responses={
        400: {"description": "Subscription already canceled or being canceled"},
        404: {"description": "No subscription"},
    },
)
async def cancel_subscription(user: CurrentUser, session: SessionDep) -> SubscriptionRead:
    repository = SubscriptionRepository(session)
    subscription = await repository.get_by_user_id(user.id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No subscription found")
    if subscription.cancel_at_period_end or subscription.status == SubscriptionStatus.CANCELED.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subscription is already canceled")

    await stripe_service.cancel_subscription(subscription.stripe_subscription_id)
    subscription.cancel_at_period_end = True
    subscription = await repository.update(subscription)
    logger.info(f"User {user.id} canceled subscription {subscription.stripe_subscription_id} at period end")
    return SubscriptionRead.model_validate(subscription)


@router.post(
    "/reactivate-subscription",
    response_model=SubscriptionRead,
    summary="Reactivate Subscription",
    description="Undo a pending cancellation before the end of the period.",
    responses={
        400: {"description": "Subscription is not being canceled"},
        404: {"description": "No subscription"},
    },
)
async def reactivate_subscription(user: CurrentUser, session: SessionDep) -> SubscriptionRead:
    repository = SubscriptionRepository(session)
    subscription = await repository.get_by_user_id(user.id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No subscription found")
    if not subscription.cancel_at_period_end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subscription is not being canceled")

    await stripe_service.reactivate_subscription(subscription.stripe_subscription_id)
    subscription.cancel_at_period_end = False
    subscription = await repository.update(subscription)
    logger.info(f"User {user.id} reactivated subscription {subscription.stripe_subscription_id}")
    return SubscriptionRead.model_validate(subscription)


@router.post(
    "/create-portal-session",
    response_model=PortalSessionResponse,
    summary="Open Billing Portal",
    description="Stripe customer portal where the caller manages payment methods and invoices.",
    responses={400: {"description": "The caller is not a Stripe customer yet"}},
)
async def create_portal_session(user: CurrentUser) -> PortalSessionResponse:
    if not user.stripe_customer_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No Stripe customer found")
    portal = await stripe_service.create_billing_portal_session(
        user.stripe_customer_id, return_url=f"{settings.frontend_url}/settings/billing"
    )
    return PortalSessionResponse(url=portal["url"])


@router.get(
    "/invoices",
    response_model=List[BillingInvoice],
    summary="Billing Invoices",
    description="Last Stripe invoices of the caller. Empty when the caller is not a Stripe customer.",
)
async def list_billing_invoices(user: CurrentUser) -> List[BillingInvoice]:
    if not user.stripe_customer_id:
        return []
    invoices = await stripe_service.list_invoices(user.stripe_customer_id)
    return [BillingInvoice(**invoice) for invoice in invoices]


@router.get(
    "/plans",
    response_model=List[PlanRead],
    summary="Available Plans",
    description="Active plans, cheapest first.",
)
async def list_plans(session: SessionDep) -> List[PlanRead]:
    plans = await SubscriptionPlanRepository(session).list(filters={"is_active": True})
    return [PlanRead.model_validate(plan) for plan in plans]
