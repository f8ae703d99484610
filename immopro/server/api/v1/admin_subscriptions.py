"""
Subscription Administration Endpoints.

Platform administrators inspect every subscription and act on them in
Stripe: cancellation, reactivation, free days and plan changes.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from sqlmodel import select

from immopro.core.database.entities.subscriptions import Subscription
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.subscriptions import SubscriptionPlanRepository, SubscriptionRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import ACTIVE_SUBSCRIPTION_STATUSES, SubscriptionStatus
from immopro.core.models.io.billing import (
    AdminCancelRequest,
    AdminSubscriptionPage,
    AdminSubscriptionRead,
    BillingInvoice,
    ExtendRequest,
    PlanCount,
    SubscriptionRead,
    SubscriptionStats,
    UpdatePlanRequest,
)
from immopro.server.services import stripe_service
from immopro.server.services.deps import AdminUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["admin"])


def _admin_read(subscription: Subscription, user: Optional[User]) -> AdminSubscriptionRead:
    return AdminSubscriptionRead(
        **SubscriptionRead.model_validate(subscription).model_dump(),
        user_email=user.email if user else None,
        user_name=user.full_name if user else None,
    )


async def _get_subscription(session, user_id: int) -> Subscription:
    subscription = await SubscriptionRepository(session).get_by_user_id(user_id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No subscription for user {user_id}")
    return subscription


@router.get(
    "",
    response_model=AdminSubscriptionPage,
    summary="List Subscriptions",
    description="Every subscription with its subscriber, newest first.",
)
async def list_subscriptions(
    admin: AdminUser,
    session: SessionDep,
    subscription_status: Optional[SubscriptionStatus] = Query(default=None, alias="status"),
    plan_name: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> AdminSubscriptionPage:
    filters = {
        "status": subscription_status.value if subscription_status else None,
        "plan_name": plan_name,
    }
    repository = SubscriptionRepository(session)
    total = await repository.count(filters)
    subscriptions = await repository.list(limit=limit, offset=(page - 1) * limit, filters=filters)

    user_ids = [subscription.user_id for subscription in subscriptions]
    users: Dict[int, User] = {}
    if user_ids:
        result = await session.execute(select(User).where(User.id.in_(user_ids)))
        users = {user.id: user for user in result.scalars().all()}

    return AdminSubscriptionPage(
        subscriptions=[_admin_read(subscription, users.get(subscription.user_id)) for subscription in subscriptions],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.get(
    "/stats",
    response_model=SubscriptionStats,
    summary="Subscription Statistics",
    description="Counts by status and plan, and the monthly recurring revenue of active and trialing subscriptions.",
)
async def subscription_stats(admin: AdminUser, session: SessionDep) -> SubscriptionStats:
    subscriptions = await SubscriptionRepository(session).list()
    by_status = Counter(subscription.status for subscription in subscriptions)
    by_plan = Counter(subscription.plan_name for subscription in subscriptions)
    mrr_cents = sum(
        subscription.monthly_amount
        for subscription in subscriptions
        if subscription.status in ACTIVE_SUBSCRIPTION_STATUSES
    )
    return SubscriptionStats(
        total=len(subscriptions),
        active=by_status[SubscriptionStatus.ACTIVE.value],
        canceled=by_status[SubscriptionStatus.CANCELED.value],
        past_due=by_status[SubscriptionStatus.PAST_DUE.value],
        mrr=round(mrr_cents / 100, 2),
        by_plan=[PlanCount(plan_name=name, count=count) for name, count in by_plan.most_common()],
    )


@router.get(
    "/{user_id}",
    response_model=AdminSubscriptionRead,
    summary="Subscription Detail",
    responses={404: {"description": "No subscription"}},
)
async def get_subscription(user_id: int, admin: AdminUser, session: SessionDep) -> AdminSubscriptionRead:
    subscription = await _get_subscription(session, user_id)
    user = await UserRepository(session).get_by_id(user_id)
    return _admin_read(subscription, user)


@router.post(
    "/{user_id}/cancel",
    response_model=SubscriptionRead,
    summary="Cancel Subscription",
    description="Cancel a subscription at the end of its period, or right away with ``immediate``.",
    responses={
        400: {"description": "Subscription already canceled"},
        404: {"description": "No subscription"},
    },
)
async def cancel_subscription(
    user_id: int,
    payload: AdminCancelRequest,
    admin: AdminUser,
    session: SessionDep,
) -> SubscriptionRead:
    subscription = await _get_subscription(session, user_id)
    if subscription.status == SubscriptionStatus.CANCELED.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subscription is already canceled")

    await stripe_service.cancel_subscription(subscription.stripe_subscription_id, immediate=payload.immediate)
    if payload.immediate:
        subscription.status = SubscriptionStatus.CANCELED.value
        subscription.canceled_at = datetime.utcnow()
    else:
        subscription.cancel_at_period_end = True
    subscription = await SubscriptionRepository(session).update(subscription)
    logger.info(
        f"Admin {admin.id} canceled subscription of user {user_id}", extra={"immediate": payload.immediate}
    )
    return SubscriptionRead.model_validate(subscription)


@router.post(
    "/{user_id}/reactivate",
    response_model=SubscriptionRead,
    summary="Reactivate Subscription",
    description="Undo a pending cancellation. Subscriptions already canceled cannot be reactivated.",
    responses={
        400: {"description": "Subscription already canceled"},
        404: {"description": "No subscription"},
    },
)
async def reactivate_subscription(user_id: int, admin: AdminUser, session: SessionDep) -> SubscriptionRead:
    subscription = await _get_subscription(session, user_id)
    if subscription.status == SubscriptionStatus.CANCELED.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A canceled subscription cannot be reactivated, a new checkout is required",
        )

    await stripe_service.reactivate_subscription(subscription.stripe_subscription_id)
    subscription.cancel_at_period_end = False
    subscription = await SubscriptionRepository(session).update(subscription)
    logger.info(f"Admin {admin.id} reactivated subscription of user {user_id}")
    return SubscriptionRead.model_validate(subscription)


@router.post(
    "/{user_id}/extend",
    response_model=SubscriptionRead,
    summary="Offer Free Days",
    description="Push the end of the current period by a number of days, as a trial extension in Stripe.",
    responses={404: {"description": "No subscription"}},
)
async def extend_subscription(
    user_id: int,
    payload: ExtendRequest,
    admin: AdminUser,
    session: SessionDep,
) -> SubscriptionRead:
    subscription = await _get_subscription(session, user_id)
    start = max(subscription.current_period_end or datetime.utcnow(), datetime.utcnow())
    new_end = start + timedelta(days=payload.days)

    await stripe_service.extend_trial(subscription.stripe_subscription_id, new_end)
    subscription.current_period_end = new_end
    subscription.trial_end = new_end
    subscription = await SubscriptionRepository(session).update(subscription)

    users = UserRepository(session)
    user = await users.get_by_id(user_id)
    if user is not None:
        user.subscription_end_date = new_end
        await users.update(user)

    logger.info(f"Admin {admin.id} extended subscription of user {user_id} by {payload.days} days")
    return SubscriptionRead.model_validate(subscription)


@router.post(
    "/{user_id}/update-plan",
    response_model=SubscriptionRead,
    summary="Change Plan",
    description="Switch a subscription to another price, without proration.",
    responses={404: {"description": "No subscription"}},
)
async def update_plan(
    user_id: int,
    payload: UpdatePlanRequest,
    admin: AdminUser,
    session: SessionDep,
) -> SubscriptionRead:
    subscription = await _get_subscription(session, user_id)
    await stripe_service.update_subscription_price(subscription.stripe_subscription_id, payload.new_price_id)

    subscription.stripe_price_id = payload.new_price_id
    subscription.plan_name = payload.new_plan_name
    plan = await SubscriptionPlanRepository(session).get_by_price_id(payload.new_price_id)
    if plan is not None:
        subscription.amount = plan.amount
        subscription.interval = plan.interval
    subscription = await SubscriptionRepository(session).update(subscription)

    users = UserRepository(session)
    user = await users.get_by_id(user_id)
    if user is not None:
        user.subscription_plan = payload.new_plan_name
        await users.update(user)

    logger.info(f"Admin {admin.id} moved user {user_id} to plan {payload.new_plan_name}")
    return SubscriptionRead.model_validate(subscription)


@router.get(
    "/{user_id}/invoices",
    response_model=List[BillingInvoice],
    summary="Subscriber Invoices",
    responses={404: {"description": "User not found"}},
)
async def list_user_invoices(user_id: int, admin: AdminUser, session: SessionDep) -> List[BillingInvoice]:
    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")
    if not user.stripe_customer_id:
        return []
    invoices = await stripe_service.list_invoices(user.stripe_customer_id, limit=20)
    return [BillingInvoice(**invoice) for invoice in invoices]
