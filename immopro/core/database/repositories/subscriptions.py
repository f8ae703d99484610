"""
Billing repositories.

This module provides data access operations for subscriptions, subscription
plans and the Stripe webhook event journal.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.subscriptions import StripeWebhookEvent, Subscription, SubscriptionPlan
from .base import BaseRepository, QueryBuilder


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for subscription data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Subscription)

    async def create(self, subscription: Subscription) -> Subscription:
        self.session.add(subscription)
        await self.session.commit()
        await self.session.refresh(subscription)
        return subscription

    async def get_by_id(self, subscription_id: int) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.id == subscription_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: int) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_stripe_id(self, stripe_subscription_id: str) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, subscription: Subscription) -> Subscription:
        subscription.updated_at = datetime.utcnow()
        self.session.add(subscription)
        await self.session.commit()
        await self.session.refresh(subscription)
        return subscription

    async def delete(self, subscription_id: int) -> bool:
        subscription = await self.get_by_id(subscription_id)
        if subscription:
            await self.session.delete(subscription)
            await self.session.commit()
            return True
        return False

    async def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Subscription]:
        """List subscriptions, newest first.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (status, plan_name)

        Returns:
            List of Subscription instances
        """
        stmt = select(Subscription).order_by(Subscription.created_at.desc())
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Subscription, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(Subscription)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Subscription, filters)
        result = await self.session.execute(stmt)
        return result.scalar_one()


class SubscriptionPlanRepository(BaseRepository[SubscriptionPlan]):
    """Repository for subscription plans."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SubscriptionPlan)

    async def create(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        self.session.add(plan)
        await self.session.commit()
        await self.session.refresh(plan)
        return plan

    async def get_by_id(self, plan_id: int) -> Optional[SubscriptionPlan]:
        stmt = select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_price_id(self, stripe_price_id: str) -> Optional[SubscriptionPlan]:
        stmt = select(SubscriptionPlan).where(SubscriptionPlan.stripe_price_id == stripe_price_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        self.session.add(plan)
        await self.session.commit()
        await self.session.refresh(plan)
        return plan

    async def delete(self, plan_id: int) -> bool:
        plan = await self.get_by_id(plan_id)
        if plan:
            await self.session.delete(plan)
            await self.session.commit()
            return True
        return False

    async def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[SubscriptionPlan]:
        """List plans ordered by price, cheapest first.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (is_active, name)
        """
        stmt = select(SubscriptionPlan).order_by(SubscriptionPlan.amount)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, SubscriptionPlan, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class StripeWebhookEventRepository:
    """Journal of received Stripe webhook events."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_event_id(self, stripe_event_id: str) -> Optional[StripeWebhookEvent]:
        stmt = select(StripeWebhookEvent).where(StripeWebhookEvent.stripe_event_id == stripe_event_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def record(self, stripe_event_id: str, event_type: str, data: Dict[str, Any]) -> Optional[StripeWebhookEvent]:
        """Store a received event.

        Returns:
            The stored event, or None when an event with the same id was
            already recorded.
        """
        event = StripeWebhookEvent(stripe_event_id=stripe_event_id, type=event_type, data=data)
        self.session.add(event)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return None
        await self.session.refresh(event)
        return event

    async def mark_processed(self, event: StripeWebhookEvent) -> StripeWebhookEvent:
        event.processed = True
        event.processed_at = datetime.utcnow()
        event.error = None
        self.session.add(event)
        await self.session.commit()
        await self.session.refresh(event)
        return event

    async def mark_failed(self, event: StripeWebhookEvent, error: str) -> StripeWebhookEvent:
        event.processed = False
        event.error = error
        self.session.add(event)
        await self.session.commit()
        await self.session.refresh(event)
        return event
