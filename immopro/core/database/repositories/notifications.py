"""
Notification repositories.

This module provides data access operations for the notification journal
and for the web push subscriptions of agents.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import delete as sql_delete
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.notifications import Notification, PushSubscription
from .base import BaseRepository, QueryBuilder


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notification data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def create(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def get_by_id(self, notification_id: int) -> Optional[Notification]:
        stmt = select(Notification).where(Notification.id == notification_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def delete(self, notification_id: int) -> bool:
        notification = await self.get_by_id(notification_id)
        if notification:
            await self.session.delete(notification)
            await self.session.commit()
            return True
        return False

    async def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        """List notifications, most recent first.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (agent_id, contact_id, type, status, channel)

        Returns:
            List of Notification instances
        """
        stmt = select(Notification).order_by(Notification.sent_at.desc(), Notification.id.desc())
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Notification, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(Notification)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Notification, filters)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_by(self, column: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Count notifications grouped by one column.

        Args:
            column: Name of the grouping column (type, channel or status)
            filters: Field filters applied before grouping

        Returns:
            ``[{"key": value, "count": n}, ...]`` ordered by descending count
        """
        group_column = getattr(Notification, column)
        stmt = select(group_column, func.count()).select_from(Notification)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Notification, filters)
        stmt = stmt.group_by(group_column).order_by(func.count().desc())
        result = await self.session.execute(stmt)
        return [{"key": key, "count": count} for key, count in result.all()]


class PushSubscriptionRepository:
    """Web push subscriptions of agents."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_agent(self, agent_id: int) -> List[PushSubscription]:
        stmt = select(PushSubscription).where(PushSubscription.agent_id == agent_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def save(self, agent_id: int, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
        """Store a push subscription, refreshing the keys when the endpoint is known.

        Returns:
            The stored subscription
        """
        stmt = select(PushSubscription).where(
            PushSubscription.agent_id == agent_id, PushSubscription.endpoint == endpoint
        )
        result = await self.session.execute(stmt)
        subscription = result.scalar_one_or_none()
        if subscription is None:
            subscription = PushSubscription(agent_id=agent_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
        else:
            subscription.p256dh = p256dh
            subscription.auth = auth
        self.session.add(subscription)
        await self.session.commit()
        await self.session.refresh(subscription)
        return subscription

    async def remove(self, agent_id: int, endpoint: str) -> int:
        """Remove the subscription of an agent for one endpoint.

        Returns:
            Number of deleted rows
        """
        stmt = sql_delete(PushSubscription).where(
            PushSubscription.agent_id == agent_id, PushSubscription.endpoint == endpoint
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def delete(self, subscription: PushSubscription) -> None:
        await self.session.delete(subscription)
        await self.session.commit()
