"""
Subscription plan limits.

Dependencies refusing the creation of properties, contacts or employees once
the agency reached the limit of its plan. A plan without a limit for a
resource (``None``) allows an unlimited number of them.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from immopro.core.database.entities.properties import Property
from immopro.core.database.entities.subscriptions import Subscription, SubscriptionPlan
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.base import QueryBuilder
from immopro.core.database.repositories.contacts import ContactRepository
from immopro.core.database.repositories.subscriptions import SubscriptionPlanRepository, SubscriptionRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import UserRole
from immopro.server.core.config import settings
from immopro.server.exception_handlers.errors import PermissionDeniedError

from .deps import CurrentUser, SessionDep

logger = get_logger(__name__)

Counter = Callable[[AsyncSession, User], Awaitable[int]]


async def count_properties(session: AsyncSession, user: User) -> int:
    agent_ids = await UserRepository(session).agency_member_ids(user.agency_id)
    stmt = QueryBuilder.apply_agency_scope(select(func.count()).select_from(Property), Property, agent_ids)
    return (await session.execute(stmt)).scalar_one()


async def count_contacts(session: AsyncSession, user: User) -> int:
    agent_ids = await UserRepository(session).agency_member_ids(user.agency_id)
    return await ContactRepository(session).count_for_agents(agent_ids)


async def count_employees(session: AsyncSession, user: User) -> int:
    return await UserRepository(session).count_employees(user.agency_id)


async def enforce_limit(
    session: AsyncSession,
    user: User,
    resource: str,
    limit_attribute: str,
    counter: Counter,
) -> None:
    """
    Refuse the creation of one more ``resource`` when the plan limit is reached.

    Args:
        session: Database session
        user: Caller creating the resource
        resource: Plural name of the resource, used in messages
        limit_attribute: ``SubscriptionPlan`` column holding the limit
        counter: Coroutine counting the resources the caller's agency already has

    Raises:
        PermissionDeniedError: When there is no subscription or the limit is reached
    """
    if not settings.plan_limits_enabled or user.role == UserRole.ADMIN.value:
        return

    subscription: Optional[Subscription] = await SubscriptionRepository(session).get_by_user_id(user.agency_id)
    if subscription is None:
        raise PermissionDeniedError(
            {
                "error": "Limit reached",
                "message": f"An active subscription is required to create {resource}",
                "requires_subscription": True,
            }
        )

    plan: Optional[SubscriptionPlan] = await SubscriptionPlanRepository(session).get_by_price_id(
        subscription.stripe_price_id
    )
    limit = getattr(plan, limit_attribute) if plan is not None else None
    if limit is None:
        return

    current_count = await counter(session, user)
    if current_count >= limit:
        logger.warning(
            f"{resource.capitalize()} limit reached",
            extra={"user_id": user.id, "current_count": current_count, "limit": limit},
        )
        raise PermissionDeniedError(
            {
                "error": "Limit reached",
                "message": f"You reached the limit of {limit} {resource} of your {subscription.plan_name} plan",
                "current_count": current_count,
                "limit": limit,
                "plan_name": subscription.plan_name,
                "upgrade_required": True,
            }
        )


async def check_property_limit(user: CurrentUser, session: SessionDep) -> None:
    await enforce_limit(session, user, "properties", "max_properties", count_properties)


async def check_contact_limit(user: CurrentUser, session: SessionDep) -> None:
    await enforce_limit(session, user, "contacts", "max_contacts", count_contacts)


async def check_employee_limit(user: CurrentUser, session: SessionDep) -> None:
    await enforce_limit(session, user, "employees", "max_employees", count_employees)
