"""
API Dependencies.

Authentication, role and subscription guards shared by the routers, exposed
as ``Annotated`` aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Callable, List, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from immopro.core.database import get_session
from immopro.core.database.entities.subscriptions import Subscription
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.subscriptions import SubscriptionRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import ACTIVE_SUBSCRIPTION_STATUSES, SubscriptionStatus, UserRole
from immopro.server.core.security import decode_access_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    session: SessionDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """
    Resolve the authenticated user from the Bearer token.

    Raises:
        HTTPException: 401 when the token is missing, invalid, expired or
            belongs to a user that no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authentication required")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.PyJWTError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("user_id")
    if user_id is None:
        raise _unauthorized("Invalid token")

    user = await UserRepository(session).get_by_id(int(user_id))
    if user is None:
        raise _unauthorized("User not found")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: UserRole) -> Callable:
    """Build a dependency accepting only users holding one of ``roles``."""
    allowed = {role.value for role in roles}

    async def _require_roles(user: CurrentUser) -> User:
        if user.role not in allowed:
            logger.info(f"User {user.id} with role {user.role} denied, requires one of {sorted(allowed)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires one of the roles: {', '.join(sorted(allowed))}",
            )
        return user

    return _require_roles


OwnerUser = Annotated[User, Depends(require_roles(UserRole.OWNER))]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
ManagerUser = Annotated[User, Depends(require_roles(UserRole.OWNER, UserRole.ADMIN))]


async def get_agency_member_ids(user: CurrentUser, session: SessionDep) -> List[int]:
    """Ids of every user sharing the caller's agency, the caller included."""
    return await UserRepository(session).agency_member_ids(user.agency_id)


AgencyMemberIds = Annotated[List[int], Depends(get_agency_member_ids)]


async def get_subscription(user: CurrentUser, session: SessionDep) -> Optional[Subscription]:
    """Subscription of the caller's agency owner, or of the caller itself."""
    return await SubscriptionRepository(session).get_by_user_id(user.agency_id)


def subscription_is_active(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    """True when the subscription is active or trialing and not past its period end.

    Trialing subscriptions are not checked against the period end.
    """
    if subscription is None or subscription.status not in ACTIVE_SUBSCRIPTION_STATUSES:
        return False
    if subscription.status == SubscriptionStatus.TRIALING.value:
        return True
    now = now or datetime.utcnow()
    return subscription.current_period_end is None or subscription.current_period_end >= now


async def require_subscription(
    subscription: Annotated[Optional[Subscription], Depends(get_subscription)],
) -> Subscription:
    """
    Accept only callers whose agency holds a usable subscription.

    Raises:
        HTTPException: 403 with ``requires_subscription`` set when the
            subscription is missing, inactive or expired.
    """
    if subscription is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Subscription required",
                "message": "This feature requires an active subscription",
                "requires_subscription": True,
            },
        )
    if subscription.status not in ACTIVE_SUBSCRIPTION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Subscription inactive",
                "message": "Your subscription is no longer active, please renew it",
                "requires_subscription": True,
                "subscription_status": subscription.status,
            },
        )
    if not subscription_is_active(subscription):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Subscription expired",
                "message": "Your subscription has expired, please renew it",
                "requires_subscription": True,
                "expires_at": subscription.current_period_end.isoformat(),
            },
        )
    return subscription


ActiveSubscription = Annotated[Subscription, Depends(require_subscription)]


def require_plan(*plans: str) -> Callable:
    """Build a dependency accepting only subscriptions on one of ``plans``."""

    async def _require_plan(
        subscription: Annotated[Optional[Subscription], Depends(get_subscription)],
    ) -> Subscription:
        if subscription is None or subscription.plan_name not in plans:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "Insufficient plan",
                    "message": f"This feature requires the {' or '.join(plans)} plan",
                    "current_plan": subscription.plan_name if subscription else None,
                    "required_plans": list(plans),
                },
            )
        return subscription

    return _require_plan
