"""
Web Push Subscription Endpoints.

Browsers of an agent register here to receive push notifications.
"""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter

from immopro.core.database.repositories.notifications import PushSubscriptionRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.io.notifications import PushPublicKey, PushSubscriptionCreate, PushUnsubscribe
from immopro.server.core.config import settings
from immopro.server.services.deps import CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["push"])


@router.post(
    "/subscribe-push",
    summary="Register Push Subscription",
    description="Store the browser push subscription of the caller. Known endpoints get their keys refreshed.",
)
async def subscribe_push(payload: PushSubscriptionCreate, user: CurrentUser, session: SessionDep) -> Dict[str, str]:
    await PushSubscriptionRepository(session).save(
        agent_id=user.id,
        endpoint=payload.endpoint,
        p256dh=payload.keys.p256dh,
        auth=payload.keys.auth,
    )
    logger.info(f"Push subscription registered for agent {user.id}")
    return {"message": "Push subscription registered"}


@router.post(
    "/unsubscribe-push",
    summary="Remove Push Subscription",
)
async def unsubscribe_push(payload: PushUnsubscribe, user: CurrentUser, session: SessionDep) -> Dict[str, str]:
    removed = await PushSubscriptionRepository(session).remove(user.id, payload.endpoint)
    logger.info(f"Removed {removed} push subscription(s) of agent {user.id}")
    return {"message": "Push subscription removed"}


@router.get(
    "/push-public-key",
    response_model=PushPublicKey,
    summary="VAPID Public Key",
    description="Application server key the browser needs to subscribe. Null when web push is not configured.",
)
async def push_public_key(user: CurrentUser) -> PushPublicKey:
    return PushPublicKey(public_key=settings.web_push.public_key)
