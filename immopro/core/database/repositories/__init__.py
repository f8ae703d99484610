"""
Repositories of the entities shared by several services.

Routers dealing with a single resource talk to the session directly; the
repositories below back the services that cross resource boundaries (auth,
billing, notifications, matching).
"""

from .base import BaseRepository, QueryBuilder
from .contacts import ContactRepository
from .notifications import NotificationRepository, PushSubscriptionRepository
from .subscriptions import (
    StripeWebhookEventRepository,
    SubscriptionPlanRepository,
    SubscriptionRepository,
)
from .users import UserRepository

__all__ = [
    "BaseRepository",
    "ContactRepository",
    "NotificationRepository",
    "PushSubscriptionRepository",
    "QueryBuilder",
    "StripeWebhookEventRepository",
    "SubscriptionPlanRepository",
    "SubscriptionRepository",
    "UserRepository",
]
