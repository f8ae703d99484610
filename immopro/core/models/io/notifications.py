"""
Notification and web push I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from immopro.core.models.domain.enums import NotificationChannel, NotificationStatus, NotificationType


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType
    channel: NotificationChannel
    recipient: str
    subject: Optional[str] = None
    body: str
    status: NotificationStatus
    payload: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    contact_id: Optional[int] = None
    agent_id: Optional[int] = None
    sent_at: datetime


class NotificationList(BaseModel):
    notifications: List[NotificationRead]
    total: int


class CountByKey(BaseModel):
    key: str
    count: int


class NotificationStats(BaseModel):
    total: int
    by_type: List[CountByKey]
    by_channel: List[CountByKey]
    by_status: List[CountByKey]


class TestNotificationRequest(BaseModel):
    contact_id: int


class ReminderResult(BaseModel):
    sent: int
    failed: int


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionCreate(BaseModel):
    """Browser ``PushSubscription`` serialized with ``toJSON()``."""

    endpoint: str = Field(min_length=1)
    keys: PushKeys


class PushUnsubscribe(BaseModel):
    endpoint: str = Field(min_length=1)


class PushPublicKey(BaseModel):
    public_key: Optional[str] = None
