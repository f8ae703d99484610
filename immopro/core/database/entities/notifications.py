"""
Notification entity models.

This module contains the delivery journal of every notification and the web
push subscriptions registered by agents' browsers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Field

from immopro.core.models.domain.enums import NotificationStatus

from ..base import Base


class Notification(Base, table=True):
    """One delivery attempt of a notification on one channel.

    Table: notifications
    """

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(max_length=32, index=True)
    channel: str = Field(max_length=10)
    recipient: str = Field(max_length=500, description="Email address or push endpoint")
    subject: Optional[str] = Field(default=None, max_length=255)
    body: str = Field(default="")
    status: str = Field(default=NotificationStatus.SENT.value, max_length=10, index=True)
    payload: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON, description="Context of the notification")
    error: Optional[str] = Field(default=None)
    contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id", index=True)
    agent_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)

    sent_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"Notification(id={self.id}, type={self.type}, channel={self.channel}, status={self.status})"


class PushSubscription(Base, table=True):
    """Browser push subscription of an agent.

    Table: push_subscriptions
    """

    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("agent_id", "endpoint", name="uq_push_subscription_endpoint"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: int = Field(foreign_key="users.id", index=True)
    endpoint: str = Field(max_length=500)
    p256dh: str = Field(max_length=255)
    auth: str = Field(max_length=255)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def to_subscription_info(self) -> Dict[str, Any]:
        """Shape expected by ``pywebpush.webpush``."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
