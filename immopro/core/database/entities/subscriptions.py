"""
Billing entity models.

This module contains the Stripe backed subscription records:
- SubscriptionPlan: the commercial plans and their resource limits
- Subscription: the current subscription of a user
- StripeWebhookEvent: journal of received Stripe webhook events
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import JSON, Field

from ..base import Base


class SubscriptionPlan(Base, table=True):
    """Commercial plan. A ``None`` limit means unlimited.

    Table: subscription_plans
    """

    __tablename__ = "subscription_plans"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=32, description="starter, pro or premium")
    display_name: str = Field(max_length=100)
    stripe_price_id: str = Field(max_length=255, unique=True, index=True)
    amount: int = Field(description="Price in cents")
    currency: str = Field(default="eur", max_length=3)
    interval: str = Field(default="month", max_length=10)
    max_properties: Optional[int] = Field(default=None)
    max_contacts: Optional[int] = Field(default=None)
    max_employees: Optional[int] = Field(default=None)
    features: List[str] = Field(default_factory=list, sa_type=JSON)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def __repr__(self) -> str:
        return f"SubscriptionPlan(name={self.name}, price={self.stripe_price_id}, amount={self.amount})"


class Subscription(Base, table=True):
    """Current Stripe subscription of a user.

    Table: subscriptions
    """

    __tablename__ = "subscriptions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    stripe_subscription_id: str = Field(max_length=255, unique=True, index=True)
    stripe_price_id: str = Field(max_length=255)
    stripe_customer_id: str = Field(max_length=255, index=True)
    status: str = Field(max_length=32)
    plan_name: str = Field(max_length=32)
    amount: int = Field(default=0, description="Price in cents")
    currency: str = Field(default="eur", max_length=3)
    interval: str = Field(default="month", max_length=10)
    current_period_start: Optional[datetime] = Field(default=None)
    current_period_end: Optional[datetime] = Field(default=None)
    cancel_at_period_end: bool = Field(default=False)
    canceled_at: Optional[datetime] = Field(default=None)
    trial_end: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    @property
    def monthly_amount(self) -> float:
        """Amount normalized to one month, in cents."""
        if self.interval == "year":
            return self.amount / 12
        return float(self.amount)

    def __repr__(self) -> str:
        return f"Subscription(user_id={self.user_id}, plan={self.plan_name}, status={self.status})"


class StripeWebhookEvent(Base, table=True):
    """Received Stripe webhook event.

    Table: stripe_webhook_events
    """

    __tablename__ = "stripe_webhook_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    stripe_event_id: str = Field(max_length=255, unique=True, index=True)
    type: str = Field(max_length=100, index=True)
    data: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    processed: bool = Field(default=False)
    processed_at: Optional[datetime] = Field(default=None)
    error: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
