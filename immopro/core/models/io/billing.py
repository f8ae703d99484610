"""
Billing I/O models for the subscription, checkout and admin endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionRequest(BaseModel):
    price_id: str = Field(min_length=1, description="Stripe price to subscribe to")


class CheckoutSessionResponse(BaseModel):
    url: str
    session_id: str


class PortalSessionResponse(BaseModel):
    url: str


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    stripe_subscription_id: str
    stripe_price_id: str
    status: str
    plan_name: str
    amount: int
    currency: str
    interval: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None
    trial_end: Optional[datetime] = None


class SubscriptionStatusResponse(BaseModel):
    has_subscription: bool
    status: Optional[str] = None
    subscription: Optional[SubscriptionRead] = None


class PlanRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_name: str
    stripe_price_id: str
    amount: int
    currency: str
    interval: str
    max_properties: Optional[int] = None
    max_contacts: Optional[int] = None
    max_employees: Optional[int] = None
    features: List[str] = Field(default_factory=list)


class BillingInvoice(BaseModel):
    """Invoice issued by Stripe, formatted for display."""

    id: str
    number: Optional[str] = None
    amount_paid: int
    currency: str
    status: Optional[str] = None
    created: datetime
    invoice_pdf: Optional[str] = None
    hosted_invoice_url: Optional[str] = None


class AdminSubscriptionRead(SubscriptionRead):
    user_email: Optional[str] = None
    user_name: Optional[str] = None


class AdminSubscriptionPage(BaseModel):
    subscriptions: List[AdminSubscriptionRead]
    total: int
    page: int
    limit: int
    total_pages: int


class PlanCount(BaseModel):
    plan_name: str
    count: int


class SubscriptionStats(BaseModel):
    total: int
    active: int
    canceled: int
    past_due: int
    mrr: float = Field(description="Monthly recurring revenue in euros")
    by_plan: List[PlanCount]


class AdminCancelRequest(BaseModel):
    immediate: bool = False


class ExtendRequest(BaseModel):
    days: int = Field(ge=1, description="Number of days to add to the current period")


class UpdatePlanRequest(BaseModel):
    new_price_id: str = Field(min_length=1)
    new_plan_name: str = Field(min_length=1)
