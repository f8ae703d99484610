"""
Contact I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from immopro.core.models.domain.enums import ContactType


class ContactCriteria(BaseModel):
    """Search criteria of a buyer."""

    budget_min: Optional[int] = Field(default=None, ge=0)
    budget_max: Optional[int] = Field(default=None, ge=0)
    city_preferences: Optional[str] = Field(default=None, description="Comma separated list of cities")
    min_bedrooms: Optional[int] = Field(default=None, ge=0)
    min_area: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_budget_range(self):
        if self.budget_min is not None and self.budget_max is not None and self.budget_min > self.budget_max:
            raise ValueError("budget_min must not exceed budget_max")
        return self


class ContactCreate(ContactCriteria):
    """Schema for creating a contact."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    type: ContactType = ContactType.BUYER


class ContactUpdate(BaseModel):
    """Schema for updating a contact. Only provided fields are changed."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone_number: Optional[str] = None
    type: Optional[ContactType] = None
    budget_min: Optional[int] = Field(default=None, ge=0)
    budget_max: Optional[int] = Field(default=None, ge=0)
    city_preferences: Optional[str] = None
    min_bedrooms: Optional[int] = Field(default=None, ge=0)
    min_area: Optional[int] = Field(default=None, ge=0)


class ContactRead(BaseModel):
    """Schema for reading a contact."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    type: ContactType
    agent_id: int
    budget_min: Optional[int] = None
    budget_max: Optional[int] = None
    city_preferences: Optional[str] = None
    min_bedrooms: Optional[int] = None
    min_area: Optional[int] = None
    notify_by_email: bool
    notify_by_push: bool
    created_at: datetime


class ContactSummary(BaseModel):
    """Short view of a contact, embedded in tasks and invoices."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    type: ContactType


class NotificationPreferencesUpdate(BaseModel):
    """Schema for updating the notification channels of a contact."""

    notify_by_email: Optional[bool] = None
    notify_by_push: Optional[bool] = None
    push_token: Optional[str] = None
