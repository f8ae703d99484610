"""
Contact entity models.

Contacts are the buyers and sellers an agent works with. Buyers carry their
search criteria, used by the matching scorer, and their notification
preferences.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from immopro.core.models.domain.enums import ContactType

from ..base import Base


class ContactBase(Base):
    """Base fields for contact entity."""

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100, index=True)
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    type: str = Field(default=ContactType.BUYER.value, max_length=10, description="BUYER or SELLER")

    # Search criteria
    budget_min: Optional[int] = Field(default=None, ge=0)
    budget_max: Optional[int] = Field(default=None, ge=0)
    city_preferences: Optional[str] = Field(default=None, description="Comma separated list of cities")
    min_bedrooms: Optional[int] = Field(default=None, ge=0)
    min_area: Optional[int] = Field(default=None, ge=0)


class Contact(ContactBase, table=True):
    """Entity for a buyer or seller contact.

    Table: contacts
    """

    __tablename__ = "contacts"

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: int = Field(foreign_key="users.id", index=True)

    # Notification preferences
    notify_by_email: bool = Field(default=True)
    notify_by_push: bool = Field(default=False)
    push_token: Optional[str] = Field(default=None, description="Device token for push notifications")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_notification_channel(self) -> bool:
        return bool((self.notify_by_email and self.email) or (self.notify_by_push and self.push_token))

    def __repr__(self) -> str:
        return f"Contact(id={self.id}, name={self.full_name}, type={self.type})"
