"""
User entity models.

Users are the agents, agency owners, employees and platform administrators
authenticating against the API. Employees belong to the agency of the owner
referenced by ``owner_id``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from immopro.core.models.domain.enums import SubscriptionStatus, UserRole

from ..base import Base


class UserBase(Base):
    """Base fields for user entity."""

    email: str = Field(max_length=255, unique=True, index=True, description="Login email")
    first_name: str = Field(max_length=100, description="First name")
    last_name: str = Field(max_length=100, description="Last name")
    role: str = Field(default=UserRole.AGENT.value, max_length=20, description="AGENT, OWNER, EMPLOYEE or ADMIN")


class User(UserBase, table=True):
    """Entity for platform users.

    Table: users
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    hashed_password: str = Field(description="bcrypt hash of the password")
    owner_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True, description="Agency owner")

    # Billing state mirrored from Stripe
    stripe_customer_id: Optional[str] = Field(default=None, unique=True, max_length=255)
    subscription_status: str = Field(default=SubscriptionStatus.INACTIVE.value, max_length=32)
    subscription_plan: Optional[str] = Field(default=None, max_length=32)
    subscription_end_date: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    @property
    def agency_id(self) -> Optional[int]:
        """Identifier shared by every member of the user's agency."""
        return self.owner_id or self.id

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, role={self.role})"
