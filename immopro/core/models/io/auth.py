"""
Authentication and user I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from immopro.core.models.domain.enums import UserRole


class RegisterRequest(BaseModel):
    """Schema for self sign-up."""

    email: str = Field(min_length=1, description="Login email")
    password: str = Field(min_length=1, description="Plain text password, checked for strength")
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class LoginRequest(BaseModel):
    """Schema for login."""

    email: str
    password: str


class UserRead(BaseModel):
    """Public view of a user. Never exposes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    owner_id: Optional[int] = None
    subscription_status: str
    subscription_plan: Optional[str] = None
    subscription_end_date: Optional[datetime] = None
    created_at: datetime


class TokenResponse(BaseModel):
    """Schema returned by register and login."""

    token: str
    user: UserRead


class AgentSummary(BaseModel):
    """Short view of a user, embedded in other resources."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
