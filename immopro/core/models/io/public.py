"""
I/O models of the unauthenticated public surface.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .auth import AgentSummary
from .properties import PropertyImageRead, PropertyRead


class PublicPropertyRead(PropertyRead):
    agent: Optional[AgentSummary] = None
    images: List[PropertyImageRead] = Field(default_factory=list)


class LeadCreate(BaseModel):
    """Submission of the public contact form."""

    agent_id: int
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=30)
    message: Optional[str] = None
    property_id: Optional[int] = None


class LeadCreated(BaseModel):
    contact_id: int
    message: str
