"""
Activity log entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base


class ActivityLog(Base, table=True):
    """Audit trail entry of something an agent did.

    Table: activity_logs
    """

    __tablename__ = "activity_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: int = Field(foreign_key="users.id", index=True)
    action: str = Field(max_length=50, description="e.g. PROPERTY_CREATED, NEW_LEAD")
    entity_type: Optional[str] = Field(default=None, max_length=50)
    entity_id: Optional[int] = Field(default=None)
    description: str = Field(description="Human readable summary")

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
