"""
Task entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from immopro.core.models.domain.enums import TaskPriority, TaskStatus

from ..base import Base


class TaskBase(Base):
    """Base fields for task entity."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None)
    status: str = Field(default=TaskStatus.PENDING.value, max_length=10)
    priority: str = Field(default=TaskPriority.MEDIUM.value, max_length=10)
    due_date: Optional[datetime] = Field(default=None)


class Task(TaskBase, table=True):
    """Entity for an agent's to-do item, optionally tied to a contact or property.

    Table: tasks
    """

    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: int = Field(foreign_key="users.id", index=True)
    contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id")
    property_id: Optional[int] = Field(default=None, foreign_key="properties.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Task(id={self.id}, title={self.title}, status={self.status})"
