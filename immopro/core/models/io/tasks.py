"""
Task I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from immopro.core.models.domain.enums import TaskPriority, TaskStatus

from .contacts import ContactSummary
from .properties import PropertySummary


class TaskCreate(BaseModel):
    """Schema for creating a task."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    contact_id: Optional[int] = None
    property_id: Optional[int] = None


class TaskUpdate(BaseModel):
    """Schema for updating a task. Only provided fields are changed."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None


class TaskRead(BaseModel):
    """Schema for reading a task."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    agent_id: int
    contact_id: Optional[int] = None
    property_id: Optional[int] = None
    created_at: datetime


class TaskDetail(TaskRead):
    """Task with the summaries of its linked contact and property."""

    contact: Optional[ContactSummary] = None
    property: Optional[PropertySummary] = None
