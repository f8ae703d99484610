"""
Invoice I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from immopro.core.models.domain.enums import InvoiceStatus

from .contacts import ContactSummary


class InvoiceCreate(BaseModel):
    amount: float = Field(gt=0, description="Amount in euros")
    description: Optional[str] = None
    contact_id: Optional[int] = None


class InvoiceUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ref: str
    amount: float
    description: Optional[str] = None
    status: InvoiceStatus
    agent_id: int
    contact_id: Optional[int] = None
    created_at: datetime
    contact: Optional[ContactSummary] = None
