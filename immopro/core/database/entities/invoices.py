"""
Invoice entity models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from immopro.core.models.domain.enums import InvoiceStatus

from ..base import Base


class Invoice(Base, table=True):
    """Entity for an invoice issued by an agent to a contact.

    Table: invoices
    """

    __tablename__ = "invoices"

    id: Optional[int] = Field(default=None, primary_key=True)
    ref: str = Field(max_length=50, unique=True, description="Human readable reference, FAC-YYYYMMDD-N")
    amount: float = Field(gt=0, description="Amount in euros")
    description: Optional[str] = Field(default=None)
    status: str = Field(default=InvoiceStatus.PENDING.value, max_length=10)
    agent_id: int = Field(foreign_key="users.id", index=True)
    contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id")

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Invoice(ref={self.ref}, amount={self.amount}, status={self.status})"
