"""
Appointment entity models.

Appointments are visit requests booked by prospective clients through the
public agent calendar.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from immopro.core.models.domain.enums import AppointmentStatus

from ..base import Base


class Appointment(Base, table=True):
    """Entity for a visit appointment with an agent.

    Table: appointments
    """

    __tablename__ = "appointments"

    id: Optional[int] = Field(default=None, primary_key=True)
    agent_id: int = Field(foreign_key="users.id", index=True)
    property_id: Optional[int] = Field(default=None, foreign_key="properties.id")
    client_name: str = Field(max_length=200)
    client_email: str = Field(max_length=255)
    client_phone: Optional[str] = Field(default=None, max_length=30)
    appointment_date: datetime = Field(index=True)
    notes: Optional[str] = Field(default=None)
    status: str = Field(default=AppointmentStatus.PENDING.value, max_length=10)
    reminder_sent: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Appointment(id={self.id}, date={self.appointment_date}, status={self.status})"
