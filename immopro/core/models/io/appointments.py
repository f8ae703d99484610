"""
Appointment I/O models for API requests and responses.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from immopro.core.models.domain.enums import AppointmentStatus


class AppointmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agent_id: int
    property_id: Optional[int] = None
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    appointment_date: dt.datetime
    notes: Optional[str] = None
    status: AppointmentStatus
    created_at: dt.datetime


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class PublicAppointmentCreate(BaseModel):
    """Schema for a visit request booked from the public calendar."""

    client_name: str = Field(min_length=1, max_length=200)
    client_email: str = Field(min_length=3, max_length=255)
    client_phone: Optional[str] = Field(default=None, max_length=30)
    date: dt.date
    time: str = Field(pattern=r"^\d{2}:\d{2}$", description="Slot start, HH:MM")
    notes: Optional[str] = None
    property_id: Optional[int] = None


class AvailabilityResponse(BaseModel):
    date: dt.date
    slots: List[str]
