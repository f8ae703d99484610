"""
Appointment Endpoints.

The visits booked with the caller through the public calendar.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from immopro.core.database.entities.appointments import Appointment
from immopro.core.logging_config import get_logger
from immopro.core.models.io.appointments import AppointmentRead, AppointmentStatusUpdate
from immopro.server.services.activity import log_activity
from immopro.server.services.deps import CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["appointments"])


@router.get(
    "",
    response_model=List[AppointmentRead],
    summary="List Appointments",
    description="List the caller's appointments by date.",
)
async def list_appointments(user: CurrentUser, session: SessionDep) -> List[AppointmentRead]:
    stmt = select(Appointment).where(Appointment.agent_id == user.id).order_by(Appointment.appointment_date)
    result = await session.execute(stmt)
    return [AppointmentRead.model_validate(appointment) for appointment in result.scalars().all()]


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentRead,
    summary="Update Appointment Status",
    description="Confirm or cancel an appointment.",
    responses={404: {"description": "Appointment not found"}},
)
async def update_appointment_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    user: CurrentUser,
    session: SessionDep,
) -> AppointmentRead:
    appointment = await session.get(Appointment, appointment_id)
    if appointment is None or appointment.agent_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Appointment {appointment_id} not found")

    appointment.status = payload.status.value
    log_activity(
        session,
        user.id,
        f"APPOINTMENT_{payload.status.value}",
        f"Appointment with {appointment.client_name} set to {payload.status.value}",
        entity_type="appointment",
        entity_id=appointment.id,
    )
    session.add(appointment)
    await session.commit()
    await session.refresh(appointment)
    return AppointmentRead.model_validate(appointment)
