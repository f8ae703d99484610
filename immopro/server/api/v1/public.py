"""
Public Endpoints.

Unauthenticated surface used by prospective clients: public property pages,
the agent booking calendar and the contact form.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Header, HTTPException, Query, status
from sqlmodel import select

from immopro.core.database.entities.appointments import Appointment
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.properties import Property, PropertyImage, PropertyView
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.contacts import ContactRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import AppointmentStatus, ContactType
from immopro.core.models.io.appointments import AppointmentRead, AvailabilityResponse, PublicAppointmentCreate
from immopro.core.models.io.auth import AgentSummary
from immopro.core.models.io.properties import PropertyImageRead, PropertyRead
from immopro.core.models.io.public import LeadCreate, LeadCreated, PublicPropertyRead
from immopro.server.core.security import is_valid_email
from immopro.server.services.activity import log_activity
from immopro.server.services.deps import SessionDep
from immopro.server.services.notification_service import NotificationService

logger = get_logger(__name__)

router = APIRouter(tags=["public"])

# Visits start on the hour, the last one ends at 17:00
SLOT_HOURS = range(9, 17)

TABLET_MARKERS = ("ipad", "tablet")
MOBILE_MARKERS = ("mobile", "android", "iphone")


def all_slots() -> List[str]:
    return [f"{hour:02d}:00" for hour in SLOT_HOURS]


def device_from_user_agent(user_agent: Optional[str]) -> str:
    """Classify a User-Agent as ``tablet``, ``mobile`` or ``desktop``."""
    agent = (user_agent or "").lower()
    if any(marker in agent for marker in TABLET_MARKERS):
        return "tablet"
    if any(marker in agent for marker in MOBILE_MARKERS):
        return "mobile"
    return "desktop"


def source_from_referer(referer: Optional[str]) -> Optional[str]:
    if not referer:
        return None
    host = urlparse(referer).netloc
    return host or None


async def _get_agent(session, agent_id: int) -> User:
    agent = await UserRepository(session).get_by_id(agent_id)
    if agent is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Agent {agent_id} not found")
    return agent


async def _booked_slots(session, agent_id: int, day: dt.date) -> set:
    start = dt.datetime.combine(day, dt.time.min)
    stmt = select(Appointment.appointment_date).where(
        Appointment.agent_id == agent_id,
        Appointment.status != AppointmentStatus.CANCELLED.value,
        Appointment.appointment_date >= start,
        Appointment.appointment_date < start + dt.timedelta(days=1),
    )
    result = await session.execute(stmt)
    return {booked.strftime("%H:%M") for booked in result.scalars().all()}


@router.get(
    "/properties/{property_id}",
    response_model=PublicPropertyRead,
    summary="Public Property Page",
    description="A property with its agent and images. Every call is recorded as a page view.",
    responses={404: {"description": "Property not found"}},
)
async def get_public_property(
    property_id: int,
    session: SessionDep,
    source: Optional[str] = Query(default=None, max_length=100, description="Traffic source, e.g. a campaign name"),
    referer: Optional[str] = Header(default=None),
    user_agent: Optional[str] = Header(default=None),
) -> PublicPropertyRead:
    """
    Public property page.

    The view source is the ``source`` query parameter, or else the host of
    the ``Referer`` header. The device is derived from the ``User-Agent``.
    """
    prop = await session.get(Property, property_id)
    if prop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Property {property_id} not found")

    agent = await session.get(User, prop.agent_id)
    images_stmt = (
        select(PropertyImage)
        .where(PropertyImage.property_id == property_id)
        .order_by(PropertyImage.display_order, PropertyImage.id)
    )
    images = (await session.execute(images_stmt)).scalars().all()

    session.add(
        PropertyView(
            property_id=property_id,
            source=(source or source_from_referer(referer) or None),
            device=device_from_user_agent(user_agent),
        )
    )
    await session.commit()

    return PublicPropertyRead(
        **PropertyRead.model_validate(prop).model_dump(),
        agent=AgentSummary.model_validate(agent) if agent else None,
        images=[PropertyImageRead.model_validate(image) for image in images],
    )


@router.get(
    "/agents/{agent_id}/availability",
    response_model=AvailabilityResponse,
    summary="Agent Availability",
    description="Free hourly visit slots of an agent on a given day.",
    responses={404: {"description": "Agent not found"}},
)
async def get_agent_availability(
    agent_id: int,
    session: SessionDep,
    date: dt.date = Query(description="Day, YYYY-MM-DD"),
) -> AvailabilityResponse:
    await _get_agent(session, agent_id)
    booked = await _booked_slots(session, agent_id, date)
    return AvailabilityResponse(date=date, slots=[slot for slot in all_slots() if slot not in booked])


@router.post(
    "/agents/{agent_id}/appointments",
    response_model=AppointmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book a Visit",
    description="Book a free slot of an agent. The agent is notified on their registered browsers.",
    responses={
        400: {"description": "Invalid email, slot outside opening hours, in the past or already booked"},
        404: {"description": "Agent or property not found"},
    },
)
async def book_appointment(
    agent_id: int,
    payload: PublicAppointmentCreate,
    session: SessionDep,
) -> AppointmentRead:
    agent = await _get_agent(session, agent_id)
    if not is_valid_email(payload.client_email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")
    if payload.time not in all_slots():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid time slot")

    hour, minute = (int(part) for part in payload.time.split(":"))
    appointment_date = dt.datetime.combine(payload.date, dt.time(hour, minute))
    if appointment_date < dt.datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This slot is in the past")
    if payload.time in await _booked_slots(session, agent_id, payload.date):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This slot is already booked")

    if payload.property_id is not None:
        prop = await session.get(Property, payload.property_id)
        agency_ids = await UserRepository(session).agency_member_ids(agent.agency_id)
        if prop is None or prop.agent_id not in agency_ids:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"Property {payload.property_id} not found"
            )

    appointment = Appointment(
        agent_id=agent_id,
        property_id=payload.property_id,
        client_name=payload.client_name,
        client_email=payload.client_email,
        client_phone=payload.client_phone,
        appointment_date=appointment_date,
        notes=payload.notes,
        status=AppointmentStatus.PENDING.value,
    )
    session.add(appointment)
    await session.flush()
    log_activity(
        session,
        agent_id,
        "APPOINTMENT_BOOKED",
        f"{appointment.client_name} booked a visit on {appointment_date:%d/%m/%Y %H:%M}",
        entity_type="appointment",
        entity_id=appointment.id,
    )
    await session.commit()
    await session.refresh(appointment)
    response = AppointmentRead.model_validate(appointment)

    try:
        await NotificationService(session).notify_agent_new_appointment(appointment)
    except Exception as e:
        logger.error(f"Appointment notification failed for appointment {response.id}: {e}", exc_info=True)
        await session.rollback()

    return response


@router.post(
    "/leads",
    response_model=LeadCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Contact Form",
    description="Register a prospect as a buyer contact of the agent and notify the agent.",
    responses={
        400: {"description": "Invalid email"},
        404: {"description": "Agent not found"},
    },
)
async def create_lead(payload: LeadCreate, session: SessionDep) -> LeadCreated:
    """
    Public contact form.

    A contact of the agency with the same email is reused instead of creating
    a duplicate.
    """
    agent = await _get_agent(session, payload.agent_id)
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    agency_ids = await UserRepository(session).agency_member_ids(agent.agency_id)
    prop = await session.get(Property, payload.property_id) if payload.property_id is not None else None
    if prop is not None and prop.agent_id not in agency_ids:
        prop = None

    contact = await ContactRepository(session).get_by_email(payload.email, agency_ids)
    if contact is None:
        contact = Contact(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email.strip().lower(),
            phone_number=payload.phone_number,
            type=ContactType.BUYER.value,
            agent_id=agent.id,
        )
        session.add(contact)
        await session.flush()
    elif payload.phone_number and not contact.phone_number:
        contact.phone_number = payload.phone_number
        session.add(contact)

    log_activity(
        session,
        agent.id,
        "NEW_LEAD",
        f"New lead from the contact form: {contact.full_name}",
        entity_type="contact",
        entity_id=contact.id,
    )
    await session.commit()
    await session.refresh(contact)
    contact_id = contact.id
    logger.info(f"Lead {contact_id} registered for agent {agent.id}")

    try:
        await NotificationService(session).notify_agent_new_lead(agent, contact, payload.message, prop)
    except Exception as e:
        logger.error(f"Lead notification failed for contact {contact_id}: {e}", exc_info=True)
        await session.rollback()

    return LeadCreated(contact_id=contact_id, message="Thank you, the agent will contact you shortly")
