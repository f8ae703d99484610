"""
Contact Endpoints.

CRUD over the agency's buyers and sellers, the properties they own, their
notification preferences and the notifications they received.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, update
from sqlmodel import select

from immopro.core.database import apply_changes, plain_values
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.invoices import Invoice
from immopro.core.database.entities.notifications import Notification
from immopro.core.database.entities.properties import Property, PropertyOwner
from immopro.core.database.entities.tasks import Task
from immopro.core.database.repositories.contacts import ContactRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import ContactType
from immopro.core.models.io.contacts import (
    ContactCreate,
    ContactRead,
    ContactUpdate,
    NotificationPreferencesUpdate,
)
from immopro.core.models.io.notifications import NotificationRead
from immopro.core.models.io.properties import PropertyRead
from immopro.server.services.activity import log_activity
from immopro.server.services.deps import AgencyMemberIds, CurrentUser, SessionDep
from immopro.server.services.plan_limits import check_contact_limit
from immopro.server.services.push_service import parse_push_token

logger = get_logger(__name__)

router = APIRouter(tags=["contacts"])

CONTACT_NOTIFICATIONS_LIMIT = 50


async def get_agency_contact(session, contact_id: int, agent_ids: List[int]) -> Contact:
    """Load a contact of the caller's agency or answer 404."""
    contact = await session.get(Contact, contact_id)
    if contact is None or contact.agent_id not in agent_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {contact_id} not found")
    return contact


@router.post(
    "",
    response_model=ContactRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_contact_limit)],
    summary="Create Contact",
    description="Create a buyer or seller contact with optional search criteria.",
    response_description="The created contact.",
    responses={
        201: {"description": "Contact created"},
        403: {"description": "Plan limit reached or no subscription"},
    },
)
async def create_contact(payload: ContactCreate, user: CurrentUser, session: SessionDep) -> ContactRead:
    contact = Contact(**plain_values(payload.model_dump()), agent_id=user.id)
    session.add(contact)
    await session.flush()
    log_activity(
        session,
        user.id,
        "CONTACT_CREATED",
        f"New contact: {contact.full_name}",
        entity_type="contact",
        entity_id=contact.id,
    )
    await session.commit()
    await session.refresh(contact)
    return ContactRead.model_validate(contact)


@router.get(
    "",
    response_model=List[ContactRead],
    summary="List Contacts",
    description="List the contacts of the caller's agency ordered by last name, optionally restricted to one type.",
    response_description="A list of contacts.",
)
async def list_contacts(
    agent_ids: AgencyMemberIds,
    session: SessionDep,
    type: Optional[ContactType] = Query(default=None, description="BUYER or SELLER"),
) -> List[ContactRead]:
    contacts = await ContactRepository(session).list_for_agents(agent_ids, type)
    return [ContactRead.model_validate(contact) for contact in contacts]


@router.get(
    "/{contact_id}",
    response_model=ContactRead,
    summary="Get Contact",
    responses={404: {"description": "Contact not found"}},
)
async def get_contact(contact_id: int, agent_ids: AgencyMemberIds, session: SessionDep) -> ContactRead:
    return ContactRead.model_validate(await get_agency_contact(session, contact_id, agent_ids))


@router.put(
    "/{contact_id}",
    response_model=ContactRead,
    summary="Update Contact",
    description="Update the provided fields of a contact.",
    responses={
        400: {"description": "budget_min exceeds budget_max"},
        404: {"description": "Contact not found"},
    },
)
async def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> ContactRead:
    contact = await get_agency_contact(session, contact_id, agent_ids)
    changes = payload.model_dump(exclude_unset=True)
    budget_min = changes.get("budget_min", contact.budget_min)
    budget_max = changes.get("budget_max", contact.budget_max)
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="budget_min must not exceed budget_max")

    apply_changes(contact, changes)
    session.add(contact)
    await session.commit()
    await session.refresh(contact)
    return ContactRead.model_validate(contact)


@router.delete(
    "/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Contact",
    description="Delete a contact. Tasks, invoices and notifications referencing it are kept and unlinked.",
    responses={404: {"description": "Contact not found"}},
)
async def delete_contact(
    contact_id: int,
    user: CurrentUser,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> None:
    contact = await get_agency_contact(session, contact_id, agent_ids)
    await session.execute(delete(PropertyOwner).where(PropertyOwner.contact_id == contact_id))
    await session.execute(update(Task).where(Task.contact_id == contact_id).values(contact_id=None))
    await session.execute(update(Invoice).where(Invoice.contact_id == contact_id).values(contact_id=None))
    await session.execute(
        update(Notification).where(Notification.contact_id == contact_id).values(contact_id=None)
    )
    log_activity(
        session,
        user.id,
        "CONTACT_DELETED",
        f"Contact deleted: {contact.full_name}",
        entity_type="contact",
        entity_id=contact_id,
    )
    await session.delete(contact)
    await session.commit()


@router.get(
    "/{contact_id}/properties",
    response_model=List[PropertyRead],
    summary="Properties Owned by a Contact",
    responses={404: {"description": "Contact not found"}},
)
async def list_contact_properties(
    contact_id: int, agent_ids: AgencyMemberIds, session: SessionDep
) -> List[PropertyRead]:
    await get_agency_contact(session, contact_id, agent_ids)
    stmt = (
        select(Property)
        .join(PropertyOwner, PropertyOwner.property_id == Property.id)
        .where(PropertyOwner.contact_id == contact_id)
        .order_by(Property.created_at.desc())
    )
    result = await session.execute(stmt)
    return [PropertyRead.model_validate(prop) for prop in result.scalars().all()]


@router.put(
    "/{contact_id}/preferences",
    response_model=ContactRead,
    summary="Update Notification Preferences",
    description="Enable or disable the email and push channels of a contact and store their push subscription.",
    responses={
        400: {"description": "The push token is not a serialized push subscription"},
        404: {"description": "Contact not found"},
    },
)
async def update_contact_preferences(
    contact_id: int,
    payload: NotificationPreferencesUpdate,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> ContactRead:
    """
    Update notification preferences.

    - **push_token**: The browser ``PushSubscription`` serialized as JSON.
      An empty string clears it.
    """
    contact = await get_agency_contact(session, contact_id, agent_ids)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("push_token"):
        if parse_push_token(changes["push_token"]) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid push subscription")
    elif "push_token" in changes:
        changes["push_token"] = None

    apply_changes(contact, changes)
    session.add(contact)
    await session.commit()
    await session.refresh(contact)
    return ContactRead.model_validate(contact)


@router.get(
    "/{contact_id}/notifications",
    response_model=List[NotificationRead],
    summary="Contact Notifications",
    description="The last 50 notifications sent to a contact, newest first.",
    responses={404: {"description": "Contact not found"}},
)
async def list_contact_notifications(
    contact_id: int, agent_ids: AgencyMemberIds, session: SessionDep
) -> List[NotificationRead]:
    await get_agency_contact(session, contact_id, agent_ids)
    stmt = (
        select(Notification)
        .where(Notification.contact_id == contact_id)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
        .limit(CONTACT_NOTIFICATIONS_LIMIT)
    )
    result = await session.execute(stmt)
    return [NotificationRead.model_validate(notification) for notification in result.scalars().all()]
