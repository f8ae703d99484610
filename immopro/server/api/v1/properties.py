"""
Property Endpoints.

CRUD over the agency's listed properties, their seller owners and image
gallery, and the buyers matching each property.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from immopro.core.database import apply_changes
from immopro.core.database.entities.appointments import Appointment
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.properties import Property, PropertyImage, PropertyOwner, PropertyView
from immopro.core.database.entities.tasks import Task
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.contacts import ContactRepository
from immopro.core.logging_config import get_logger
from immopro.core.matching import rank_buyers
from immopro.core.models.io.contacts import ContactRead
from immopro.core.models.io.properties import (
    MatchesResponse,
    MatchRead,
    PropertyCreate,
    PropertyImageCreate,
    PropertyImageRead,
    PropertyOwnerCreate,
    PropertyRead,
    PropertyUpdate,
    PropertyWithAgent,
)
from immopro.server.services.activity import log_activity
from immopro.server.services.deps import AgencyMemberIds, CurrentUser, SessionDep
from immopro.server.services.geocoding import geocode_address
from immopro.server.services.notification_service import NotificationService
from immopro.server.services.plan_limits import check_property_limit

logger = get_logger(__name__)

router = APIRouter(tags=["properties"])

ADDRESS_FIELDS = ("address", "city", "postal_code")


async def get_agency_property(session, property_id: int, agent_ids: List[int]) -> Property:
    """Load a property of the caller's agency or answer 404."""
    prop = await session.get(Property, property_id)
    if prop is None or prop.agent_id not in agent_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Property {property_id} not found")
    return prop


async def _geocode(prop: Property) -> None:
    coordinates = await geocode_address(prop.address, prop.city, prop.postal_code)
    prop.latitude, prop.longitude = coordinates if coordinates else (None, None)


@router.post(
    "",
    response_model=PropertyRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_property_limit)],
    summary="Create Property",
    description="List a new property. The address is geocoded and matching buyers are notified.",
    response_description="The created property.",
    responses={
        201: {"description": "Property created"},
        403: {"description": "Plan limit reached or no subscription"},
    },
)
async def create_property(
    payload: PropertyCreate,
    user: CurrentUser,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> PropertyRead:
    """
    Create a property.

    Buyers of the agency scoring at least 50 against the new property are
    notified on their enabled channels. Notification problems are logged and
    never fail the creation.
    """
    prop = Property(**payload.model_dump(), agent_id=user.id)
    await _geocode(prop)
    session.add(prop)
    await session.flush()
    log_activity(
        session,
        user.id,
        "PROPERTY_CREATED",
        f"New property listed: {prop.address}",
        entity_type="property",
        entity_id=prop.id,
    )
    await session.commit()
    await session.refresh(prop)
    logger.info(f"Property {prop.id} created by user {user.id}")
    response = PropertyRead.model_validate(prop)

    try:
        await NotificationService(session).notify_matching_buyers(prop, agent_ids)
    except Exception as e:
        logger.error(f"Matching notifications failed for property {response.id}: {e}", exc_info=True)
        await session.rollback()

    return response


@router.get(
    "",
    response_model=List[PropertyWithAgent],
    summary="List Properties",
    description="List every property of the caller's agency, newest first, with the listing agent's name.",
    response_description="A list of properties.",
)
async def list_properties(agent_ids: AgencyMemberIds, session: SessionDep) -> List[PropertyWithAgent]:
    stmt = (
        select(Property, User.first_name, User.last_name)
        .join(User, Property.agent_id == User.id)
        .where(Property.agent_id.in_(agent_ids))
        .order_by(Property.created_at.desc(), Property.id.desc())
    )
    result = await session.execute(stmt)
    return [
        PropertyWithAgent(
            **PropertyRead.model_validate(prop).model_dump(),
            agent_first_name=first_name,
            agent_last_name=last_name,
        )
        for prop, first_name, last_name in result.all()
    ]


@router.get(
    "/{property_id}",
    response_model=PropertyRead,
    summary="Get Property",
    responses={404: {"description": "Property not found"}},
)
async def get_property(property_id: int, agent_ids: AgencyMemberIds, session: SessionDep) -> PropertyRead:
    return PropertyRead.model_validate(await get_agency_property(session, property_id, agent_ids))


@router.put(
    "/{property_id}",
    response_model=PropertyRead,
    summary="Update Property",
    description="Update the provided fields of a property. A changed address is geocoded again.",
    responses={404: {"description": "Property not found"}},
)
async def update_property(
    property_id: int,
    payload: PropertyUpdate,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> PropertyRead:
    prop = await get_agency_property(session, property_id, agent_ids)
    changes = payload.model_dump(exclude_unset=True)
    apply_changes(prop, changes)
    if any(name in changes for name in ADDRESS_FIELDS):
        await _geocode(prop)
    session.add(prop)
    await session.commit()
    await session.refresh(prop)
    return PropertyRead.model_validate(prop)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Property",
    description="Delete a property with its owners, images and views. Linked tasks and appointments are kept.",
    responses={404: {"description": "Property not found"}},
)
async def delete_property(
    property_id: int,
    user: CurrentUser,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> None:
    prop = await get_agency_property(session, property_id, agent_ids)
    await session.execute(delete(PropertyOwner).where(PropertyOwner.property_id == property_id))
    await session.execute(delete(PropertyImage).where(PropertyImage.property_id == property_id))
    await session.execute(delete(PropertyView).where(PropertyView.property_id == property_id))
    await session.execute(update(Task).where(Task.property_id == property_id).values(property_id=None))
    await session.execute(
        update(Appointment).where(Appointment.property_id == property_id).values(property_id=None)
    )
    log_activity(
        session,
        user.id,
        "PROPERTY_DELETED",
        f"Property deleted: {prop.address}",
        entity_type="property",
        entity_id=property_id,
    )
    await session.delete(prop)
    await session.commit()


@router.get(
    "/{property_id}/matches",
    response_model=MatchesResponse,
    summary="Matching Buyers",
    description="Score every buyer of the agency against the property. Buyers scoring 0 are left out.",
    response_description="Matches sorted by descending score.",
    responses={404: {"description": "Property not found"}},
)
async def get_property_matches(property_id: int, agent_ids: AgencyMemberIds, session: SessionDep) -> MatchesResponse:
    prop = await get_agency_property(session, property_id, agent_ids)
    buyers = await ContactRepository(session).list_buyers(agent_ids)
    matches = rank_buyers(prop, buyers)
    return MatchesResponse(
        property_id=prop.id,
        matches=[
            MatchRead(contact=ContactRead.model_validate(match.contact), score=match.score, reasons=match.reasons)
            for match in matches
        ],
    )


# ---------------------------------------------------------------------------
# Owners
# ---------------------------------------------------------------------------


@router.get(
    "/{property_id}/owners",
    response_model=List[ContactRead],
    summary="List Property Owners",
    responses={404: {"description": "Property not found"}},
)
async def list_property_owners(property_id: int, agent_ids: AgencyMemberIds, session: SessionDep) -> List[ContactRead]:
    await get_agency_property(session, property_id, agent_ids)
    stmt = (
        select(Contact)
        .join(PropertyOwner, PropertyOwner.contact_id == Contact.id)
        .where(PropertyOwner.property_id == property_id)
        .order_by(Contact.last_name)
    )
    result = await session.execute(stmt)
    return [ContactRead.model_validate(contact) for contact in result.scalars().all()]


@router.post(
    "/{property_id}/owners",
    response_model=ContactRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Property Owner",
    responses={
        400: {"description": "The contact already owns the property"},
        404: {"description": "Property or contact not found"},
    },
)
async def add_property_owner(
    property_id: int,
    payload: PropertyOwnerCreate,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> ContactRead:
    await get_agency_property(session, property_id, agent_ids)
    contact = await session.get(Contact, payload.contact_id)
    if contact is None or contact.agent_id not in agent_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {payload.contact_id} not found")

    session.add(PropertyOwner(property_id=property_id, contact_id=contact.id))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="This contact is already an owner of the property"
        )
    await session.refresh(contact)
    return ContactRead.model_validate(contact)


@router.delete(
    "/{property_id}/owners/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Property Owner",
    responses={404: {"description": "Property or owner link not found"}},
)
async def remove_property_owner(
    property_id: int,
    contact_id: int,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> None:
    await get_agency_property(session, property_id, agent_ids)
    result = await session.execute(
        delete(PropertyOwner).where(PropertyOwner.property_id == property_id, PropertyOwner.contact_id == contact_id)
    )
    if not result.rowcount:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Owner link not found")
    await session.commit()


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


async def _property_images(session, property_id: int) -> List[PropertyImage]:
    stmt = (
        select(PropertyImage)
        .where(PropertyImage.property_id == property_id)
        .order_by(PropertyImage.display_order, PropertyImage.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _get_image(session, property_id: int, image_id: int) -> PropertyImage:
    image = await session.get(PropertyImage, image_id)
    if image is None or image.property_id != property_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Image {image_id} not found")
    return image


async def _clear_primary(session, property_id: int) -> None:
    await session.execute(
        update(PropertyImage).where(PropertyImage.property_id == property_id).values(is_primary=False)
    )


@router.get(
    "/{property_id}/images",
    response_model=List[PropertyImageRead],
    summary="List Property Images",
    responses={404: {"description": "Property not found"}},
)
async def list_property_images(
    property_id: int, agent_ids: AgencyMemberIds, session: SessionDep
) -> List[PropertyImageRead]:
    await get_agency_property(session, property_id, agent_ids)
    return [PropertyImageRead.model_validate(image) for image in await _property_images(session, property_id)]


@router.post(
    "/{property_id}/images",
    response_model=PropertyImageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Property Image",
    description="Register an image already uploaded to storage. The first image of a property becomes its primary image.",
    responses={404: {"description": "Property not found"}},
)
async def add_property_image(
    property_id: int,
    payload: PropertyImageCreate,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> PropertyImageRead:
    await get_agency_property(session, property_id, agent_ids)
    count_stmt = select(func.count()).select_from(PropertyImage).where(PropertyImage.property_id == property_id)
    existing = (await session.execute(count_stmt)).scalar_one()

    is_primary = payload.is_primary or existing == 0
    if is_primary:
        await _clear_primary(session, property_id)
    image = PropertyImage(
        property_id=property_id,
        url=payload.url,
        caption=payload.caption,
        is_primary=is_primary,
        display_order=existing,
    )
    session.add(image)
    await session.commit()
    await session.refresh(image)
    return PropertyImageRead.model_validate(image)


@router.delete(
    "/{property_id}/images/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Property Image",
    description="Delete an image. When it was the primary image, the next image in order becomes primary.",
    responses={404: {"description": "Property or image not found"}},
)
async def delete_property_image(
    property_id: int,
    image_id: int,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> None:
    await get_agency_property(session, property_id, agent_ids)
    image = await _get_image(session, property_id, image_id)
    was_primary = image.is_primary
    await session.delete(image)
    await session.flush()

    if was_primary:
        remaining = await _property_images(session, property_id)
        if remaining:
            remaining[0].is_primary = True
            session.add(remaining[0])
    await session.commit()


@router.put(
    "/{property_id}/images/{image_id}/set-primary",
    response_model=PropertyImageRead,
    summary="Set Primary Image",
    responses={404: {"description": "Property or image not found"}},
)
async def set_primary_image(
    property_id: int,
    image_id: int,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> PropertyImageRead:
    await get_agency_property(session, property_id, agent_ids)
    image = await _get_image(session, property_id, image_id)
    await _clear_primary(session, property_id)
    image.is_primary = True
    session.add(image)
    await session.commit()
    await session.refresh(image)
    return PropertyImageRead.model_validate(image)
