"""
Personal data export and erasure (RGPD).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from immopro.core.database.entities.activities import ActivityLog
from immopro.core.database.entities.appointments import Appointment
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.invoices import Invoice
from immopro.core.database.entities.notifications import Notification, PushSubscription
from immopro.core.database.entities.properties import Property, PropertyImage, PropertyOwner, PropertyView
from immopro.core.database.entities.subscriptions import Subscription
from immopro.core.database.entities.tasks import Task
from immopro.core.database.entities.users import User
from immopro.core.logging_config import get_logger

logger = get_logger(__name__)

USER_EXPORT_FIELDS = ("id", "email", "first_name", "last_name", "role", "owner_id", "created_at")


async def _rows(session: AsyncSession, model: Any, agent_id: int) -> List[Dict[str, Any]]:
    stmt = select(model).where(model.agent_id == agent_id).order_by(model.id)
    result = await session.execute(stmt)
    return [row.model_dump() for row in result.scalars().all()]


async def export_user_data(session: AsyncSession, user: User) -> Dict[str, Any]:
    """Collect every record owned by a user, ready to be serialized as JSON."""
    return {
        "exported_at": datetime.utcnow(),
        "user": {name: getattr(user, name) for name in USER_EXPORT_FIELDS},
        "properties": await _rows(session, Property, user.id),
        "contacts": await _rows(session, Contact, user.id),
        "tasks": await _rows(session, Task, user.id),
        "invoices": await _rows(session, Invoice, user.id),
        "appointments": await _rows(session, Appointment, user.id),
        "activities": await _rows(session, ActivityLog, user.id),
    }


async def delete_user_data(session: AsyncSession, user: User) -> None:
    """
    Delete a user and everything they own.

    Employees attached to the user are detached from the agency rather than
    deleted. Children rows are removed before their parents so that the
    foreign keys hold at every step.
    """
    user_id = user.id
    property_ids = select(Property.id).where(Property.agent_id == user_id)
    contact_ids = select(Contact.id).where(Contact.agent_id == user_id)

    await session.execute(
        delete(Notification).where(or_(Notification.agent_id == user_id, Notification.contact_id.in_(contact_ids)))
    )
    await session.execute(delete(PushSubscription).where(PushSubscription.agent_id == user_id))
    await session.execute(delete(ActivityLog).where(ActivityLog.agent_id == user_id))
    await session.execute(delete(Task).where(Task.agent_id == user_id))
    # Other agents' tasks may point at the records being removed
    await session.execute(update(Task).where(Task.contact_id.in_(contact_ids)).values(contact_id=None))
    await session.execute(update(Task).where(Task.property_id.in_(property_ids)).values(property_id=None))
    await session.execute(delete(Invoice).where(Invoice.agent_id == user_id))
    await session.execute(update(Invoice).where(Invoice.contact_id.in_(contact_ids)).values(contact_id=None))
    await session.execute(delete(Appointment).where(Appointment.agent_id == user_id))
    await session.execute(
        update(Appointment).where(Appointment.property_id.in_(property_ids)).values(property_id=None)
    )
    await session.execute(
        delete(PropertyOwner).where(
            or_(PropertyOwner.property_id.in_(property_ids), PropertyOwner.contact_id.in_(contact_ids))
        )
    )
    await session.execute(delete(PropertyImage).where(PropertyImage.property_id.in_(property_ids)))
    await session.execute(delete(PropertyView).where(PropertyView.property_id.in_(property_ids)))
    await session.execute(delete(Property).where(Property.agent_id == user_id))
    await session.execute(delete(Contact).where(Contact.agent_id == user_id))
    await session.execute(delete(Subscription).where(Subscription.user_id == user_id))
    await session.execute(update(User).where(User.owner_id == user_id).values(owner_id=None))
    await session.delete(user)
    await session.commit()
    logger.info(f"User {user_id} and their data deleted")
