"""
Notification orchestration.

Sends notifications to contacts and agents over their enabled channels and
journals every attempt as a :class:`Notification` row. Delivery failures are
recorded with status FAILED and never raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from immopro.core.database.entities.appointments import Appointment
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.notifications import Notification
from immopro.core.database.entities.properties import Property
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.contacts import ContactRepository
from immopro.core.database.repositories.notifications import NotificationRepository
from immopro.core.logging_config import get_logger
from immopro.core.matching import AUTO_NOTIFY_THRESHOLD, rank_buyers
from immopro.core.models.domain.enums import (
    AppointmentStatus,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from immopro.core.monitoring import log_notification

from . import email_service, email_templates, push_service

logger = get_logger(__name__)


@dataclass
class ReminderReport:
    sent: int = 0
    failed: int = 0


class NotificationService:
    """Send and journal notifications within one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = NotificationRepository(session)

    async def _record(
        self,
        notification_type: NotificationType,
        channel: NotificationChannel,
        recipient: str,
        body: str,
        success: bool,
        subject: Optional[str] = None,
        error: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        contact_id: Optional[int] = None,
        agent_id: Optional[int] = None,
    ) -> Notification:
        status = NotificationStatus.SENT if success else NotificationStatus.FAILED
        notification = Notification(
            type=notification_type.value,
            channel=channel.value,
            recipient=recipient,
            subject=subject,
            body=body,
            status=status.value,
            payload=payload or {},
            error=error,
            contact_id=contact_id,
            agent_id=agent_id,
        )
        log_notification(notification_type.value, channel.value, status.value, recipient)
        return await self.repository.create(notification)

    async def _email(
        self,
        notification_type: NotificationType,
        to: str,
        subject: str,
        html: str,
        payload: Optional[Dict[str, Any]] = None,
        contact_id: Optional[int] = None,
        agent_id: Optional[int] = None,
    ) -> Notification:
        result = await email_service.send_email(to, subject, html)
        return await self._record(
            notification_type,
            NotificationChannel.EMAIL,
            to,
            html,
            result.success,
            subject=subject,
            error=result.error,
            payload={**(payload or {}), "message_id": result.message_id},
            contact_id=contact_id,
            agent_id=agent_id,
        )

    async def send_to_contact(
        self,
        contact: Contact,
        notification_type: NotificationType,
        subject: str,
        html: str,
        push_payload: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        """
        Notify a contact on every channel they enabled.

        Args:
            contact: Recipient
            notification_type: Kind of notification, journaled with each attempt
            subject: Email subject, also the push title when no push payload is given
            html: Email body
            push_payload: Message sent to the contact's device
            payload: Context stored with the journal rows

        Returns:
            One journal row per attempted channel
        """
        notifications = []

        if contact.notify_by_email and contact.email:
            notifications.append(
                await self._email(
                    notification_type,
                    contact.email,
                    subject,
                    html,
                    payload=payload,
                    contact_id=contact.id,
                    agent_id=contact.agent_id,
                )
            )

        if contact.notify_by_push and contact.push_token:
            message = push_payload or {"title": subject, "body": subject}
            subscription_info = push_service.parse_push_token(contact.push_token)
            if subscription_info is None:
                success, error, recipient = False, "Invalid push token", contact.push_token[:500]
            else:
                result = await push_service.send_push(subscription_info, message)
                success, error, recipient = result.success, result.error, result.endpoint
            notifications.append(
                await self._record(
                    notification_type,
                    NotificationChannel.PUSH,
                    recipient,
                    message.get("body", ""),
                    success,
                    subject=message.get("title"),
                    error=error,
                    payload=payload,
                    contact_id=contact.id,
                    agent_id=contact.agent_id,
                )
            )

        return notifications

    async def notify_matching_buyers(self, prop: Property, agent_ids: Iterable[int]) -> int:
        """
        Notify the agency buyers whose criteria match a new property.

        Only buyers scoring at least ``AUTO_NOTIFY_THRESHOLD`` and having an
        enabled notification channel are notified.

        Returns:
            Number of notified buyers
        """
        buyers = await ContactRepository(self.session).list_buyers(agent_ids)
        matches = rank_buyers(prop, buyers, min_score=AUTO_NOTIFY_THRESHOLD)
        notified = 0
        for match in matches:
            contact: Contact = match.contact
            if not contact.has_notification_channel():
                continue
            subject, html = email_templates.property_match_email(
                contact.full_name, prop, match.score, match.reasons
            )
            await self.send_to_contact(
                contact,
                NotificationType.NEW_PROPERTY_MATCH,
                subject,
                html,
                push_payload=push_service.property_match_payload(prop, match.score),
                payload={"property_id": prop.id, "score": match.score, "reasons": match.reasons},
            )
            notified += 1

        logger.info(f"Property {prop.id}: {notified} matching buyer(s) notified out of {len(matches)} match(es)")
        return notified

    async def notify_agent_new_lead(
        self,
        agent: User,
        contact: Contact,
        message: Optional[str] = None,
        prop: Optional[Property] = None,
    ) -> None:
        """Tell an agent about a new lead by email and on their registered browsers."""
        address = f"{prop.address}, {prop.city}" if prop is not None and prop.city else getattr(prop, "address", None)
        subject, html = email_templates.new_lead_email(agent.full_name, contact, message, address)
        payload = {"lead_contact_id": contact.id, "property_id": prop.id if prop is not None else None}
        await self._email(NotificationType.NEW_LEAD, agent.email, subject, html, payload=payload, agent_id=agent.id)

        push_payload = push_service.new_lead_payload(contact)
        for result in await push_service.send_to_user(self.session, agent.id, push_payload):
            await self._record(
                NotificationType.NEW_LEAD,
                NotificationChannel.PUSH,
                result.endpoint,
                push_payload["body"],
                result.success,
                subject=push_payload["title"],
                error=result.error,
                payload=payload,
                agent_id=agent.id,
            )

    async def notify_agent_new_appointment(self, appointment: Appointment) -> int:
        """
        Push a new booking to the agent's browsers.

        Returns:
            Number of successful deliveries
        """
        results = await push_service.send_to_user(
            self.session, appointment.agent_id, push_service.appointment_payload(appointment)
        )
        return sum(1 for result in results if result.success)

    async def send_appointment_reminders(self, agent: User, now: Optional[datetime] = None) -> ReminderReport:
        """
        Email the clients of the agent's pending appointments of tomorrow.

        Appointments already reminded are skipped. An appointment is flagged
        ``reminder_sent`` only when the email was delivered.
        """
        now = now or datetime.utcnow()
        start = datetime.combine(now.date() + timedelta(days=1), time.min)
        end = start + timedelta(days=1)
        stmt = (
            select(Appointment)
            .where(
                Appointment.agent_id == agent.id,
                Appointment.status == AppointmentStatus.PENDING.value,
                Appointment.reminder_sent == False,  # noqa: E712
                Appointment.appointment_date >= start,
                Appointment.appointment_date < end,
            )
            .order_by(Appointment.appointment_date)
        )
        appointments = list((await self.session.execute(stmt)).scalars().all())

        report = ReminderReport()
        for appointment in appointments:
            address = None
            if appointment.property_id is not None:
                prop = await self.session.get(Property, appointment.property_id)
                address = prop.address if prop is not None else None
            subject, html = email_templates.appointment_reminder_email(
                appointment.client_name, appointment.appointment_date, agent.full_name, address
            )
            notification = await self._email(
                NotificationType.APPOINTMENT_REMINDER,
                appointment.client_email,
                subject,
                html,
                payload={"appointment_id": appointment.id},
                agent_id=agent.id,
            )
            if notification.status == NotificationStatus.SENT.value:
                appointment.reminder_sent = True
                self.session.add(appointment)
                await self.session.commit()
                await push_service.send_to_user(self.session, agent.id, push_service.reminder_payload(appointment))
                report.sent += 1
            else:
                report.failed += 1

        logger.info(f"Appointment reminders for agent {agent.id}: {report.sent} sent, {report.failed} failed")
        return report

    async def send_test(self, contact: Contact) -> List[Notification]:
        subject, html = email_templates.notification_check_email(contact.full_name)
        return await self.send_to_contact(
            contact,
            NotificationType.TEST,
            subject,
            html,
            push_payload={"title": subject, "body": "This is a test notification"},
            payload={"test": True},
        )
