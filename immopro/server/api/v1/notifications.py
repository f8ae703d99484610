"""
Notification Endpoints.

Journal of the notifications sent by the agency, delivery statistics, test
sends and the daily appointment reminders.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from immopro.core.database.entities.contacts import Contact
from immopro.core.database.repositories.notifications import NotificationRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import NotificationStatus, NotificationType
from immopro.core.models.io.notifications import (
    CountByKey,
    NotificationList,
    NotificationRead,
    NotificationStats,
    ReminderResult,
    TestNotificationRequest,
)
from immopro.server.services.deps import ActiveSubscription, AgencyMemberIds, CurrentUser, SessionDep
from immopro.server.services.notification_service import NotificationService

logger = get_logger(__name__)

router = APIRouter(tags=["notifications"])


@router.get(
    "",
    response_model=NotificationList,
    summary="List Notifications",
    description="Notifications sent on behalf of the caller, newest first.",
)
async def list_notifications(
    user: CurrentUser,
    session: SessionDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    type: Optional[NotificationType] = Query(default=None, description="Filter by notification type"),
    notification_status: Optional[NotificationStatus] = Query(
        default=None, alias="status", description="Filter by delivery status"
    ),
) -> NotificationList:
    filters = {
        "agent_id": user.id,
        "type": type.value if type else None,
        "status": notification_status.value if notification_status else None,
    }
    repository = NotificationRepository(session)
    notifications = await repository.list(limit=limit, offset=offset, filters=filters)
    return NotificationList(
        notifications=[NotificationRead.model_validate(notification) for notification in notifications],
        total=await repository.count(filters),
    )


@router.get(
    "/stats",
    response_model=NotificationStats,
    summary="Notification Statistics",
    description="Counts of the caller's notifications by type, channel and status.",
)
async def notification_stats(user: CurrentUser, session: SessionDep) -> NotificationStats:
    repository = NotificationRepository(session)
    filters = {"agent_id": user.id}

    async def grouped(column: str):
        return [CountByKey(**row) for row in await repository.count_by(column, filters)]

    return NotificationStats(
        total=await repository.count(filters),
        by_type=await grouped("type"),
        by_channel=await grouped("channel"),
        by_status=await grouped("status"),
    )


@router.post(
    "/test",
    response_model=List[NotificationRead],
    summary="Send Test Notification",
    description="Send a test notification to a contact on every channel the contact accepts.",
    responses={404: {"description": "Contact not found"}},
)
async def send_test_notification(
    payload: TestNotificationRequest,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> List[NotificationRead]:
    contact = await session.get(Contact, payload.contact_id)
    if contact is None or contact.agent_id not in agent_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {payload.contact_id} not found")

    notifications = await NotificationService(session).send_test(contact)
    return [NotificationRead.model_validate(notification) for notification in notifications]


@router.post(
    "/send-appointment-reminders",
    response_model=ReminderResult,
    summary="Send Appointment Reminders",
    description="Email a reminder to the clients of the caller's appointments of tomorrow.",
    responses={403: {"description": "Subscription required"}},
)
async def send_appointment_reminders(
    user: CurrentUser,
    subscription: ActiveSubscription,
    session: SessionDep,
) -> ReminderResult:
    report = await NotificationService(session).send_appointment_reminders(user)
    logger.info(f"Appointment reminders for agent {user.id}: {report.sent} sent, {report.failed} failed")
    return ReminderResult(sent=report.sent, failed=report.failed)
