"""
Dashboard Endpoints.

Recent activity of the caller and the headline counters of the dashboard.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter
from sqlalchemy import func
from sqlmodel import select

from immopro.core.database.entities.activities import ActivityLog
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.properties import Property
from immopro.core.database.entities.tasks import Task
from immopro.core.models.domain.enums import ContactType, TaskStatus
from immopro.core.models.io.dashboard import ActivityRead, ContactStats, PropertyStats, StatsResponse, TaskStats
from immopro.server.services.deps import AgencyMemberIds, CurrentUser, SessionDep

router = APIRouter(tags=["dashboard"])

ACTIVITIES_LIMIT = 50


@router.get(
    "/activities",
    response_model=List[ActivityRead],
    summary="Recent Activities",
    description="The last 50 activity entries of the caller, newest first.",
)
async def list_activities(user: CurrentUser, session: SessionDep) -> List[ActivityRead]:
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.agent_id == user.id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(ACTIVITIES_LIMIT)
    )
    result = await session.execute(stmt)
    return [ActivityRead.model_validate(entry) for entry in result.scalars().all()]


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Dashboard Counters",
    description="Properties and contacts of the agency, and the caller's pending and done tasks.",
)
async def get_stats(user: CurrentUser, agent_ids: AgencyMemberIds, session: SessionDep) -> StatsResponse:
    properties_stmt = select(func.count()).select_from(Property).where(Property.agent_id.in_(agent_ids))
    total_properties = (await session.execute(properties_stmt)).scalar_one()

    contacts_stmt = (
        select(Contact.type, func.count()).where(Contact.agent_id.in_(agent_ids)).group_by(Contact.type)
    )
    contacts_by_type = dict((await session.execute(contacts_stmt)).all())

    tasks_stmt = select(Task.status, func.count()).where(Task.agent_id == user.id).group_by(Task.status)
    tasks_by_status = dict((await session.execute(tasks_stmt)).all())

    return StatsResponse(
        properties=PropertyStats(total=total_properties),
        contacts=ContactStats(
            total=sum(contacts_by_type.values()),
            buyers=contacts_by_type.get(ContactType.BUYER.value, 0),
            sellers=contacts_by_type.get(ContactType.SELLER.value, 0),
        ),
        tasks=TaskStats(
            pending=tasks_by_status.get(TaskStatus.PENDING.value, 0),
            done=tasks_by_status.get(TaskStatus.DONE.value, 0),
        ),
    )
