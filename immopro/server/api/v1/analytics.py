"""
Analytics Endpoints.

Views of the agency's public property pages. Reserved to the pro and premium
plans.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import select

from immopro.core.database.entities.properties import Property, PropertyView
from immopro.core.models.domain.enums import PlanName
from immopro.core.models.io.dashboard import AnalyticsOverview, DayCount, DeviceCount, PropertyViews, SourceCount
from immopro.server.services.deps import AgencyMemberIds, SessionDep, require_plan

router = APIRouter(
    tags=["analytics"],
    dependencies=[Depends(require_plan(PlanName.PRO.value, PlanName.PREMIUM.value))],
)

ANALYTICS_WINDOW_DAYS = 30
DIRECT_SOURCE = "direct"


def _agency_views(agent_ids: List[int]):
    return (
        select(PropertyView)
        .join(Property, PropertyView.property_id == Property.id)
        .where(Property.agent_id.in_(agent_ids))
    )


@router.get(
    "/overview",
    response_model=AnalyticsOverview,
    summary="Views Overview",
    description="Total views of the agency's properties and the views of each of the last 30 days.",
)
async def analytics_overview(
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> AnalyticsOverview:
    today = datetime.utcnow().date()
    first_day = today - timedelta(days=ANALYTICS_WINDOW_DAYS - 1)

    total_stmt = (
        select(func.count())
        .select_from(PropertyView)
        .join(Property, PropertyView.property_id == Property.id)
        .where(Property.agent_id.in_(agent_ids))
    )
    total_views = (await session.execute(total_stmt)).scalar_one()

    recent_stmt = _agency_views(agent_ids).where(
        PropertyView.viewed_at >= datetime.combine(first_day, datetime.min.time())
    )
    recent = (await session.execute(recent_stmt)).scalars().all()
    per_day = Counter(view.viewed_at.date() for view in recent)

    days = [first_day + timedelta(days=offset) for offset in range(ANALYTICS_WINDOW_DAYS)]
    return AnalyticsOverview(
        total_views=total_views,
        views_last_30_days=len(recent),
        views_by_day=[DayCount(date=day, count=per_day.get(day, 0)) for day in days],
    )


@router.get(
    "/properties",
    response_model=List[PropertyViews],
    summary="Views per Property",
    description="View count of every property of the agency, most viewed first.",
)
async def analytics_properties(agent_ids: AgencyMemberIds, session: SessionDep) -> List[PropertyViews]:
    views = func.count(PropertyView.id).label("views")
    stmt = (
        select(Property.id, Property.address, Property.city, views)
        .join(PropertyView, PropertyView.property_id == Property.id, isouter=True)
        .where(Property.agent_id.in_(agent_ids))
        .group_by(Property.id, Property.address, Property.city)
        .order_by(views.desc(), Property.id)
    )
    result = await session.execute(stmt)
    return [
        PropertyViews(property_id=property_id, address=address, city=city, views=count)
        for property_id, address, city, count in result.all()
    ]


@router.get(
    "/traffic-sources",
    response_model=List[SourceCount],
    summary="Traffic Sources",
    description="Views grouped by traffic source. Views without a source are counted as direct.",
)
async def analytics_traffic_sources(agent_ids: AgencyMemberIds, session: SessionDep) -> List[SourceCount]:
    stmt = (
        select(PropertyView.source, func.count())
        .join(Property, PropertyView.property_id == Property.id)
        .where(Property.agent_id.in_(agent_ids))
        .group_by(PropertyView.source)
    )
    counts: Counter = Counter()
    for source, count in (await session.execute(stmt)).all():
        counts[source or DIRECT_SOURCE] += count
    return [SourceCount(source=source, count=count) for source, count in counts.most_common()]


@router.get(
    "/devices",
    response_model=List[DeviceCount],
    summary="Devices",
    description="Views grouped by device type.",
)
async def analytics_devices(agent_ids: AgencyMemberIds, session: SessionDep) -> List[DeviceCount]:
    count = func.count().label("count")
    stmt = (
        select(PropertyView.device, count)
        .join(Property, PropertyView.property_id == Property.id)
        .where(Property.agent_id.in_(agent_ids))
        .group_by(PropertyView.device)
        .order_by(count.desc())
    )
    result = await session.execute(stmt)
    return [DeviceCount(device=device, count=total) for device, total in result.all()]
