"""
Dashboard I/O models: activity feed, counters and analytics.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    description: str
    created_at: dt.datetime


class PropertyStats(BaseModel):
    total: int


class ContactStats(BaseModel):
    total: int
    buyers: int
    sellers: int


class TaskStats(BaseModel):
    pending: int
    done: int


class StatsResponse(BaseModel):
    properties: PropertyStats
    contacts: ContactStats
    tasks: TaskStats


class DayCount(BaseModel):
    date: dt.date
    count: int


class AnalyticsOverview(BaseModel):
    total_views: int
    views_last_30_days: int
    views_by_day: List[DayCount]


class PropertyViews(BaseModel):
    property_id: int
    address: str
    city: Optional[str] = None
    views: int


class SourceCount(BaseModel):
    source: str
    count: int


class DeviceCount(BaseModel):
    device: str
    count: int
