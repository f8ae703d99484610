"""
Activity journal helpers.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from immopro.core.database.entities.activities import ActivityLog


def log_activity(
    session: AsyncSession,
    agent_id: int,
    action: str,
    description: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> ActivityLog:
    """Add an activity entry to the session. The caller commits it with its own changes."""
    entry = ActivityLog(
        agent_id=agent_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
    )
    session.add(entry)
    return entry
