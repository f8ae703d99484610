"""
Database utility functions for engine and session management.

Functions:
- create_engine: Creates async SQLAlchemy engine with URL normalization
- create_sessionmaker: Creates async session factory with safe defaults
- create_all: Creates all tables from ORM metadata (for tests/dev)
- ping: Runs a trivial query to check connectivity
- plain_values / apply_changes: Copy validated input onto entities
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .base import Base


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    The helper normalizes Postgres URLs to ensure the async driver is used.
    For example, it rewrites ``postgres://`` (as exported by most hosting
    providers) and other variants to ``postgresql+asyncpg://``.

    Args:
        db_url: Database connection URL

    Returns:
        Configured AsyncEngine instance
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project.

    Args:
        engine: Async SQLAlchemy engine

    Returns:
        Configured async session factory
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the current ORM metadata.

    This is mainly intended for tests and local development.
    Production should use Alembic migrations instead.

    Args:
        engine: Async SQLAlchemy engine
    """
    from . import entities  # noqa: F401  (registers every table on the metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(session: AsyncSession) -> bool:
    """Return True when the database answers ``SELECT 1``."""
    result = await session.execute(text("SELECT 1"))
    return result.scalar() == 1


def plain_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Replace enum members by their value, as stored in the string columns."""
    return {key: value.value if isinstance(value, Enum) else value for key, value in values.items()}


def apply_changes(entity: Any, changes: Dict[str, Any]) -> Any:
    """Set every changed field on an entity.

    Args:
        entity: ORM instance to update
        changes: Field values, usually ``model_dump(exclude_unset=True)`` of an update schema

    Returns:
        The updated entity
    """
    for key, value in plain_values(changes).items():
        setattr(entity, key, value)
    return entity
