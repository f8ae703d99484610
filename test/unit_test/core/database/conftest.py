"""Test configuration for database unit tests.

This module provides common fixtures for testing the repositories against
an in-memory SQLite database.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

import immopro.core.database.entities  # noqa: F401
from immopro.core.database.entities.users import User


@pytest.fixture(scope="function")
async def in_memory_engine() -> AsyncGenerator:
    """Create in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
async def in_memory_session(in_memory_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create in-memory SQLite session for testing."""
    async_session = sessionmaker(
        bind=in_memory_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture(scope="function")
def sample_user_data() -> dict:
    """Sample user data for testing."""
    return {
        "email": "agent@example.com",
        "first_name": "Jean",
        "last_name": "Dupont",
        "role": "AGENT",
        "hashed_password": "not-a-real-hash",
    }


@pytest.fixture(scope="function")
def sample_contact_data() -> dict:
    """Sample buyer contact data for testing."""
    return {
        "first_name": "Alice",
        "last_name": "Durand",
        "email": "alice@example.com",
        "type": "BUYER",
        "budget_min": 200000,
        "budget_max": 350000,
        "city_preferences": "Paris, Lyon",
        "min_bedrooms": 2,
        "min_area": 60,
    }


@pytest.fixture(scope="function")
async def stored_user(in_memory_session: AsyncSession, sample_user_data: dict) -> User:
    user = User(**sample_user_data)
    in_memory_session.add(user)
    await in_memory_session.commit()
    await in_memory_session.refresh(user)
    return user
