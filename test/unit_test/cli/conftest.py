"""Fixtures of the administration command tests.

The commands open their own sessions through ``async_session_maker``; it is
pointed at an in-memory database shared with the ``session`` fixture.
"""

from typing import AsyncGenerator, Awaitable, Callable, Optional

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

import immopro.core.database.entities  # noqa: F401
from immopro.cli import admin
from immopro.core.database.entities.users import User


@pytest_asyncio.fixture(name="session_maker")
async def session_maker_fixture(monkeypatch):
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    maker = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(admin, "async_session_maker", maker)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(name="make_user")
async def make_user_fixture(session: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make_user(email: str, role: str = "AGENT", owner_id: Optional[int] = None) -> User:
        user = User(
            email=email,
            first_name=email.split("@")[0].capitalize(),
            last_name="Martin",
            role=role,
            owner_id=owner_id,
            hashed_password="not-a-real-hash",
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _make_user
