from datetime import datetime, timedelta
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

import immopro.core.database.entities  # noqa: F401
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.properties import Property
from immopro.core.database.entities.subscriptions import Subscription, SubscriptionPlan
from immopro.core.database.entities.users import User
from immopro.core.models.domain.enums import UserRole
from immopro.server.core.security import create_access_token, hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Secret123"

# bcrypt is slow on purpose, hash the shared test password once
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest_asyncio.fixture(name="test_engine")
async def test_engine_fixture():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async_session_maker = sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:  # type: ignore[attr-defined]
        yield session


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from immopro.core.database import get_session
    from immopro.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("immopro.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session: AsyncSession) -> Callable[..., Awaitable[User]]:
    async def _make_user(
        email: str,
        role: UserRole = UserRole.AGENT,
        owner_id: Optional[int] = None,
        first_name: str = "Jean",
        last_name: str = "Dupont",
    ) -> User:
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role.value,
            owner_id=owner_id,
            hashed_password=TEST_PASSWORD_HASH,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def agent(make_user) -> User:
    return await make_user("agent@example.com")


@pytest_asyncio.fixture
async def owner(make_user) -> User:
    return await make_user("owner@example.com", role=UserRole.OWNER, first_name="Claire", last_name="Martin")


@pytest_asyncio.fixture
async def employee(make_user, owner: User) -> User:
    return await make_user(
        "employee@example.com", role=UserRole.EMPLOYEE, owner_id=owner.id, first_name="Paul", last_name="Bernard"
    )


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user("admin@example.com", role=UserRole.ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture
def headers(agent: User) -> Dict[str, str]:
    return auth_headers(agent)


@pytest.fixture
def make_property(session: AsyncSession) -> Callable[..., Awaitable[Property]]:
    async def _make_property(agent_id: int, **fields) -> Property:
        values = {"address": "10 rue de la Paix", "city": "Paris", "price": 300000, "area": 80, "bedrooms": 2}
        values.update(fields)
        prop = Property(agent_id=agent_id, **values)
        session.add(prop)
        await session.commit()
        await session.refresh(prop)
        return prop

    return _make_property


@pytest.fixture
def make_contact(session: AsyncSession) -> Callable[..., Awaitable[Contact]]:
    async def _make_contact(agent_id: int, **fields) -> Contact:
        values = {"first_name": "Alice", "last_name": "Durand", "email": "alice@example.com", "type": "BUYER"}
        values.update(fields)
        contact = Contact(agent_id=agent_id, **values)
        session.add(contact)
        await session.commit()
        await session.refresh(contact)
        return contact

    return _make_contact


@pytest.fixture
def make_subscription(session: AsyncSession) -> Callable[..., Awaitable[Subscription]]:
    async def _make_subscription(
        user: User,
        plan_name: str = "pro",
        status: str = "active",
        price_id: str = "price_pro",
        period_end: Optional[datetime] = None,
        **fields,
    ) -> Subscription:
        subscription = Subscription(
            user_id=user.id,
            stripe_subscription_id=f"sub_{user.id}",
            stripe_price_id=price_id,
            stripe_customer_id=f"cus_{user.id}",
            status=status,
            plan_name=plan_name,
            amount=4900,
            current_period_start=datetime.utcnow() - timedelta(days=1),
            current_period_end=period_end or datetime.utcnow() + timedelta(days=29),
            **fields,
        )
        session.add(subscription)
        await session.commit()
        await session.refresh(subscription)
        return subscription

    return _make_subscription


@pytest.fixture
def make_plan(session: AsyncSession) -> Callable[..., Awaitable[SubscriptionPlan]]:
    async def _make_plan(name: str = "pro", price_id: str = "price_pro", amount: int = 4900, **limits) -> SubscriptionPlan:
        plan = SubscriptionPlan(
            name=name,
            display_name=name.capitalize(),
            stripe_price_id=price_id,
            amount=amount,
            features=["matching"],
            **limits,
        )
        session.add(plan)
        await session.commit()
        await session.refresh(plan)
        return plan

    return _make_plan


@pytest.fixture
def auth_for() -> Callable[[User], Dict[str, str]]:
    """Build the Authorization header of any user."""
    return auth_headers


@pytest.fixture(autouse=True)
def plan_limits_disabled(monkeypatch):
    """Route tests run without plan limits unless a test enables them."""
    from immopro.server.core.config import settings

    monkeypatch.setattr(settings, "plan_limits_enabled", False)
