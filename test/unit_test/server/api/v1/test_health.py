from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from immopro.server.core import constant
from immopro.server.core.config import settings

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

PING = "immopro.server.api.v1.health.ping"


async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}


async def test_health_check_database_down(client: AsyncClient):
    with patch(PING, new_callable=AsyncMock, side_effect=OperationalError("SELECT 1", {}, Exception("refused"))):
        response = await client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "error", "database": "disconnected"}


async def test_detailed_health_reports_integrations(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test")
    monkeypatch.setattr(settings, "RESEND_API_KEY", None)
    monkeypatch.setattr(settings, "GEOCODING_ENABLED", False)

    response = await client.get("/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["services"]["stripe"] == "configured"
    assert data["services"]["email"] == "not configured"
    assert data["services"]["geocoding"] == "disabled"
    assert data["version"] == constant.VERSION


async def test_detailed_health_database_down(client: AsyncClient):
    with patch(PING, new_callable=AsyncMock, return_value=False):
        response = await client.get("/health/detailed")

    assert response.status_code == 503
    assert response.json()["status"] == "error"


async def test_version(client: AsyncClient):
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == constant.VERSION
    assert data["schema_version"] == "v1"
