from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from immopro.core.database.entities.properties import PropertyView

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/analytics"


@pytest.fixture
async def pro_agent(agent, make_subscription):
    await make_subscription(agent, plan_name="pro")
    return agent


@pytest.fixture
async def views(session, agent, owner, make_property):
    now = datetime.utcnow()
    popular = await make_property(agent.id, address="Popular")
    quiet = await make_property(agent.id, address="Quiet")
    foreign = await make_property(owner.id, address="Foreign")
    session.add_all([
        PropertyView(property_id=popular.id, source="google.com", device="mobile", viewed_at=now),
        PropertyView(property_id=popular.id, source="google.com", device="desktop", viewed_at=now),
        PropertyView(property_id=popular.id, source=None, device="mobile", viewed_at=now - timedelta(days=1)),
        PropertyView(property_id=quiet.id, source="leboncoin.fr", device="mobile", viewed_at=now - timedelta(days=45)),
        PropertyView(property_id=foreign.id, source="google.com", device="tablet", viewed_at=now),
    ])
    await session.commit()
    return popular, quiet


@pytest.mark.parametrize("plan", [None, "starter"])
async def test_requires_pro_or_premium(client: AsyncClient, agent, headers, make_subscription, plan):
    if plan:
        await make_subscription(agent, plan_name=plan)

    response = await client.get(f"{BASE}/overview", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"]["required_plans"] == ["pro", "premium"]


async def test_overview_fills_thirty_days(client: AsyncClient, pro_agent, headers, views):
    response = await client.get(f"{BASE}/overview", headers=headers)

    data = response.json()
    assert data["total_views"] == 4
    assert data["views_last_30_days"] == 3
    assert len(data["views_by_day"]) == 30
    assert data["views_by_day"][-1] == {"date": datetime.utcnow().date().isoformat(), "count": 2}
    assert sum(day["count"] for day in data["views_by_day"]) == 3


async def test_properties_ranked_by_views(client: AsyncClient, pro_agent, headers, views):
    response = await client.get(f"{BASE}/properties", headers=headers)

    assert [(row["address"], row["views"]) for row in response.json()] == [("Popular", 3), ("Quiet", 1)]


async def test_traffic_sources_group_missing_as_direct(client: AsyncClient, pro_agent, headers, views):
    response = await client.get(f"{BASE}/traffic-sources", headers=headers)

    assert response.json() == [
        {"source": "google.com", "count": 2},
        {"source": "direct", "count": 1},
        {"source": "leboncoin.fr", "count": 1},
    ]


async def test_devices(client: AsyncClient, pro_agent, headers, views):
    response = await client.get(f"{BASE}/devices", headers=headers)

    assert response.json() == [{"device": "mobile", "count": 3}, {"device": "desktop", "count": 1}]
