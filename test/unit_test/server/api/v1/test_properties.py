from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlmodel import select

from immopro.core.database.entities.activities import ActivityLog
from immopro.core.database.entities.properties import Property
from immopro.core.database.entities.tasks import Task
from immopro.server.core.config import settings

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/properties"
GEOCODE = "immopro.server.api.v1.properties.geocode_address"
NOTIFY = "immopro.server.api.v1.properties.NotificationService.notify_matching_buyers"

NEW_PROPERTY = {"address": "3 place Bellecour", "city": "Lyon", "postal_code": "69002", "price": 250000, "area": 90,
                "rooms": 4, "bedrooms": 3}


@pytest.fixture
def geocoder():
    with patch(GEOCODE, new_callable=AsyncMock, return_value=(45.7578, 4.832)) as mock_geocode:
        yield mock_geocode


@pytest.fixture
def notifier():
    with patch(NOTIFY, new_callable=AsyncMock, return_value=0) as mock_notify:
        yield mock_notify


class TestCreate:
    async def test_create_geocodes_logs_and_notifies(self, client: AsyncClient, session, agent, headers, geocoder,
                                                      notifier):
        response = await client.post(BASE, headers=headers, json=NEW_PROPERTY)

        assert response.status_code == 201
        data = response.json()
        assert data["agent_id"] == agent.id
        assert (data["latitude"], data["longitude"]) == (45.7578, 4.832)
        geocoder.assert_awaited_once_with("3 place Bellecour", "Lyon", "69002")
        assert notifier.await_args.args[1] == [agent.id]
        activities = (await session.execute(select(ActivityLog))).scalars().all()
        assert [(a.action, a.entity_id) for a in activities] == [("PROPERTY_CREATED", data["id"])]

    async def test_notification_failure_does_not_fail_creation(self, client: AsyncClient, headers, geocoder):
        with patch(NOTIFY, new_callable=AsyncMock, side_effect=RuntimeError("smtp down")):
            response = await client.post(BASE, headers=headers, json=NEW_PROPERTY)

        assert response.status_code == 201

    async def test_unresolved_address_has_no_coordinates(self, client: AsyncClient, headers, notifier):
        with patch(GEOCODE, new_callable=AsyncMock, return_value=None):
            response = await client.post(BASE, headers=headers, json=NEW_PROPERTY)

        assert response.json()["latitude"] is None

    @pytest.mark.parametrize("field,value", [("price", -1), ("area", -5), ("address", "")])
    async def test_invalid_payload(self, client: AsyncClient, headers, field, value):
        response = await client.post(BASE, headers=headers, json={**NEW_PROPERTY, field: value})

        assert response.status_code == 422

    async def test_plan_limit_refuses(self, client: AsyncClient, agent, headers, monkeypatch, geocoder, notifier):
        monkeypatch.setattr(settings, "plan_limits_enabled", True)

        response = await client.post(BASE, headers=headers, json=NEW_PROPERTY)

        assert response.status_code == 403
        assert response.json()["detail"]["requires_subscription"] is True


class TestReadUpdateDelete:
    async def test_list_is_agency_scoped_with_agent_name(self, client: AsyncClient, owner, employee, agent,
                                                         make_property, auth_for):
        await make_property(owner.id, address="Owner street")
        await make_property(employee.id, address="Employee street")
        await make_property(agent.id, address="Other agency")

        response = await client.get(BASE, headers=auth_for(employee))

        rows = response.json()
        assert sorted(row["address"] for row in rows) == ["Employee street", "Owner street"]
        assert {row["agent_first_name"] for row in rows} == {"Claire", "Paul"}

    async def test_get_other_agency_property_is_404(self, client: AsyncClient, agent, owner, make_property, auth_for):
        prop = await make_property(owner.id)

        response = await client.get(f"{BASE}/{prop.id}", headers=auth_for(agent))

        assert response.status_code == 404

    async def test_partial_update(self, client: AsyncClient, agent, headers, make_property, geocoder):
        prop = await make_property(agent.id, price=300000)

        response = await client.put(f"{BASE}/{prop.id}", headers=headers, json={"price": 280000})

        assert response.status_code == 200
        assert response.json()["price"] == 280000
        assert response.json()["city"] == "Paris"
        geocoder.assert_not_awaited()

    async def test_address_change_is_geocoded_again(self, client: AsyncClient, agent, headers, make_property,
                                                    geocoder):
        prop = await make_property(agent.id)

        await client.put(f"{BASE}/{prop.id}", headers=headers, json={"city": "Lyon"})

        geocoder.assert_awaited_once()

    async def test_delete_keeps_tasks(self, client: AsyncClient, session, agent, headers, make_property):
        prop = await make_property(agent.id)
        task = Task(title="Visit", agent_id=agent.id, property_id=prop.id)
        session.add(task)
        await session.commit()

        response = await client.delete(f"{BASE}/{prop.id}", headers=headers)

        assert response.status_code == 204
        assert await session.get(Property, prop.id) is None
        await session.refresh(task)
        assert task.property_id is None


class TestMatches:
    async def test_matches_sorted_and_zero_scores_dropped(self, client: AsyncClient, agent, headers, make_property,
                                                          make_contact):
        prop = await make_property(agent.id, city="Lyon", price=250000, bedrooms=3, area=90)
        await make_contact(agent.id, first_name="Half", city_preferences="Lyon")
        await make_contact(agent.id, first_name="Full", budget_min=200000, budget_max=300000,
                           city_preferences="lyon, Paris", min_bedrooms=2, min_area=80)
        await make_contact(agent.id, first_name="None", city_preferences="Nice")
        await make_contact(agent.id, first_name="Seller", type="SELLER", city_preferences="Lyon")

        response = await client.get(f"{BASE}/{prop.id}/matches", headers=headers)

        data = response.json()
        assert data["property_id"] == prop.id
        assert [(m["contact"]["first_name"], m["score"]) for m in data["matches"]] == [("Full", 100), ("Half", 30)]
        assert len(data["matches"][0]["reasons"]) == 4


class TestOwners:
    async def test_add_list_remove(self, client: AsyncClient, agent, headers, make_property, make_contact):
        prop = await make_property(agent.id)
        seller = await make_contact(agent.id, type="SELLER", last_name="Vendeur")
        url = f"{BASE}/{prop.id}/owners"

        assert (await client.post(url, headers=headers, json={"contact_id": seller.id})).status_code == 201
        duplicate = await client.post(url, headers=headers, json={"contact_id": seller.id})
        assert duplicate.status_code == 400
        assert [c["last_name"] for c in (await client.get(url, headers=headers)).json()] == ["Vendeur"]

        assert (await client.delete(f"{url}/{seller.id}", headers=headers)).status_code == 204
        assert (await client.delete(f"{url}/{seller.id}", headers=headers)).status_code == 404

    async def test_contact_of_other_agency(self, client: AsyncClient, agent, owner, headers, make_property,
                                           make_contact):
        prop = await make_property(agent.id)
        foreign = await make_contact(owner.id)

        response = await client.post(f"{BASE}/{prop.id}/owners", headers=headers, json={"contact_id": foreign.id})

        assert response.status_code == 404


class TestImages:
    async def test_first_image_is_primary(self, client: AsyncClient, agent, headers, make_property):
        prop = await make_property(agent.id)
        url = f"{BASE}/{prop.id}/images"

        first = (await client.post(url, headers=headers, json={"url": "https://cdn/1.jpg"})).json()
        second = (await client.post(url, headers=headers, json={"url": "https://cdn/2.jpg"})).json()

        assert first["is_primary"] is True
        assert (second["is_primary"], second["display_order"]) == (False, 1)

    async def test_set_primary_is_exclusive(self, client: AsyncClient, agent, headers, make_property):
        prop = await make_property(agent.id)
        url = f"{BASE}/{prop.id}/images"
        await client.post(url, headers=headers, json={"url": "https://cdn/1.jpg"})
        second = (await client.post(url, headers=headers, json={"url": "https://cdn/2.jpg"})).json()

        response = await client.put(f"{url}/{second['id']}/set-primary", headers=headers)

        assert response.json()["is_primary"] is True
        images = (await client.get(url, headers=headers)).json()
        assert [image["is_primary"] for image in images] == [False, True]

    async def test_deleting_primary_promotes_next(self, client: AsyncClient, agent, headers, make_property):
        prop = await make_property(agent.id)
        url = f"{BASE}/{prop.id}/images"
        first = (await client.post(url, headers=headers, json={"url": "https://cdn/1.jpg"})).json()
        await client.post(url, headers=headers, json={"url": "https://cdn/2.jpg"})

        assert (await client.delete(f"{url}/{first['id']}", headers=headers)).status_code == 204

        images = (await client.get(url, headers=headers)).json()
        assert [(image["url"], image["is_primary"]) for image in images] == [("https://cdn/2.jpg", True)]

    async def test_image_of_other_property_is_404(self, client: AsyncClient, agent, headers, make_property):
        prop = await make_property(agent.id)
        other = await make_property(agent.id)
        image = (await client.post(f"{BASE}/{other.id}/images", headers=headers,
                                   json={"url": "https://cdn/1.jpg"})).json()

        response = await client.delete(f"{BASE}/{prop.id}/images/{image['id']}", headers=headers)

        assert response.status_code == 404
