from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlmodel import select

from immopro.core.database.entities.appointments import Appointment
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.properties import PropertyImage, PropertyView
from immopro.server.api.v1.public import device_from_user_agent, source_from_referer

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/public"
SERVICE = "immopro.server.api.v1.public.NotificationService"
TOMORROW = date.today() + timedelta(days=1)


@pytest.fixture
def notify_appointment():
    with patch(f"{SERVICE}.notify_agent_new_appointment", new_callable=AsyncMock, return_value=1) as mock_notify:
        yield mock_notify


@pytest.fixture
def notify_lead():
    with patch(f"{SERVICE}.notify_agent_new_lead", new_callable=AsyncMock) as mock_notify:
        yield mock_notify


class TestHelpers:
    @pytest.mark.parametrize(
        "user_agent,device",
        [
            ("Mozilla/5.0 (iPad; CPU OS 17_0)", "tablet"),
            ("Mozilla/5.0 (Linux; Android 14) Mobile", "mobile"),
            ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)", "mobile"),
            ("Mozilla/5.0 (Windows NT 10.0; Win64; x64)", "desktop"),
            (None, "desktop"),
        ],
    )
    def test_device_from_user_agent(self, user_agent, device):
        assert device_from_user_agent(user_agent) == device

    def test_source_from_referer(self):
        assert source_from_referer("https://www.google.com/search?q=x") == "www.google.com"
        assert source_from_referer("not a url") is None
        assert source_from_referer(None) is None


class TestPublicProperty:
    async def test_page_includes_agent_and_images_and_records_view(self, client: AsyncClient, session, agent,
                                                                   make_property):
        prop = await make_property(agent.id)
        session.add(PropertyImage(property_id=prop.id, url="https://cdn/1.jpg", is_primary=True))
        await session.commit()

        response = await client.get(
            f"{BASE}/properties/{prop.id}",
            headers={"Referer": "https://www.seloger.com/annonce", "User-Agent": "Android Mobile"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["agent"] == {"id": agent.id, "first_name": "Jean", "last_name": "Dupont",
                                 "email": "agent@example.com"}
        assert [image["url"] for image in data["images"]] == ["https://cdn/1.jpg"]
        view = (await session.execute(select(PropertyView))).scalars().one()
        assert (view.source, view.device) == ("www.seloger.com", "mobile")

    async def test_source_parameter_wins_over_referer(self, client: AsyncClient, session, agent, make_property):
        prop = await make_property(agent.id)

        await client.get(f"{BASE}/properties/{prop.id}", params={"source": "newsletter"},
                         headers={"Referer": "https://www.google.com/"})

        view = (await session.execute(select(PropertyView))).scalars().one()
        assert view.source == "newsletter"

    async def test_unknown_property(self, client: AsyncClient):
        assert (await client.get(f"{BASE}/properties/999")).status_code == 404


class TestAvailability:
    async def test_booked_slots_are_removed(self, client: AsyncClient, session, agent):
        session.add_all([
            Appointment(agent_id=agent.id, client_name="A", client_email="a@example.com",
                        appointment_date=datetime.combine(TOMORROW, datetime.min.time()).replace(hour=10)),
            Appointment(agent_id=agent.id, client_name="B", client_email="b@example.com", status="CANCELLED",
                        appointment_date=datetime.combine(TOMORROW, datetime.min.time()).replace(hour=11)),
        ])
        await session.commit()

        response = await client.get(f"{BASE}/agents/{agent.id}/availability", params={"date": TOMORROW.isoformat()})

        slots = response.json()["slots"]
        assert slots[0] == "09:00"
        assert slots[-1] == "16:00"
        assert "10:00" not in slots
        assert "11:00" in slots
        assert len(slots) == 7

    async def test_unknown_agent(self, client: AsyncClient):
        response = await client.get(f"{BASE}/agents/999/availability", params={"date": TOMORROW.isoformat()})

        assert response.status_code == 404


class TestBooking:
    def booking(self, **overrides):
        payload = {"client_name": "Bob Martin", "client_email": "bob@example.com", "date": TOMORROW.isoformat(),
                   "time": "14:00"}
        payload.update(overrides)
        return payload

    async def test_booking_notifies_agent(self, client: AsyncClient, agent, notify_appointment):
        response = await client.post(f"{BASE}/agents/{agent.id}/appointments", json=self.booking())

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["appointment_date"].startswith(f"{TOMORROW.isoformat()}T14:00")
        notify_appointment.assert_awaited_once()

    async def test_slot_cannot_be_booked_twice(self, client: AsyncClient, agent, notify_appointment):
        await client.post(f"{BASE}/agents/{agent.id}/appointments", json=self.booking())

        response = await client.post(f"{BASE}/agents/{agent.id}/appointments", json=self.booking())

        assert response.status_code == 400
        assert response.json()["detail"] == "This slot is already booked"

    @pytest.mark.parametrize(
        "overrides,detail",
        [
            ({"time": "18:00"}, "Invalid time slot"),
            ({"time": "09:30"}, "Invalid time slot"),
            ({"client_email": "bob"}, "Invalid email format"),
            ({"date": (date.today() - timedelta(days=1)).isoformat()}, "This slot is in the past"),
        ],
    )
    async def test_invalid_bookings(self, client: AsyncClient, agent, notify_appointment, overrides, detail):
        response = await client.post(f"{BASE}/agents/{agent.id}/appointments", json=self.booking(**overrides))

        assert response.status_code == 400
        assert response.json()["detail"] == detail

    async def test_property_of_other_agency(self, client: AsyncClient, agent, owner, make_property,
                                            notify_appointment):
        prop = await make_property(owner.id)

        response = await client.post(f"{BASE}/agents/{agent.id}/appointments",
                                     json=self.booking(property_id=prop.id))

        assert response.status_code == 404

    async def test_notification_failure_keeps_booking(self, client: AsyncClient, agent):
        with patch(f"{SERVICE}.notify_agent_new_appointment", new_callable=AsyncMock, side_effect=RuntimeError("x")):
            response = await client.post(f"{BASE}/agents/{agent.id}/appointments", json=self.booking())

        assert response.status_code == 201


class TestLeads:
    async def test_new_lead_creates_buyer(self, client: AsyncClient, session, agent, make_property, notify_lead):
        prop = await make_property(agent.id)

        response = await client.post(f"{BASE}/leads", json={
            "agent_id": agent.id, "first_name": "Eve", "last_name": "Moreau", "email": "Eve@Example.com",
            "message": "Still available?", "property_id": prop.id,
        })

        assert response.status_code == 201
        contact = await session.get(Contact, response.json()["contact_id"])
        assert (contact.email, contact.type, contact.agent_id) == ("eve@example.com", "BUYER", agent.id)
        args = notify_lead.await_args.args
        assert args[2] == "Still available?"
        assert args[3].id == prop.id

    async def test_existing_contact_is_reused(self, client: AsyncClient, session, owner, employee, make_contact,
                                              notify_lead):
        existing = await make_contact(employee.id, email="eve@example.com", phone_number=None)

        response = await client.post(f"{BASE}/leads", json={
            "agent_id": owner.id, "first_name": "Eve", "last_name": "Moreau", "email": "EVE@example.com",
            "phone_number": "0611223344",
        })

        assert response.json()["contact_id"] == existing.id
        await session.refresh(existing)
        assert existing.phone_number == "0611223344"
        assert len((await session.execute(select(Contact))).scalars().all()) == 1

    async def test_foreign_property_is_ignored(self, client: AsyncClient, agent, owner, make_property, notify_lead):
        prop = await make_property(owner.id)

        response = await client.post(f"{BASE}/leads", json={
            "agent_id": agent.id, "first_name": "Eve", "last_name": "Moreau", "email": "eve@example.com",
            "property_id": prop.id,
        })

        assert response.status_code == 201
        assert notify_lead.await_args.args[3] is None

    async def test_invalid_email(self, client: AsyncClient, agent, notify_lead):
        response = await client.post(f"{BASE}/leads", json={
            "agent_id": agent.id, "first_name": "Eve", "last_name": "Moreau", "email": "eve-at-example",
        })

        assert response.status_code == 400
        notify_lead.assert_not_awaited()
