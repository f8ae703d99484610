from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlmodel import select

from immopro.core.database.entities.activities import ActivityLog
from immopro.core.database.entities.appointments import Appointment

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/appointments"


@pytest.fixture
def make_appointment(session):
    async def _make_appointment(agent_id, date, client_name="Bob"):
        appointment = Appointment(agent_id=agent_id, client_name=client_name, client_email="bob@example.com",
                                  appointment_date=date)
        session.add(appointment)
        await session.commit()
        await session.refresh(appointment)
        return appointment

    return _make_appointment


async def test_list_own_appointments_by_date(client: AsyncClient, agent, owner, headers, make_appointment):
    await make_appointment(agent.id, datetime(2026, 10, 22, 14, 0), "Late")
    await make_appointment(agent.id, datetime(2026, 10, 21, 9, 0), "Early")
    await make_appointment(owner.id, datetime(2026, 10, 21, 10, 0), "Foreign")

    response = await client.get(BASE, headers=headers)

    assert [a["client_name"] for a in response.json()] == ["Early", "Late"]
    assert response.json()[0]["status"] == "PENDING"


async def test_confirm_is_journaled(client: AsyncClient, session, agent, headers, make_appointment):
    appointment = await make_appointment(agent.id, datetime(2026, 10, 21, 9, 0))

    response = await client.patch(f"{BASE}/{appointment.id}", headers=headers, json={"status": "CONFIRMED"})

    assert response.json()["status"] == "CONFIRMED"
    actions = [row.action for row in (await session.execute(select(ActivityLog))).scalars().all()]
    assert actions == ["APPOINTMENT_CONFIRMED"]


async def test_invalid_status(client: AsyncClient, agent, headers, make_appointment):
    appointment = await make_appointment(agent.id, datetime(2026, 10, 21, 9, 0))

    response = await client.patch(f"{BASE}/{appointment.id}", headers=headers, json={"status": "DONE"})

    assert response.status_code == 422


async def test_other_agent_appointment_is_404(client: AsyncClient, owner, headers, make_appointment):
    appointment = await make_appointment(owner.id, datetime(2026, 10, 21, 9, 0))

    response = await client.patch(f"{BASE}/{appointment.id}", headers=headers, json={"status": "CANCELLED"})

    assert response.status_code == 404
