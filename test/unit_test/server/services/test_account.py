"""Unit tests for the RGPD export and erasure of user data."""

from sqlmodel import select

from immopro.core.database.entities.activities import ActivityLog
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.invoices import Invoice
from immopro.core.database.entities.notifications import PushSubscription
from immopro.core.database.entities.properties import Property, PropertyImage, PropertyOwner
from immopro.core.database.entities.subscriptions import Subscription
from immopro.core.database.entities.tasks import Task
from immopro.core.database.entities.users import User
from immopro.server.services.account import delete_user_data, export_user_data


async def _all(session, model):
    return (await session.execute(select(model))).scalars().all()


class TestExport:
    async def test_export_contains_only_own_records(self, session, agent, make_user, make_property, make_contact):
        other = await make_user("other@example.com")
        await make_property(agent.id, city="Lyon")
        await make_property(other.id)
        await make_contact(agent.id)
        session.add(Task(title="Call back", agent_id=agent.id))
        await session.commit()

        data = await export_user_data(session, agent)

        assert data["user"]["email"] == "agent@example.com"
        assert "hashed_password" not in data["user"]
        assert [prop["city"] for prop in data["properties"]] == ["Lyon"]
        assert len(data["contacts"]) == 1
        assert data["tasks"][0]["title"] == "Call back"
        assert data["invoices"] == []
        assert data["exported_at"] is not None


class TestDelete:
    async def test_user_and_owned_records_are_removed(
        self, session, owner, employee, make_property, make_contact, make_subscription
    ):
        prop = await make_property(owner.id)
        contact = await make_contact(owner.id)
        session.add_all(
            [
                PropertyImage(property_id=prop.id, url="https://cdn/1.jpg"),
                PropertyOwner(property_id=prop.id, contact_id=contact.id),
                Invoice(ref="FAC-20261019-1", amount=1200.0, agent_id=owner.id, contact_id=contact.id),
                ActivityLog(agent_id=owner.id, action="PROPERTY_CREATED", description="added"),
                PushSubscription(agent_id=owner.id, endpoint="https://push/1", p256dh="k", auth="a"),
                Task(title="Own task", agent_id=owner.id),
            ]
        )
        employee_task = Task(title="Visit", agent_id=employee.id, contact_id=contact.id, property_id=prop.id)
        session.add(employee_task)
        await session.commit()
        await make_subscription(owner)

        await delete_user_data(session, owner)

        for model in (Property, PropertyImage, PropertyOwner, Contact, Invoice, ActivityLog, PushSubscription,
                      Subscription):
            assert await _all(session, model) == [], model.__name__
        assert [user.email for user in await _all(session, User)] == ["employee@example.com"]

        await session.refresh(employee)
        await session.refresh(employee_task)
        assert employee.owner_id is None
        assert (employee_task.contact_id, employee_task.property_id) == (None, None)
