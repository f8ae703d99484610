"""Unit tests for the notification journal and push subscription repositories."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from immopro.core.database.entities.notifications import Notification
from immopro.core.database.repositories.notifications import (
    NotificationRepository,
    PushSubscriptionRepository,
)


@pytest.fixture
async def journal(in_memory_session, stored_user):
    now = datetime.utcnow()
    rows = [
        Notification(type="NEW_PROPERTY_MATCH", channel="EMAIL", recipient="a@example.com", agent_id=stored_user.id,
                     sent_at=now - timedelta(minutes=3)),
        Notification(type="NEW_PROPERTY_MATCH", channel="PUSH", recipient="https://push/1", agent_id=stored_user.id,
                     status="FAILED", error="gone", sent_at=now - timedelta(minutes=2)),
        Notification(type="APPOINTMENT_REMINDER", channel="EMAIL", recipient="b@example.com",
                     agent_id=stored_user.id, sent_at=now - timedelta(minutes=1)),
        Notification(type="NEW_PROPERTY_MATCH", channel="EMAIL", recipient="c@example.com", sent_at=now),
    ]
    in_memory_session.add_all(rows)
    await in_memory_session.commit()
    return rows


class TestNotificationRepository:
    async def test_list_is_newest_first(self, in_memory_session, stored_user, journal):
        result = await NotificationRepository(in_memory_session).list(filters={"agent_id": stored_user.id})

        assert [row.recipient for row in result] == ["b@example.com", "https://push/1", "a@example.com"]

    async def test_list_paginates(self, in_memory_session, journal):
        result = await NotificationRepository(in_memory_session).list(limit=2, offset=1)

        assert len(result) == 2
        assert result[0].recipient == "b@example.com"

    async def test_count_with_filters(self, in_memory_session, stored_user, journal):
        repository = NotificationRepository(in_memory_session)

        assert await repository.count() == 4
        assert await repository.count({"agent_id": stored_user.id, "status": "FAILED"}) == 1

    async def test_count_by_type(self, in_memory_session, stored_user, journal):
        groups = await NotificationRepository(in_memory_session).count_by("type", {"agent_id": stored_user.id})

        assert groups == [
            {"key": "NEW_PROPERTY_MATCH", "count": 2},
            {"key": "APPOINTMENT_REMINDER", "count": 1},
        ]

    async def test_default_status_is_sent(self, in_memory_session):
        notification = await NotificationRepository(in_memory_session).create(
            Notification(type="NEW_PROPERTY_MATCH", channel="EMAIL", recipient="x@example.com")
        )

        assert notification.status == "SENT"
        assert notification.payload == {}


class TestPushSubscriptionRepository:
    async def test_save_refreshes_keys_of_known_endpoint(self, in_memory_session, stored_user):
        repository = PushSubscriptionRepository(in_memory_session)

        first = await repository.save(stored_user.id, "https://push/1", "key-1", "auth-1")
        second = await repository.save(stored_user.id, "https://push/1", "key-2", "auth-2")

        assert first.id == second.id
        stored = await repository.list_for_agent(stored_user.id)
        assert len(stored) == 1
        assert stored[0].p256dh == "key-2"
        assert stored[0].to_subscription_info()["keys"] == {"p256dh": "key-2", "auth": "auth-2"}

    async def test_remove_returns_deleted_rows(self, in_memory_session, stored_user):
        repository = PushSubscriptionRepository(in_memory_session)
        await repository.save(stored_user.id, "https://push/1", "k", "a")

        assert await repository.remove(stored_user.id, "https://push/1") == 1
        assert await repository.remove(stored_user.id, "https://push/1") == 0
        assert await repository.list_for_agent(stored_user.id) == []
