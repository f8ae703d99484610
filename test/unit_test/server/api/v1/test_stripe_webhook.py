import json
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from immopro.core.database.repositories.subscriptions import StripeWebhookEventRepository
from immopro.server.core.config import settings

pytestmark = pytest.mark.asyncio

URL = "/api/v1/stripe/webhook"
PROCESS = "immopro.server.api.v1.stripe_webhook.StripeWebhookProcessor.process"


@pytest.fixture(autouse=True)
def unsigned(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", None)


async def test_event_is_acknowledged_and_journaled(client: AsyncClient, session):
    body = json.dumps({"id": "evt_1", "type": "charge.refunded", "data": {"object": {}}})

    response = await client.post(URL, content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    assert response.json() == {"received": True}
    record = await StripeWebhookEventRepository(session).get_by_event_id("evt_1")
    assert record.processed is True


async def test_replayed_event_is_acknowledged(client: AsyncClient):
    body = json.dumps({"id": "evt_1", "type": "charge.refunded", "data": {"object": {}}})

    await client.post(URL, content=body)
    response = await client.post(URL, content=body)

    assert response.status_code == 200


async def test_malformed_payload(client: AsyncClient):
    response = await client.post(URL, content=b"{not json")

    assert response.status_code == 400


async def test_bad_signature(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    body = json.dumps({"id": "evt_1", "type": "charge.refunded"})

    response = await client.post(URL, content=body, headers={"Stripe-Signature": "t=1,v1=deadbeef"})

    assert response.status_code == 400


async def test_handler_failure_asks_stripe_to_retry(client: AsyncClient):
    body = json.dumps({"id": "evt_9", "type": "invoice.payment_failed", "data": {"object": {}}})

    with patch(PROCESS, new_callable=AsyncMock, side_effect=RuntimeError("db down")):
        response = await client.post(URL, content=body)

    assert response.status_code == 500
    assert response.json() == {"error": "Webhook handler failed", "event_id": "evt_9"}
