"""Unit tests for Stripe webhook parsing and processing."""

import hashlib
import hmac
import json
import time
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from immopro.core.database.repositories.subscriptions import StripeWebhookEventRepository, SubscriptionRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.server.core.config import settings
from immopro.server.exception_handlers.errors import InvalidRequestError
from immopro.server.services.stripe_webhooks import StripeWebhookProcessor, parse_event

EMAILS = "immopro.server.services.subscription_emails"
RETRIEVE = "immopro.server.services.stripe_service.retrieve_subscription"
WEBHOOK_SECRET = "whsec_test"


def stripe_subscription(user_id, **overrides):
    subscription = {
        "id": "sub_1",
        "customer": "cus_1",
        "status": "active",
        "current_period_start": 1760832000,
        "current_period_end": 1763510400,
        "cancel_at_period_end": False,
        "metadata": {"user_id": str(user_id)},
        "items": {"data": [{"id": "si_1", "price": {"id": "price_pro", "unit_amount": 4900, "currency": "eur"}}]},
    }
    subscription.update(overrides)
    return subscription


def event(event_type, obj, event_id="evt_1"):
    return {"id": event_id, "type": event_type, "data": {"object": obj}}


def signed_header(body: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def emails():
    with (
        patch(f"{EMAILS}.send_welcome", new_callable=AsyncMock) as welcome,
        patch(f"{EMAILS}.send_renewal", new_callable=AsyncMock) as renewal,
        patch(f"{EMAILS}.send_canceled", new_callable=AsyncMock) as canceled,
        patch(f"{EMAILS}.send_payment_failed", new_callable=AsyncMock) as failed,
    ):
        yield {"welcome": welcome, "renewal": renewal, "canceled": canceled, "failed": failed}


class TestParseEvent:
    def test_unsigned_payload_without_secret(self, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", None)

        parsed = parse_event(json.dumps(event("invoice.paid", {})).encode(), None)

        assert parsed["type"] == "invoice.paid"

    def test_valid_signature(self, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
        body = json.dumps(event("invoice.paid", {}))

        assert parse_event(body.encode(), signed_header(body))["id"] == "evt_1"

    def test_invalid_signature(self, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
        body = json.dumps(event("invoice.paid", {}))

        with pytest.raises(InvalidRequestError):
            parse_event(body.encode(), signed_header(body, secret="whsec_other"))

    def test_missing_signature(self, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)

        with pytest.raises(InvalidRequestError):
            parse_event(b'{"id": "evt_1", "type": "x"}', None)

    @pytest.mark.parametrize("payload", [b"not json", b"[]", b'{"type": "x"}', b'{"id": "evt_1"}'])
    def test_malformed_payloads(self, payload, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", None)

        with pytest.raises(InvalidRequestError):
            parse_event(payload, None)


class TestJournal:
    async def test_processed_event_is_journaled(self, session):
        assert await StripeWebhookProcessor(session).process(event("charge.refunded", {})) is True

        record = await StripeWebhookEventRepository(session).get_by_event_id("evt_1")
        assert record.type == "charge.refunded"
        assert record.processed is True
        assert record.processed_at is not None

    async def test_duplicate_processed_event_is_skipped(self, session):
        processor = StripeWebhookProcessor(session)
        await processor.process(event("charge.refunded", {}))

        handler = AsyncMock()
        processor.handlers["charge.refunded"] = handler

        assert await processor.process(event("charge.refunded", {})) is False

        handler.assert_not_awaited()

    async def test_failed_event_is_journaled_and_retried(self, session):
        processor = StripeWebhookProcessor(session)
        processor.handlers["invoice.paid"] = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await processor.process(event("invoice.paid", {}))

        repository = StripeWebhookEventRepository(session)
        record = await repository.get_by_event_id("evt_1")
        assert record.processed is False
        assert record.error == "db down"

        processor.handlers["invoice.paid"] = AsyncMock()
        assert await processor.process(event("invoice.paid", {})) is True
        await session.refresh(record)
        assert record.processed is True
        assert record.error is None


class TestSubscriptionEvents:
    async def test_checkout_completed_creates_subscription(self, session, agent, emails):
        checkout = {"id": "cs_1", "customer": "cus_1", "subscription": "sub_1", "metadata": {"user_id": str(agent.id)}}

        with patch(RETRIEVE, new_callable=AsyncMock, return_value=stripe_subscription(agent.id)):
            await StripeWebhookProcessor(session).process(event("checkout.session.completed", checkout))

        subscription = await SubscriptionRepository(session).get_by_user_id(agent.id)
        assert subscription.stripe_subscription_id == "sub_1"
        assert subscription.plan_name == "pro"
        user = await UserRepository(session).get_by_id(agent.id)
        assert user.subscription_status == "active"
        assert user.subscription_plan == "pro"
        assert user.stripe_customer_id == "cus_1"
        assert user.subscription_end_date == datetime.utcfromtimestamp(1763510400)
        emails["welcome"].assert_awaited_once()

    async def test_checkout_without_metadata_is_ignored(self, session, emails):
        with patch(RETRIEVE, new_callable=AsyncMock) as retrieve:
            processed = await StripeWebhookProcessor(session).process(
                event("checkout.session.completed", {"id": "cs_1", "subscription": "sub_1"})
            )

        assert processed is True
        retrieve.assert_not_awaited()
        emails["welcome"].assert_not_awaited()

    async def test_subscription_created_resolves_user_by_customer(self, session, agent, emails):
        agent.stripe_customer_id = "cus_1"
        await UserRepository(session).update(agent)

        await StripeWebhookProcessor(session).process(
            event("customer.subscription.created", stripe_subscription(agent.id, metadata={}))
        )

        subscription = await SubscriptionRepository(session).get_by_user_id(agent.id)
        assert subscription.status == "active"

    async def test_subscription_updated_syncs_user(self, session, agent, make_subscription, emails):
        await make_subscription(agent)
        updated = stripe_subscription(agent.id, id=f"sub_{agent.id}", status="past_due", cancel_at_period_end=True)
        updated["items"]["data"][0]["price"]["unit_amount"] = 9900

        await StripeWebhookProcessor(session).process(event("customer.subscription.updated", updated))

        subscription = await SubscriptionRepository(session).get_by_stripe_id(f"sub_{agent.id}")
        assert subscription.plan_name == "premium"
        assert subscription.cancel_at_period_end is True
        user = await UserRepository(session).get_by_id(agent.id)
        assert user.subscription_status == "past_due"
        assert user.subscription_plan == "premium"

    async def test_subscription_deleted(self, session, agent, make_subscription, emails):
        await make_subscription(agent)

        await StripeWebhookProcessor(session).process(event("customer.subscription.deleted", {"id": f"sub_{agent.id}"}))

        subscription = await SubscriptionRepository(session).get_by_stripe_id(f"sub_{agent.id}")
        assert subscription.status == "canceled"
        assert subscription.canceled_at is not None
        user = await UserRepository(session).get_by_id(agent.id)
        assert user.subscription_status == "inactive"
        assert user.subscription_plan is None
        emails["canceled"].assert_awaited_once()


class TestInvoiceEvents:
    async def test_renewal_email_only_for_cycle_invoices(self, session, agent, make_subscription, emails):
        agent.stripe_customer_id = "cus_1"
        await UserRepository(session).update(agent)
        await make_subscription(agent)
        processor = StripeWebhookProcessor(session)

        await processor.process(
            event("invoice.payment_succeeded", {"id": "in_1", "customer": "cus_1", "billing_reason": "subscription_create"})
        )
        await processor.process(
            event("invoice.payment_succeeded", {"id": "in_2", "customer": "cus_1", "billing_reason": "subscription_cycle"},
                  event_id="evt_2")
        )

        emails["renewal"].assert_awaited_once()
        assert emails["renewal"].await_args.args[2]["id"] == "in_2"

    async def test_payment_failed_marks_past_due(self, session, agent, make_subscription, emails):
        agent.stripe_customer_id = "cus_1"
        await UserRepository(session).update(agent)
        await make_subscription(agent)

        await StripeWebhookProcessor(session).process(
            event("invoice.payment_failed", {"id": "in_1", "customer": "cus_1", "amount_due": 4900})
        )

        user = await UserRepository(session).get_by_id(agent.id)
        assert user.subscription_status == "past_due"
        subscription = await SubscriptionRepository(session).get_by_user_id(agent.id)
        assert subscription.status == "past_due"
        emails["failed"].assert_awaited_once()

    async def test_payment_failed_for_unknown_customer(self, session, emails):
        processed = await StripeWebhookProcessor(session).process(
            event("invoice.payment_failed", {"id": "in_1", "customer": "cus_unknown"})
        )

        assert processed is True
        emails["failed"].assert_not_awaited()
