"""Unit tests for the Resend email service and the HTML templates."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from immopro.server.core.config import settings
from immopro.server.services import email_templates
from immopro.server.services.email_service import EmailResult, is_configured, send_email


@pytest.fixture
def resend_configured(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test_key")
    monkeypatch.setattr(settings, "RESEND_FROM_EMAIL", "ImmoPro <noreply@immopro.com>")


class TestSendEmail:
    async def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "RESEND_API_KEY", None)

        with patch("immopro.server.services.email_service.resend.Emails.send") as mock_send:
            result = await send_email("alice@example.com", "Hi", "<p>Hi</p>")

        assert is_configured() is False
        assert result == EmailResult(success=False, error="Email service not configured")
        mock_send.assert_not_called()

    async def test_sent(self, resend_configured):
        with patch(
            "immopro.server.services.email_service.resend.Emails.send", return_value={"id": "msg_123"}
        ) as mock_send:
            result = await send_email("alice@example.com", "Hi", "<p>Hi</p>")

        assert result.success is True
        assert result.message_id == "msg_123"
        params = mock_send.call_args[0][0]
        assert params["to"] == ["alice@example.com"]
        assert params["from"] == "ImmoPro <noreply@immopro.com>"
        assert params["subject"] == "Hi"
        assert params["html"] == "<p>Hi</p>"

    async def test_provider_error_is_reported_not_raised(self, resend_configured):
        with patch(
            "immopro.server.services.email_service.resend.Emails.send", side_effect=RuntimeError("rate limited")
        ):
            result = await send_email("alice@example.com", "Hi", "<p>Hi</p>")

        assert result.success is False
        assert result.error == "rate limited"
        assert result.message_id is None


class TestEmailTemplates:
    @pytest.fixture
    def prop(self):
        return SimpleNamespace(
            id=5, address="10 rue de la Paix", postal_code="75002", city="Paris",
            price=450000, area=72, rooms=3, bedrooms=2,
        )

    def test_property_match_email(self, prop):
        subject, html = email_templates.property_match_email("Alice", prop, 85, ["Within budget", "In Paris"])

        assert subject == "New property for you in Paris"
        assert "85% match" in html
        assert "450 000 EUR" in html
        assert "<li>Within budget</li>" in html
        assert "/public/properties/5" in html

    def test_user_values_are_escaped(self, prop):
        _, html = email_templates.property_match_email("<script>x</script>", prop, 40, [])

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_appointment_reminder_email(self):
        subject, html = email_templates.appointment_reminder_email(
            "Bob", datetime(2026, 10, 20, 14, 30), "Jean Dupont", "3 place Bellecour"
        )

        assert "tomorrow" in subject
        assert "20/10/2026 at 14:30" in html
        assert "3 place Bellecour" in html

    def test_new_lead_email(self):
        lead = SimpleNamespace(id=9, first_name="Eve", last_name="Moreau", email="eve@example.com", phone_number=None)

        subject, html = email_templates.new_lead_email("Jean", lead, "Is it still available?", None)

        assert subject == "New lead: Eve Moreau"
        assert "Is it still available?" in html
        assert "/contacts/9" in html

    def test_employee_welcome_email_contains_credentials(self):
        subject, html = email_templates.employee_welcome_email("Paul", "Claire Martin", "paul@example.com", "Xy7!pass")

        assert "Welcome" in subject
        assert "paul@example.com" in html
        assert "Xy7!pass" in html

    def test_billing_emails_format_cents(self):
        subscription = SimpleNamespace(
            plan_name="pro", amount=4900, currency="eur", interval="month", current_period_end=datetime(2026, 11, 19)
        )

        _, welcome = email_templates.subscription_welcome_email("Jean", subscription)
        _, failed = email_templates.payment_failed_email("Jean", {"amount_due": 4900, "currency": "eur"})

        assert "49.00 EUR / month" in welcome
        assert "19/11/2026" in welcome
        assert "49.00 EUR" in failed

    def test_renewal_email_links_hosted_invoice(self):
        subscription = SimpleNamespace(plan_name="pro")
        invoice = {"amount_paid": 4900, "currency": "eur", "hosted_invoice_url": "https://pay.stripe.com/i/1"}

        _, html = email_templates.subscription_renewal_email("Jean", subscription, invoice)

        assert "https://pay.stripe.com/i/1" in html
