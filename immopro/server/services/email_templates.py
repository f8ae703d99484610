"""
HTML email templates.

Every builder returns a ``(subject, html)`` pair. Values coming from users are
escaped before being inserted in the markup.
"""

from __future__ import annotations

from html import escape
from typing import Any, Mapping, Optional, Sequence, Tuple

from immopro.server.core.config import settings

BRAND = "ImmoPro"
PRIMARY_COLOR = "#2563eb"

Email = Tuple[str, str]


def _layout(title: str, content: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: {PRIMARY_COLOR};">{title}</h1>
  {content}
  <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
  <p style="color: #6b7280; font-size: 14px;">{BRAND} - Your real-estate management platform</p>
</div>
"""


def _button(url: str, label: str) -> str:
    return (
        f'<div style="margin: 30px 0;"><a href="{escape(url)}" style="background-color: {PRIMARY_COLOR}; '
        f'color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">'
        f"{escape(label)}</a></div>"
    )


def _price(amount: Any) -> str:
    return f"{int(amount):,} EUR".replace(",", " ")


def _cents(amount: Optional[int], currency: str = "eur") -> str:
    return f"{(amount or 0) / 100:.2f} {currency.upper()}"


def property_match_email(contact_name: str, prop: Any, score: int, reasons: Sequence[str]) -> Email:
    """Email sent to a buyer when a new property matches their criteria."""
    reason_items = "".join(f"<li>{escape(reason)}</li>" for reason in reasons)
    location = ", ".join(part for part in (prop.address, prop.postal_code, prop.city) if part)
    content = f"""
  <p>Hello {escape(contact_name)},</p>
  <p>A new property matching your search has just been listed ({score}% match).</p>
  <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h2 style="margin-top: 0;">{escape(location)}</h2>
    <p style="margin: 5px 0;"><strong>Price:</strong> {_price(prop.price)}</p>
    <p style="margin: 5px 0;"><strong>Area:</strong> {prop.area} m2</p>
    <p style="margin: 5px 0;"><strong>Rooms:</strong> {prop.rooms} ({prop.bedrooms} bedrooms)</p>
  </div>
  <p>Why we think you will like it:</p>
  <ul>{reason_items}</ul>
  {_button(f"{settings.frontend_url}/public/properties/{prop.id}", "View the property")}
"""
    return f"New property for you in {prop.city or 'your area'}", _layout("A property matches your search", content)


def appointment_reminder_email(client_name: str, appointment_date: Any, agent_name: str, address: Optional[str]) -> Email:
    """Reminder sent to a client the day before a visit."""
    when = appointment_date.strftime("%d/%m/%Y at %H:%M")
    where = f"<p><strong>Address:</strong> {escape(address)}</p>" if address else ""
    content = f"""
  <p>Hello {escape(client_name)},</p>
  <p>This is a reminder of your appointment with {escape(agent_name)} on <strong>{when}</strong>.</p>
  {where}
  <p>If you cannot make it, please contact your agent to reschedule.</p>
"""
    return "Reminder: your appointment tomorrow", _layout("Appointment reminder", content)


def new_lead_email(agent_name: str, lead: Any, message: Optional[str], property_address: Optional[str]) -> Email:
    """Email sent to an agent when a prospect fills the public contact form."""
    about = f"<p><strong>Property:</strong> {escape(property_address)}</p>" if property_address else ""
    body = f"<blockquote>{escape(message)}</blockquote>" if message else ""
    content = f"""
  <p>Hello {escape(agent_name)},</p>
  <p>You have a new lead: <strong>{escape(lead.first_name)} {escape(lead.last_name)}</strong>.</p>
  <p><strong>Email:</strong> {escape(lead.email or '')}<br>
     <strong>Phone:</strong> {escape(lead.phone_number or '-')}</p>
  {about}
  {body}
  {_button(f"{settings.frontend_url}/contacts/{lead.id}", "Open the contact")}
"""
    return f"New lead: {lead.first_name} {lead.last_name}", _layout("New lead", content)


def notification_check_email(contact_name: str) -> Email:
    content = f"<p>Hello {escape(contact_name)},</p><p>This is a test notification from {BRAND}.</p>"
    return f"{BRAND} test notification", _layout("Test notification", content)


def employee_welcome_email(first_name: str, owner_name: str, email: str, password: str) -> Email:
    """Credentials sent to a newly created employee."""
    content = f"""
  <p>You have been added to the {BRAND} team by {escape(owner_name)}.</p>
  <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h2 style="margin-top: 0;">Your credentials</h2>
    <p style="margin: 5px 0;"><strong>Email:</strong> {escape(email)}</p>
    <p style="margin: 5px 0;"><strong>Password:</strong> <code>{escape(password)}</code></p>
  </div>
  <p><strong>Important:</strong> please change this password after your first login.</p>
  {_button(f"{settings.frontend_url}/login", "Sign in")}
"""
    return f"Welcome to the {BRAND} team!", _layout(f"Welcome {escape(first_name)}!", content)


def password_reset_email(first_name: str, password: str) -> Email:
    content = f"""
  <p>Hello {escape(first_name)},</p>
  <p>Your password has been reset by your agency owner.</p>
  <p><strong>New password:</strong> <code>{escape(password)}</code></p>
  {_button(f"{settings.frontend_url}/login", "Sign in")}
"""
    return f"Your {BRAND} password has been reset", _layout("Password reset", content)


def subscription_welcome_email(first_name: str, subscription: Any) -> Email:
    period_end = subscription.current_period_end.strftime("%d/%m/%Y") if subscription.current_period_end else "-"
    content = f"""
  <p>Hello {escape(first_name)},</p>
  <p>Thank you for subscribing to the <strong>{escape(subscription.plan_name)}</strong> plan.</p>
  <p><strong>Amount:</strong> {_cents(subscription.amount, subscription.currency)} / {subscription.interval}<br>
     <strong>Current period ends:</strong> {period_end}</p>
  {_button(f"{settings.frontend_url}/subscription", "Manage my subscription")}
"""
    return f"Welcome to {BRAND} {subscription.plan_name}!", _layout("Subscription confirmed", content)


def subscription_renewal_email(first_name: str, subscription: Any, invoice: Mapping[str, Any]) -> Email:
    content = f"""
  <p>Hello {escape(first_name)},</p>
  <p>Your <strong>{escape(subscription.plan_name)}</strong> subscription has been renewed.</p>
  <p><strong>Amount paid:</strong> {_cents(invoice.get('amount_paid'), invoice.get('currency') or 'eur')}</p>
  {_button(invoice.get('hosted_invoice_url') or f"{settings.frontend_url}/subscription", "View the invoice")}
"""
    return f"Your {BRAND} subscription has been renewed", _layout("Subscription renewed", content)


def subscription_canceled_email(first_name: str, subscription: Any) -> Email:
    content = f"""
  <p>Hello {escape(first_name)},</p>
  <p>Your <strong>{escape(subscription.plan_name)}</strong> subscription has been canceled.
     We are sorry to see you go.</p>
  {_button(f"{settings.frontend_url}/subscription", "Subscribe again")}
"""
    return f"Your {BRAND} subscription has been canceled", _layout("Subscription canceled", content)


def payment_failed_email(first_name: str, invoice: Mapping[str, Any]) -> Email:
    content = f"""
  <p>Hello {escape(first_name)},</p>
  <p>We could not process the payment of {_cents(invoice.get('amount_due'), invoice.get('currency') or 'eur')}
     for your subscription. Please update your payment method to keep access to {BRAND}.</p>
  {_button(f"{settings.frontend_url}/subscription", "Update my payment method")}
"""
    return "Payment failed for your subscription", _layout("Payment failed", content)
