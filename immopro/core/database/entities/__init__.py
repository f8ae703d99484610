"""
Database entity models.

Each module holds the tables of one business domain:
- users: platform users and agency membership
- properties: listed properties, owner links, images and page views
- contacts: buyers and sellers with search criteria
- tasks: agent to-do items
- invoices: invoices issued to contacts
- appointments: visit appointments booked by clients
- subscriptions: Stripe plans, subscriptions and webhook journal
- activities: agent activity log
- notifications: notification journal and web push subscriptions
"""

from .activities import ActivityLog
from .appointments import Appointment
from .contacts import Contact
from .invoices import Invoice
from .notifications import Notification, PushSubscription
from .properties import Property, PropertyImage, PropertyOwner, PropertyView
from .subscriptions import StripeWebhookEvent, Subscription, SubscriptionPlan
from .tasks import Task
from .users import User

__all__ = [
    "ActivityLog",
    "Appointment",
    "Contact",
    "Invoice",
    "Notification",
    "Property",
    "PropertyImage",
    "PropertyOwner",
    "PropertyView",
    "PushSubscription",
    "StripeWebhookEvent",
    "Subscription",
    "SubscriptionPlan",
    "Task",
    "User",
]
