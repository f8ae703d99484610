"""Domain enums for the agency models."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """
    Role of a user inside an agency.

    OWNER accounts run the agency and manage employees; ADMIN accounts operate
    the platform itself.
    """

    AGENT = "AGENT"
    OWNER = "OWNER"
    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"


class ContactType(str, Enum):
    """Kind of client a contact is."""

    BUYER = "BUYER"
    SELLER = "SELLER"


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "PENDING"
    DONE = "DONE"


class TaskPriority(str, Enum):
    """Priority of a task."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class InvoiceStatus(str, Enum):
    """Payment status of an invoice."""

    PENDING = "PENDING"
    PAID = "PAID"


class AppointmentStatus(str, Enum):
    """Lifecycle status of a visit appointment."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class SubscriptionStatus(str, Enum):
    """
    Subscription status.

    Values mirror the statuses reported by Stripe, plus ``inactive`` for users
    that never subscribed or whose subscription was deleted.
    """

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"
    INACTIVE = "inactive"


ACTIVE_SUBSCRIPTION_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


class PlanName(str, Enum):
    """Commercial plan tiers."""

    STARTER = "starter"
    PRO = "pro"
    PREMIUM = "premium"


class NotificationType(str, Enum):
    """Kinds of notifications sent to contacts and agents."""

    NEW_PROPERTY_MATCH = "NEW_PROPERTY_MATCH"
    APPOINTMENT_REMINDER = "APPOINTMENT_REMINDER"
    NEW_LEAD = "NEW_LEAD"
    TEST = "TEST"


class NotificationChannel(str, Enum):
    """Delivery channel of a notification."""

    EMAIL = "EMAIL"
    PUSH = "PUSH"


class NotificationStatus(str, Enum):
    """Delivery outcome of a notification."""

    SENT = "SENT"
    FAILED = "FAILED"
