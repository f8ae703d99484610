"""Domain enums and value objects."""

from __future__ import annotations

from .enums import (
    AppointmentStatus,
    ContactType,
    InvoiceStatus,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
    PlanName,
    SubscriptionStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)

__all__ = [
    "AppointmentStatus",
    "ContactType",
    "InvoiceStatus",
    "NotificationChannel",
    "NotificationStatus",
    "NotificationType",
    "PlanName",
    "SubscriptionStatus",
    "TaskPriority",
    "TaskStatus",
    "UserRole",
]
