"""Core domain entities."""

from src.core.entities.identifiers import new_id
from src.core.entities.notification import (
    DeliveryEndpoint,
    DueNotification,
    EndpointKeys,
    PushAction,
    PushPayload,
    PushPayloadData,
    ScheduledNotification,
)
from src.core.entities.reminder import Reminder, ensure_utc

__all__ = [
    # Reminder
    "Reminder",
    "ensure_utc",
    "new_id",
    # Notification
    "ScheduledNotification",
    "DueNotification",
    "DeliveryEndpoint",
    "EndpointKeys",
    "PushAction",
    "PushPayload",
    "PushPayloadData",
]
