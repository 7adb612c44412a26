"""Notification payload rendering shared by the in-app and push channels."""

from src.core.entities.notification import (
    DueNotification,
    PushAction,
    PushPayload,
    PushPayloadData,
)

DEFAULT_ICON = "/icon-192x192.png"
DEFAULT_BADGE = "/badge.png"
FALLBACK_URL = "/reminders"

DEFAULT_ACTIONS = [
    PushAction(action="view", title="View"),
    PushAction(action="dismiss", title="Dismiss"),
]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_offset_phrase(minutes: int) -> str:
    """Body text for an entry without a description."""
    if minutes <= 0:
        return "Reminder is due now"
    if minutes < 60:
        return f"Reminder in {_plural(minutes, 'minute')}"
    hours = minutes // 60
    if hours < 24:
        return f"Reminder in {_plural(hours, 'hour')}"
    return f"Reminder in {_plural(hours // 24, 'day')}"


def notification_tag(reminder_id: str) -> str:
    """Same-tag notifications replace each other on the device."""
    return f"reminder-{reminder_id}"


def reminder_url(reminder_id: str) -> str:
    return f"{FALLBACK_URL}/{reminder_id}"


def render_payload(
    due: DueNotification,
    icon: str | None = DEFAULT_ICON,
    badge: str | None = DEFAULT_BADGE,
) -> PushPayload:
    """
    Build the payload for a due schedule entry.

    The body is the reminder description when present, otherwise a phrase
    derived from the alert offset.
    """
    entry = due.notification
    return PushPayload(
        title=due.title or "Reminder",
        body=due.description or format_offset_phrase(entry.offset_minutes),
        icon=icon,
        badge=badge,
        tag=notification_tag(entry.reminder_id),
        data=PushPayloadData(
            item_id=entry.reminder_id,
            url=reminder_url(entry.reminder_id),
        ),
        actions=[action.model_copy() for action in DEFAULT_ACTIONS],
    )
