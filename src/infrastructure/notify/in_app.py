"""
In-process notification surface.

Holds the currently shown notification per tag (a newer notification with
the same tag replaces the older one) and fans each new notification out to
subscriber queues, which back the server-sent event stream.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.config import get_logger
from src.core.entities.notification import PushPayload
from src.core.exceptions import LocalDeliveryError
from src.core.interfaces.delivery import ILocalNotifier
from src.core.services.payloads import FALLBACK_URL

logger = get_logger(__name__)

DISMISS_ACTION = "dismiss"
UNTAGGED = "untagged"


@dataclass
class ActiveNotification:
    """A notification currently shown in-app."""

    tag: str
    payload: PushPayload
    shown_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "tag": self.tag,
            "shown_at": self.shown_at.isoformat(),
            "payload": self.payload.to_wire(),
        }


class InAppNotifier(ILocalNotifier):
    """In-app notifier; `enabled=False` models revoked permission."""

    def __init__(self, enabled: bool = True, queue_size: int = 100):
        self.enabled = enabled
        self._queue_size = queue_size
        self._active: dict[str, ActiveNotification] = {}
        self._subscribers: set[asyncio.Queue[ActiveNotification]] = set()

    async def show(self, payload: PushPayload) -> None:
        if not self.enabled:
            raise LocalDeliveryError("notification permission not granted")

        notification = ActiveNotification(tag=payload.tag or UNTAGGED, payload=payload)
        replaced = notification.tag in self._active
        self._active[notification.tag] = notification

        for queue in list(self._subscribers):
            try:
                queue.put_nowait(notification)
            except asyncio.QueueFull:
                logger.warning("in_app_subscriber_queue_full", tag=notification.tag)

        logger.info(
            "in_app_notification_shown",
            tag=notification.tag,
            replaced=replaced,
            subscribers=len(self._subscribers),
        )

    def active(self) -> list[ActiveNotification]:
        """Shown notifications, oldest first."""
        return sorted(self._active.values(), key=lambda n: n.shown_at)

    def subscribe(self) -> asyncio.Queue[ActiveNotification]:
        queue: asyncio.Queue[ActiveNotification] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ActiveNotification]) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def activate(self, tag: str, action: str | None = None) -> str | None:
        """
        Handle a click or action button.

        The notification is closed in every case. "dismiss" returns None;
        anything else returns the deep-link URL to open.
        """
        notification = self._active.pop(tag, None)
        logger.info("in_app_notification_activated", tag=tag, action=action, found=notification is not None)

        if action == DISMISS_ACTION:
            return None
        if notification is not None and notification.payload.data is not None:
            return notification.payload.data.url
        return FALLBACK_URL

    def clear(self) -> None:
        self._active.clear()
