"""
Store change notifications.

Stores publish a ChangeEvent after every committed mutation. Consumers
(UI streams, caches) subscribe and unsubscribe explicitly. The scheduling
core is pull-based and does not subscribe to anything here.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from itertools import count

from src.config import get_logger

logger = get_logger(__name__)


class ChangeEntity(str, Enum):
    REMINDER = "reminder"
    SCHEDULE = "schedule"
    ENDPOINT = "endpoint"


class ChangeAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """A single committed mutation."""

    entity: ChangeEntity
    action: ChangeAction
    entity_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


Subscriber = Callable[[ChangeEvent], Awaitable[None] | None]


class ChangeFeed:
    """Fan-out of change events to registered subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[int, Subscriber] = {}
        self._tokens = count(1)

    def subscribe(self, callback: Subscriber) -> int:
        """Register a callback; returns the token used to unsubscribe."""
        token = next(self._tokens)
        self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: int) -> bool:
        return self._subscribers.pop(token, None) is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every subscriber; subscriber errors are logged."""
        for token, callback in list(self._subscribers.items()):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning(
                    "change_subscriber_failed",
                    token=token,
                    entity=event.entity.value,
                    action=event.action.value,
                    exc_info=True,
                )
