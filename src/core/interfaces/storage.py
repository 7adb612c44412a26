"""
Abstract interfaces for storage providers.

Defines contracts for the reminder, schedule, and push endpoint stores.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from src.core.entities.notification import (
    DeliveryEndpoint,
    DueNotification,
    ScheduledNotification,
)
from src.core.entities.reminder import Reminder


class IReminderReader(ABC):
    """
    Read access to reminders.

    The scheduling core never writes reminders; this is all it consumes.
    """

    @abstractmethod
    async def get_by_id(self, reminder_id: str) -> Reminder | None:
        """Get reminder by ID, including soft-deleted ones."""
        pass

    @abstractmethod
    async def list_active(self) -> list[Reminder]:
        """List reminders that are active and not soft-deleted."""
        pass

    @abstractmethod
    async def list_all(self) -> list[Reminder]:
        """List every reminder that is not soft-deleted."""
        pass


class IReminderStore(IReminderReader):
    """Reminder persistence (create/update/soft-delete)."""

    @abstractmethod
    async def create(self, reminder: Reminder) -> Reminder:
        """Insert a new reminder."""
        pass

    @abstractmethod
    async def update(self, reminder: Reminder) -> Reminder:
        """Persist changes to an existing reminder."""
        pass

    @abstractmethod
    async def soft_delete(self, reminder_id: str) -> Reminder | None:
        """Mark a reminder deleted. Returns the updated reminder or None."""
        pass

    @abstractmethod
    async def mark_triggered(self, reminder_id: str, at: datetime) -> None:
        """Record the last in-app delivery attempt for display."""
        pass


class IScheduleStore(ABC):
    """
    Persisted schedule entries.

    Every write is a targeted statement (by id or by reminder id);
    there is no whole-collection read-modify-write.
    """

    @abstractmethod
    async def replace_unsent(
        self,
        reminder_id: str,
        entries: list[ScheduledNotification],
    ) -> int:
        """
        Delete every unsent entry of the reminder and insert `entries`,
        atomically. Sent entries are left untouched.

        Returns:
            Number of unsent entries deleted
        """
        pass

    @abstractmethod
    async def delete_unsent(self, reminder_id: str) -> int:
        """Delete every unsent entry of the reminder."""
        pass

    @abstractmethod
    async def list_unsent(self, reminder_id: str) -> list[ScheduledNotification]:
        """Unsent entries of a reminder ordered by fires_at."""
        pass

    @abstractmethod
    async def list_for_reminder(self, reminder_id: str) -> list[ScheduledNotification]:
        """All entries (sent and unsent) of a reminder ordered by fires_at."""
        pass

    @abstractmethod
    async def list_due_with_reminder(self, now: datetime) -> list[DueNotification]:
        """Due unsent entries joined with their reminder's display fields."""
        pass

    @abstractmethod
    async def mark_sent(self, notification_id: str) -> bool:
        """
        Set sent = true. Idempotent.

        Returns:
            True if the entry moved from unsent to sent
        """
        pass


class IEndpointStore(ABC):
    """Registered push delivery endpoints."""

    @abstractmethod
    async def register(self, endpoint: DeliveryEndpoint) -> DeliveryEndpoint:
        """Upsert by endpoint URL."""
        pass

    @abstractmethod
    async def unregister(self, endpoint_url: str) -> bool:
        """Delete by endpoint URL."""
        pass

    @abstractmethod
    async def list_all(self) -> list[DeliveryEndpoint]:
        """Every registered endpoint."""
        pass

    @abstractmethod
    async def delete_by_urls(self, endpoint_urls: list[str]) -> int:
        """Delete the given endpoints; returns rows deleted."""
        pass
