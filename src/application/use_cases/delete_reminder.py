"""
Delete Reminder Use Case.

Soft-deletes a reminder and clears its pending notifications. Entries a
dispatcher already loaded are reclaimed as orphans on the next pass.
"""

from src.config import get_logger
from src.core.entities.reminder import Reminder
from src.core.exceptions import ReminderNotFoundError
from src.core.interfaces.storage import IReminderStore
from src.core.services.notification_scheduler import NotificationScheduler

logger = get_logger(__name__)


class DeleteReminderUseCase:
    def __init__(self, reminder_store: IReminderStore, scheduler: NotificationScheduler):
        self._store = reminder_store
        self._scheduler = scheduler

    async def execute(self, reminder_id: str) -> Reminder:
        """
        Raises:
            ReminderNotFoundError: If the reminder does not exist or is already deleted
        """
        existing = await self._store.get_by_id(reminder_id)
        if existing is None or existing.is_deleted:
            raise ReminderNotFoundError(reminder_id)

        deleted = await self._store.soft_delete(reminder_id)
        if deleted is None:
            raise ReminderNotFoundError(reminder_id)

        await self._scheduler.reconcile(deleted)
        logger.info("reminder_soft_deleted", reminder_id=reminder_id)
        return deleted
