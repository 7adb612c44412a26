"""
Save Reminder Use Cases.

Create, edit, pause and resume reminders. Every successful mutation
reconciles the reminder's notification schedule before returning.
"""

from dataclasses import dataclass, field

from pydantic import ValidationError as PydanticValidationError

from src.application.dto.requests import CreateReminderRequest, UpdateReminderRequest
from src.config import get_logger
from src.core.entities.notification import ScheduledNotification
from src.core.entities.reminder import Reminder
from src.core.exceptions import ReminderNotFoundError, ValidationError
from src.core.interfaces.storage import IReminderStore
from src.core.services.notification_scheduler import NotificationScheduler

logger = get_logger(__name__)


@dataclass
class SaveReminderResult:
    """Saved reminder and its freshly reconciled schedule."""

    reminder: Reminder
    scheduled: list[ScheduledNotification] = field(default_factory=list)


def _build_reminder(**values) -> Reminder:
    try:
        return Reminder(**values)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field_name = ".".join(str(part) for part in error.get("loc", ())) or "reminder"
        raise ValidationError(field_name, error.get("msg", str(e)), error.get("input")) from e


class _ReminderUseCase:
    def __init__(self, reminder_store: IReminderStore, scheduler: NotificationScheduler):
        self._store = reminder_store
        self._scheduler = scheduler

    def _validate_rule(self, reminder: Reminder) -> None:
        # Raises InvalidRuleError for rules the engine cannot expand
        if reminder.rrule is not None:
            self._scheduler.engine.parse(reminder.rrule, reminder.anchor_at)

    async def _get_live(self, reminder_id: str) -> Reminder:
        reminder = await self._store.get_by_id(reminder_id)
        if reminder is None or reminder.is_deleted:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    async def _reconcile(self, reminder: Reminder) -> SaveReminderResult:
        scheduled = await self._scheduler.reconcile(reminder)
        return SaveReminderResult(reminder=reminder, scheduled=scheduled)


class CreateReminderUseCase(_ReminderUseCase):
    """Create a reminder and schedule its notifications."""

    async def execute(self, request: CreateReminderRequest) -> SaveReminderResult:
        reminder = _build_reminder(**request.model_dump())
        self._validate_rule(reminder)

        created = await self._store.create(reminder)
        result = await self._reconcile(created)

        logger.info(
            "reminder_saved",
            reminder_id=created.id,
            recurring=created.is_recurring,
            scheduled=len(result.scheduled),
        )
        return result


class UpdateReminderUseCase(_ReminderUseCase):
    """
    Apply a partial update.

    Only fields present in the request body change; an explicit empty
    `rrule` turns a recurring reminder into a one-time one.
    """

    async def execute(
        self,
        reminder_id: str,
        request: UpdateReminderRequest,
    ) -> SaveReminderResult:
        existing = await self._get_live(reminder_id)

        changes = request.model_dump(exclude_unset=True)
        for name in ("title", "anchor_at", "active", "timezone", "alert_offsets", "tags"):
            if name in changes and changes[name] is None:
                del changes[name]

        reminder = _build_reminder(**{**existing.model_dump(), **changes})
        self._validate_rule(reminder)

        updated = await self._store.update(reminder)
        result = await self._reconcile(updated)

        logger.info(
            "reminder_saved",
            reminder_id=updated.id,
            changed=sorted(changes),
            scheduled=len(result.scheduled),
        )
        return result


class SetReminderActiveUseCase(_ReminderUseCase):
    """Pause (clears pending notifications) or resume a reminder."""

    async def execute(self, reminder_id: str, active: bool) -> SaveReminderResult:
        reminder = await self._get_live(reminder_id)
        reminder.active = active

        updated = await self._store.update(reminder)
        result = await self._reconcile(updated)

        logger.info(
            "reminder_paused" if not active else "reminder_resumed",
            reminder_id=reminder_id,
            scheduled=len(result.scheduled),
        )
        return result
