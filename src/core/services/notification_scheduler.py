"""
Notification Scheduler.

Derives notification instants from a reminder (occurrences x alert offsets)
and keeps the persisted schedule in line with the reminder's current
definition. Sent entries are history and are never touched here.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from src.config import get_logger
from src.core.entities.notification import ScheduledNotification
from src.core.entities.reminder import Reminder, ensure_utc
from src.core.exceptions import InvalidRuleError
from src.core.interfaces.storage import IReminderReader, IScheduleStore
from src.core.services.recurrence_engine import RecurrenceEngine

logger = get_logger(__name__)

DEFAULT_OCCURRENCE_COUNT = 10

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ReconcileSummary:
    """Result of reconciling every reminder."""

    reminders: int = 0
    scheduled: int = 0
    cleared: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)


def fan_out_offsets(
    reminder: Reminder,
    occurrences: list[datetime],
    now: datetime,
) -> list[ScheduledNotification]:
    """
    Combine occurrences with the reminder's alert offsets.

    Only instants strictly after `now` survive; an offset reaching past
    datetime.min counts as past. Result is ordered by fires_at, larger
    offsets first on ties.
    """
    entries: list[ScheduledNotification] = []
    for occurrence in occurrences:
        for offset in reminder.alert_offsets:
            try:
                fires_at = occurrence - timedelta(minutes=offset)
            except OverflowError:
                continue
            if fires_at > now:
                entries.append(
                    ScheduledNotification(
                        reminder_id=reminder.id,
                        fires_at=fires_at,
                        offset_minutes=offset,
                    )
                )

    entries.sort(key=lambda e: (e.fires_at, -e.offset_minutes))
    return entries


class NotificationScheduler:
    """
    Reconciles the persisted schedule of reminders.

    Depends only on core interfaces; the clock is injectable for tests.
    """

    def __init__(
        self,
        reminder_reader: IReminderReader,
        schedule_store: IScheduleStore,
        engine: RecurrenceEngine | None = None,
        occurrence_count: int = DEFAULT_OCCURRENCE_COUNT,
        clock: Clock | None = None,
    ) -> None:
        self._reminders = reminder_reader
        self._schedule = schedule_store
        self._engine = engine or RecurrenceEngine()
        self._occurrence_count = occurrence_count
        self._clock = clock or utc_now

    @property
    def engine(self) -> RecurrenceEngine:
        return self._engine

    def _now(self, now: datetime | None) -> datetime:
        return ensure_utc(now) if now is not None else self._clock()

    def compute_notification_times(
        self,
        reminder: Reminder,
        now: datetime | None = None,
        occurrence_count: int | None = None,
    ) -> list[ScheduledNotification]:
        """
        Future notification entries for a reminder, without persisting.

        A malformed recurrence rule yields no entries.
        """
        now = self._now(now)
        count = self._occurrence_count if occurrence_count is None else occurrence_count

        try:
            occurrences = self._engine.occurrences_for(reminder, now, count)
        except InvalidRuleError as e:
            logger.warning(
                "recurrence_rule_invalid",
                reminder_id=reminder.id,
                rule=reminder.rrule,
                reason=e.details.get("reason"),
            )
            occurrences = []

        return fan_out_offsets(reminder, occurrences, now)

    async def reconcile(
        self,
        reminder: Reminder,
        now: datetime | None = None,
    ) -> list[ScheduledNotification]:
        """
        Replace the reminder's unsent entries with freshly derived ones.

        Inactive and soft-deleted reminders end up with no unsent entries.

        Returns:
            The entries now scheduled
        """
        now = self._now(now)

        if not reminder.is_schedulable:
            removed = await self._schedule.delete_unsent(reminder.id)
            logger.info(
                "schedule_cleared",
                reminder_id=reminder.id,
                removed=removed,
                active=reminder.active,
                deleted=reminder.is_deleted,
            )
            return []

        # rule expansion is CPU-bound
        entries = await asyncio.to_thread(self.compute_notification_times, reminder, now)
        removed = await self._schedule.replace_unsent(reminder.id, entries)

        logger.info(
            "schedule_reconciled",
            reminder_id=reminder.id,
            removed=removed,
            scheduled=len(entries),
            next_fires_at=entries[0].fires_at if entries else None,
        )
        return entries

    async def reconcile_by_id(
        self,
        reminder_id: str,
        now: datetime | None = None,
    ) -> list[ScheduledNotification]:
        """Reconcile by id; a missing reminder has its schedule cleared."""
        reminder = await self._reminders.get_by_id(reminder_id)
        if reminder is None:
            removed = await self._schedule.delete_unsent(reminder_id)
            logger.info("schedule_cleared", reminder_id=reminder_id, removed=removed, missing=True)
            return []
        return await self.reconcile(reminder, now)

    async def reconcile_all(self, now: datetime | None = None) -> ReconcileSummary:
        """
        Reconcile every non-deleted reminder.

        A failure on one reminder is logged and counted; the rest continue.
        """
        now = self._now(now)
        summary = ReconcileSummary()

        for reminder in await self._reminders.list_all():
            summary.reminders += 1
            try:
                entries = await self.reconcile(reminder, now)
            except Exception:
                summary.failed += 1
                summary.failed_ids.append(reminder.id)
                logger.warning("schedule_reconcile_failed", reminder_id=reminder.id, exc_info=True)
                continue

            if entries:
                summary.scheduled += len(entries)
            else:
                summary.cleared += 1

        logger.info(
            "schedule_reconcile_all_complete",
            reminders=summary.reminders,
            scheduled=summary.scheduled,
            cleared=summary.cleared,
            failed=summary.failed,
        )
        return summary
