"""Tests for NotificationScheduler."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.core.services.notification_scheduler import NotificationScheduler, fan_out_offsets


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def _scheduler(reminders=None, schedule=None, **kwargs) -> NotificationScheduler:
    if schedule is None:
        schedule = AsyncMock()
        schedule.replace_unsent.return_value = 0
        schedule.delete_unsent.return_value = 0
    return NotificationScheduler(reminders or AsyncMock(), schedule, **kwargs)


def _times(entries) -> list[tuple[datetime, int]]:
    return [(e.fires_at, e.offset_minutes) for e in entries]


class TestComputeNotificationTimes:
    """Occurrences x offsets, filtered to the future."""

    def test_daily_with_two_offsets_before_first_alert(self, make_reminder):
        reminder = make_reminder(rrule="FREQ=DAILY", alert_offsets=[0, 15])
        scheduler = _scheduler()

        entries = scheduler.compute_notification_times(
            reminder, now=_utc(2024, 1, 1, 8, 40), occurrence_count=2
        )

        assert _times(entries) == [
            (_utc(2024, 1, 1, 8, 45), 15),
            (_utc(2024, 1, 1, 9, 0), 0),
            (_utc(2024, 1, 2, 8, 45), 15),
            (_utc(2024, 1, 2, 9, 0), 0),
        ]
        assert all(not e.sent for e in entries)
        assert all(e.reminder_id == reminder.id for e in entries)

    def test_alert_already_past_is_dropped(self, make_reminder):
        reminder = make_reminder(rrule="FREQ=DAILY", alert_offsets=[0, 15])
        scheduler = _scheduler()

        entries = scheduler.compute_notification_times(
            reminder, now=_utc(2024, 1, 1, 8, 50), occurrence_count=2
        )

        assert _times(entries) == [
            (_utc(2024, 1, 1, 9, 0), 0),
            (_utc(2024, 1, 2, 8, 45), 15),
            (_utc(2024, 1, 2, 9, 0), 0),
        ]

    def test_one_time_reminder(self, make_reminder):
        reminder = make_reminder(alert_offsets=[0, 60])
        entries = _scheduler().compute_notification_times(reminder, now=_utc(2023, 12, 31))

        assert _times(entries) == [(_utc(2024, 1, 1, 8, 0), 60), (_utc(2024, 1, 1, 9, 0), 0)]

    def test_past_one_time_reminder_has_nothing(self, make_reminder):
        entries = _scheduler().compute_notification_times(make_reminder(), now=_utc(2024, 2, 1))
        assert entries == []

    def test_invalid_rule_yields_nothing(self, make_reminder):
        reminder = make_reminder(rrule="FREQ=SOMETIMES")
        entries = _scheduler().compute_notification_times(reminder, now=_utc(2023, 12, 1))
        assert entries == []

    def test_default_occurrence_count(self, make_reminder):
        reminder = make_reminder(rrule="FREQ=DAILY")
        entries = _scheduler(occurrence_count=3).compute_notification_times(
            reminder, now=_utc(2024, 1, 1)
        )
        assert len(entries) == 3

    def test_injected_clock(self, make_reminder):
        reminder = make_reminder(rrule="FREQ=DAILY")
        scheduler = _scheduler(occurrence_count=1, clock=lambda: _utc(2024, 3, 10, 12))

        entries = scheduler.compute_notification_times(reminder)

        assert _times(entries) == [(_utc(2024, 3, 11, 9, 0), 0)]

    def test_tie_break_larger_offset_first(self, make_reminder):
        # 10:00 - 60 and 09:00 - 0 land on the same instant
        reminder = make_reminder(alert_offsets=[0, 60])
        entries = fan_out_offsets(
            reminder,
            [_utc(2024, 1, 1, 9), _utc(2024, 1, 1, 10)],
            now=_utc(2024, 1, 1),
        )

        assert _times(entries) == [
            (_utc(2024, 1, 1, 8), 60),
            (_utc(2024, 1, 1, 9), 60),
            (_utc(2024, 1, 1, 9), 0),
            (_utc(2024, 1, 1, 10), 0),
        ]

    def test_offset_before_datetime_min_is_skipped(self, make_reminder):
        reminder = make_reminder(alert_offsets=[0, 60])
        entries = fan_out_offsets(reminder, [_utc(1, 1, 1, 0, 30)], now=_utc(1, 1, 1))

        assert _times(entries) == [(_utc(1, 1, 1, 0, 30), 0)]


class TestReconcile:
    @pytest.mark.asyncio
    async def test_replaces_unsent_entries(self, make_reminder):
        reminder = make_reminder(rrule="FREQ=DAILY", alert_offsets=[0, 15])
        schedule = AsyncMock()
        schedule.replace_unsent.return_value = 5
        scheduler = _scheduler(schedule=schedule, occurrence_count=2)

        entries = await scheduler.reconcile(reminder, now=_utc(2024, 1, 1, 8, 40))

        schedule.replace_unsent.assert_awaited_once()
        reminder_id, persisted = schedule.replace_unsent.await_args.args
        assert reminder_id == reminder.id
        assert persisted == entries
        assert len(entries) == 4
        schedule.delete_unsent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_inactive_reminder_is_cleared(self, make_reminder):
        schedule = AsyncMock()
        schedule.delete_unsent.return_value = 3
        scheduler = _scheduler(schedule=schedule)

        entries = await scheduler.reconcile(make_reminder(active=False), now=_utc(2023, 1, 1))

        assert entries == []
        schedule.delete_unsent.assert_awaited_once()
        schedule.replace_unsent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_reminder_is_cleared(self, make_reminder):
        schedule = AsyncMock()
        schedule.delete_unsent.return_value = 1
        scheduler = _scheduler(schedule=schedule)
        reminder = make_reminder(deleted_at=_utc(2023, 6, 1))

        assert await scheduler.reconcile(reminder, now=_utc(2023, 1, 1)) == []
        schedule.delete_unsent.assert_awaited_once_with(reminder.id)

    @pytest.mark.asyncio
    async def test_invalid_rule_clears_unsent(self, make_reminder):
        schedule = AsyncMock()
        schedule.replace_unsent.return_value = 2
        scheduler = _scheduler(schedule=schedule)
        reminder = make_reminder(rrule="FREQ=SOMETIMES")

        assert await scheduler.reconcile(reminder, now=_utc(2023, 1, 1)) == []
        schedule.replace_unsent.assert_awaited_once_with(reminder.id, [])

    @pytest.mark.asyncio
    async def test_rule_that_never_matches_clears_unsent(self, make_reminder):
        schedule = AsyncMock()
        schedule.replace_unsent.return_value = 0
        scheduler = _scheduler(schedule=schedule)
        reminder = make_reminder(rrule="FREQ=DAILY;BYMONTH=2;BYMONTHDAY=30")

        assert await scheduler.reconcile(reminder, now=_utc(2024, 1, 1)) == []
        schedule.replace_unsent.assert_awaited_once_with(reminder.id, [])

    @pytest.mark.asyncio
    async def test_reconcile_by_id_missing_reminder(self):
        reminders = AsyncMock()
        reminders.get_by_id.return_value = None
        schedule = AsyncMock()
        schedule.delete_unsent.return_value = 0
        scheduler = _scheduler(reminders=reminders, schedule=schedule)

        assert await scheduler.reconcile_by_id("gone") == []
        schedule.delete_unsent.assert_awaited_once_with("gone")

    @pytest.mark.asyncio
    async def test_reconcile_by_id_found(self, make_reminder):
        reminder = make_reminder()
        reminders = AsyncMock()
        reminders.get_by_id.return_value = reminder
        scheduler = _scheduler(reminders=reminders)

        entries = await scheduler.reconcile_by_id(reminder.id, now=_utc(2023, 12, 31))

        assert len(entries) == 1


class TestReconcileAll:
    @pytest.mark.asyncio
    async def test_counts_and_continues_after_failure(self, make_reminder):
        good = make_reminder(title="good", rrule="FREQ=DAILY")
        bad = make_reminder(title="bad", rrule="FREQ=DAILY")
        past = make_reminder(title="past")

        reminders = AsyncMock()
        reminders.list_all.return_value = [good, bad, past]

        async def replace(reminder_id, entries):
            if reminder_id == bad.id:
                raise RuntimeError("disk on fire")
            return 0

        schedule = AsyncMock()
        schedule.replace_unsent.side_effect = replace
        scheduler = _scheduler(reminders=reminders, schedule=schedule, occurrence_count=3)

        summary = await scheduler.reconcile_all(now=_utc(2024, 2, 1))

        assert summary.reminders == 3
        assert summary.scheduled == 3
        assert summary.cleared == 1
        assert summary.failed == 1
        assert summary.failed_ids == [bad.id]
        assert schedule.replace_unsent.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_store(self):
        reminders = AsyncMock()
        reminders.list_all.return_value = []

        summary = await _scheduler(reminders=reminders).reconcile_all()

        assert summary.reminders == 0
        assert summary.failed_ids == []
