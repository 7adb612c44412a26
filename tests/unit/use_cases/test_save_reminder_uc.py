"""Unit tests for the reminder save use cases."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import CreateReminderRequest, UpdateReminderRequest
from src.application.use_cases.save_reminder import (
    CreateReminderUseCase,
    SetReminderActiveUseCase,
    UpdateReminderUseCase,
)
from src.core.exceptions import InvalidRuleError, ReminderNotFoundError, ValidationError
from src.core.services.notification_scheduler import NotificationScheduler

NOW = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


def _make_stores(existing=None):
    """Reminder store echoing writes back, schedule store recording replacements."""
    rem_store = AsyncMock()
    rem_store.create.side_effect = lambda r: r
    rem_store.update.side_effect = lambda r: r
    rem_store.get_by_id.return_value = existing

    schedule = AsyncMock()
    schedule.replace_unsent.return_value = 0
    schedule.delete_unsent.return_value = 0

    scheduler = NotificationScheduler(rem_store, schedule, occurrence_count=3, clock=lambda: NOW)
    return rem_store, schedule, scheduler


class TestCreateReminder:
    @pytest.mark.asyncio
    async def test_creates_and_schedules(self):
        rem_store, schedule, scheduler = _make_stores()
        request = CreateReminderRequest(
            title="Standup",
            anchor_at=datetime(2024, 1, 1, 9, 0),
            rrule="FREQ=DAILY",
            alert_offsets=[15, 0],
        )

        result = await CreateReminderUseCase(rem_store, scheduler).execute(request)

        assert result.reminder.title == "Standup"
        assert result.reminder.alert_offsets == [0, 15]
        assert len(result.scheduled) == 6
        rem_store.create.assert_awaited_once()
        schedule.replace_unsent.assert_awaited_once_with(result.reminder.id, result.scheduled)

    @pytest.mark.asyncio
    async def test_invalid_rule_rejected_before_write(self):
        rem_store, schedule, scheduler = _make_stores()
        request = CreateReminderRequest(
            title="Broken", anchor_at=datetime(2024, 1, 1), rrule="FREQ=SOMETIMES"
        )

        with pytest.raises(InvalidRuleError):
            await CreateReminderUseCase(rem_store, scheduler).execute(request)

        rem_store.create.assert_not_awaited()
        schedule.replace_unsent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_timezone_is_validation_error(self):
        rem_store, _, scheduler = _make_stores()
        request = CreateReminderRequest(
            title="Standup", anchor_at=datetime(2024, 1, 1), timezone="Mars/Olympus"
        )

        with pytest.raises(ValidationError) as exc_info:
            await CreateReminderUseCase(rem_store, scheduler).execute(request)

        assert exc_info.value.details["field"] == "timezone"
        rem_store.create.assert_not_awaited()


class TestUpdateReminder:
    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, make_reminder):
        existing = make_reminder(rrule="FREQ=DAILY", description="Daily sync", tags=["work"])
        rem_store, schedule, scheduler = _make_stores(existing)

        result = await UpdateReminderUseCase(rem_store, scheduler).execute(
            existing.id, UpdateReminderRequest(title="Team standup")
        )

        assert result.reminder.id == existing.id
        assert result.reminder.title == "Team standup"
        assert result.reminder.description == "Daily sync"
        assert result.reminder.rrule == "FREQ=DAILY"
        assert result.reminder.tags == ["work"]
        schedule.replace_unsent.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_rule_makes_one_time(self, make_reminder):
        existing = make_reminder(rrule="FREQ=DAILY", anchor_at=datetime(2024, 1, 2, 9, tzinfo=UTC))
        rem_store, _, scheduler = _make_stores(existing)

        result = await UpdateReminderUseCase(rem_store, scheduler).execute(
            existing.id, UpdateReminderRequest(rrule="")
        )

        assert result.reminder.rrule is None
        assert [e.fires_at for e in result.scheduled] == [datetime(2024, 1, 2, 9, tzinfo=UTC)]

    @pytest.mark.asyncio
    async def test_explicit_null_title_is_ignored(self, make_reminder):
        existing = make_reminder()
        rem_store, _, scheduler = _make_stores(existing)

        result = await UpdateReminderUseCase(rem_store, scheduler).execute(
            existing.id, UpdateReminderRequest(title=None, description=None)
        )

        assert result.reminder.title == "Standup"
        assert result.reminder.description is None

    @pytest.mark.asyncio
    async def test_missing_reminder(self):
        rem_store, _, scheduler = _make_stores(None)

        with pytest.raises(ReminderNotFoundError):
            await UpdateReminderUseCase(rem_store, scheduler).execute(
                "nope", UpdateReminderRequest(title="x")
            )

    @pytest.mark.asyncio
    async def test_deleted_reminder_is_not_editable(self, make_reminder):
        existing = make_reminder(deleted_at=datetime(2023, 12, 1, tzinfo=UTC))
        rem_store, _, scheduler = _make_stores(existing)

        with pytest.raises(ReminderNotFoundError):
            await UpdateReminderUseCase(rem_store, scheduler).execute(
                existing.id, UpdateReminderRequest(title="x")
            )
        rem_store.update.assert_not_awaited()


class TestSetReminderActive:
    @pytest.mark.asyncio
    async def test_pause_clears_pending(self, make_reminder):
        existing = make_reminder(rrule="FREQ=DAILY")
        rem_store, schedule, scheduler = _make_stores(existing)

        result = await SetReminderActiveUseCase(rem_store, scheduler).execute(existing.id, False)

        assert result.reminder.active is False
        assert result.scheduled == []
        schedule.delete_unsent.assert_awaited_once_with(existing.id)

    @pytest.mark.asyncio
    async def test_resume_reschedules(self, make_reminder):
        existing = make_reminder(rrule="FREQ=DAILY", active=False)
        rem_store, schedule, scheduler = _make_stores(existing)

        result = await SetReminderActiveUseCase(rem_store, scheduler).execute(existing.id, True)

        assert result.reminder.active is True
        assert len(result.scheduled) == 3
        schedule.replace_unsent.assert_awaited_once()
