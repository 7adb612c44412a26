"""
Reminder management endpoints.

Every mutation reconciles the reminder's notification schedule.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import (
    get_create_reminder_use_case,
    get_delete_reminder_use_case,
    get_engine,
    get_rem_store,
    get_schedule_store,
    get_set_active_use_case,
    get_update_reminder_use_case,
)
from src.application.dto.requests import CreateReminderRequest, UpdateReminderRequest
from src.application.dto.responses import (
    ErrorResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderScheduleResponse,
    ScheduledNotificationResponse,
)
from src.application.use_cases import (
    CreateReminderUseCase,
    DeleteReminderUseCase,
    SetReminderActiveUseCase,
    UpdateReminderUseCase,
)
from src.core.entities.reminder import Reminder
from src.core.exceptions import InvalidRuleError
from src.core.interfaces import IReminderStore, IScheduleStore
from src.core.services import RecurrenceEngine

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


def _next_occurrence(reminder: Reminder, engine: RecurrenceEngine) -> datetime | None:
    if not reminder.is_schedulable:
        return None
    try:
        return engine.next_occurrence(reminder.anchor_at, reminder.rrule, datetime.now(UTC))
    except InvalidRuleError:
        return None


def _entity_to_response(reminder: Reminder, engine: RecurrenceEngine) -> ReminderResponse:
    """Convert entity to response DTO."""
    return ReminderResponse(
        id=reminder.id,
        title=reminder.title,
        description=reminder.description,
        anchor_at=reminder.anchor_at,
        rrule=reminder.rrule,
        recurrence_description=engine.describe(reminder.rrule),
        alert_offsets=reminder.alert_offsets,
        active=reminder.active,
        timezone=reminder.timezone,
        tags=reminder.tags,
        next_occurrence=_next_occurrence(reminder, engine),
        last_triggered_at=reminder.last_triggered_at,
        deleted_at=reminder.deleted_at,
        created_at=reminder.created_at,
        updated_at=reminder.updated_at,
    )


async def _get_live_reminder(reminder_id: str, store: IReminderStore) -> Reminder:
    reminder = await store.get_by_id(reminder_id)
    if reminder is None or reminder.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reminder not found: {reminder_id}",
        )
    return reminder


@router.post(
    "",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_reminder(
    request: CreateReminderRequest,
    use_case: CreateReminderUseCase = Depends(get_create_reminder_use_case),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderResponse:
    """Create a reminder and schedule its notifications."""
    result = await use_case.execute(request)
    return _entity_to_response(result.reminder, engine)


@router.get("", response_model=ReminderListResponse)
async def list_reminders(
    active_only: bool = False,
    store: IReminderStore = Depends(get_rem_store),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderListResponse:
    """List reminders that are not deleted."""
    reminders = await (store.list_active() if active_only else store.list_all())
    return ReminderListResponse(
        reminders=[_entity_to_response(r, engine) for r in reminders],
        total=len(reminders),
    )


@router.get(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_reminder(
    reminder_id: str,
    store: IReminderStore = Depends(get_rem_store),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderResponse:
    """Get a reminder by ID."""
    reminder = await _get_live_reminder(reminder_id, store)
    return _entity_to_response(reminder, engine)


@router.put(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_reminder(
    reminder_id: str,
    request: UpdateReminderRequest,
    use_case: UpdateReminderUseCase = Depends(get_update_reminder_use_case),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderResponse:
    """Edit a reminder; only the fields sent are changed."""
    result = await use_case.execute(reminder_id, request)
    return _entity_to_response(result.reminder, engine)


@router.post(
    "/{reminder_id}/pause",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def pause_reminder(
    reminder_id: str,
    use_case: SetReminderActiveUseCase = Depends(get_set_active_use_case),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderResponse:
    """Stop scheduling notifications for a reminder."""
    result = await use_case.execute(reminder_id, active=False)
    return _entity_to_response(result.reminder, engine)


@router.post(
    "/{reminder_id}/resume",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def resume_reminder(
    reminder_id: str,
    use_case: SetReminderActiveUseCase = Depends(get_set_active_use_case),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderResponse:
    """Schedule notifications for a paused reminder again."""
    result = await use_case.execute(reminder_id, active=True)
    return _entity_to_response(result.reminder, engine)


@router.delete(
    "/{reminder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_reminder(
    reminder_id: str,
    use_case: DeleteReminderUseCase = Depends(get_delete_reminder_use_case),
) -> None:
    """Soft-delete a reminder and clear its pending notifications."""
    await use_case.execute(reminder_id)


@router.get(
    "/{reminder_id}/schedule",
    response_model=ReminderScheduleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_reminder_schedule(
    reminder_id: str,
    include_sent: bool = Query(False, description="Also return already delivered entries"),
    store: IReminderStore = Depends(get_rem_store),
    schedule_store: IScheduleStore = Depends(get_schedule_store),
    engine: RecurrenceEngine = Depends(get_engine),
) -> ReminderScheduleResponse:
    """Pending notifications of a reminder, or its full history with include_sent."""
    reminder = await _get_live_reminder(reminder_id, store)
    if include_sent:
        entries = await schedule_store.list_for_reminder(reminder_id)
    else:
        entries = await schedule_store.list_unsent(reminder_id)
    return ReminderScheduleResponse(
        reminder_id=reminder_id,
        recurrence_description=engine.describe(reminder.rrule),
        next_occurrence=_next_occurrence(reminder, engine),
        entries=[
            ScheduledNotificationResponse(
                id=e.id,
                fires_at=e.fires_at,
                offset_minutes=e.offset_minutes,
                sent=e.sent,
            )
            for e in entries
        ],
    )
