"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ReminderResponse(BaseModel):
    """Reminder response DTO."""

    id: str = Field(..., description="Reminder ID (UUIDv7)")
    title: str = Field(..., description="Reminder title")
    description: str | None = Field(default=None, description="Notification body")
    anchor_at: datetime = Field(..., description="Rule start / one-time instant (UTC)")
    rrule: str | None = Field(default=None, description="RRULE body, None when one-time")
    recurrence_description: str = Field(..., description='e.g. "Every day", "One-time"')
    alert_offsets: list[int] = Field(default_factory=list, description="Minutes before")
    active: bool = Field(..., description="Whether notifications are scheduled")
    timezone: str = Field(default="UTC")
    tags: list[str] = Field(default_factory=list)
    next_occurrence: datetime | None = Field(default=None, description="Next occurrence (UTC)")
    last_triggered_at: datetime | None = Field(default=None)
    deleted_at: datetime | None = Field(default=None)
    created_at: datetime
    updated_at: datetime


class ReminderListResponse(BaseModel):
    """List of reminders."""

    reminders: list[ReminderResponse]
    total: int


class ScheduledNotificationResponse(BaseModel):
    """One schedule entry."""

    id: str
    fires_at: datetime
    offset_minutes: int
    sent: bool


class ReminderScheduleResponse(BaseModel):
    """Pending notifications of a reminder."""

    reminder_id: str
    recurrence_description: str
    next_occurrence: datetime | None = None
    entries: list[ScheduledNotificationResponse] = Field(default_factory=list)


class CronCheckResponse(BaseModel):
    """Result of one push fan-out pass."""

    checked: int = Field(..., description="Due entries processed")
    sent: int = Field(..., description="Successful endpoint deliveries")
    failed: int = Field(default=0, description="Failed endpoint deliveries")
    pruned: int = Field(default=0, description="Endpoints removed as gone")
    timestamp: datetime


class SuccessResponse(BaseModel):
    success: bool


class VapidKeyResponse(BaseModel):
    """Public VAPID key the browser subscribes with."""

    public_key: str | None = None
    enabled: bool


class ActiveNotificationResponse(BaseModel):
    """A notification shown in-app."""

    tag: str
    shown_at: datetime
    payload: dict[str, Any]


class ActiveNotificationListResponse(BaseModel):
    notifications: list[ActiveNotificationResponse]
    total: int


class NotificationActionResponse(BaseModel):
    """Deep link to open, None when the notification was dismissed."""

    url: str | None = None


class ComponentHealthResponse(BaseModel):
    """Component health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None
    dispatcher: ComponentHealthResponse | None = None
    push: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. REMINDER_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
