"""Request DTOs for API endpoints.

Pydantic v2 models for request validation.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.core.entities.reminder import check_alert_offsets


def _offsets_in_range(v: list[int] | None) -> list[int] | None:
    if v is not None:
        check_alert_offsets(v)
    return v


class CreateReminderRequest(BaseModel):
    """Request to create a reminder."""

    title: str = Field(..., min_length=1, max_length=500, description="Reminder title")
    description: str | None = Field(default=None, description="Optional notification body")
    anchor_at: datetime = Field(
        ...,
        description="First occurrence (ISO-8601); naive values are taken as UTC",
    )
    rrule: str | None = Field(
        default=None,
        description="RFC-5545 RRULE body, e.g. FREQ=WEEKLY;BYDAY=MO,WE",
    )
    alert_offsets: list[int] = Field(
        default_factory=lambda: [0],
        description="Minutes before each occurrence to notify (0 = at the occurrence)",
    )
    active: bool = Field(default=True, description="Paused reminders are not scheduled")
    timezone: str = Field(default="UTC", description="IANA timezone, informational")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")

    @field_validator("alert_offsets")
    @classmethod
    def _check_offsets(cls, v):
        return _offsets_in_range(v)


class UpdateReminderRequest(BaseModel):
    """Partial update of a reminder; omitted fields keep their value."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None)
    anchor_at: datetime | None = Field(default=None)
    rrule: str | None = Field(
        default=None,
        description="New rule; an empty string makes the reminder one-time",
    )
    alert_offsets: list[int] | None = Field(default=None)
    active: bool | None = Field(default=None)
    timezone: str | None = Field(default=None)
    tags: list[str] | None = Field(default=None)

    @field_validator("alert_offsets")
    @classmethod
    def _check_offsets(cls, v):
        return _offsets_in_range(v)


class SubscriptionKeys(BaseModel):
    """Key material issued by the browser push service."""

    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscribeRequest(BaseModel):
    """Push subscription as produced by PushSubscription.toJSON()."""

    endpoint: str = Field(..., min_length=1, description="Push service endpoint URL")
    keys: SubscriptionKeys


class PushUnsubscribeRequest(BaseModel):
    """Request to remove a push subscription."""

    endpoint: str = Field(..., min_length=1, description="Push service endpoint URL")


class NotificationActionRequest(BaseModel):
    """Click or action button on an in-app notification."""

    action: str | None = Field(
        default=None,
        description='"view", "dismiss", or omitted for a plain click',
    )
