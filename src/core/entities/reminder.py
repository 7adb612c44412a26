"""Reminder entity: an anchored instant with optional recurrence and alert offsets."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from src.core.entities.identifiers import new_id

# Two leap years of minutes, the default expansion horizon
MAX_ALERT_OFFSET_MINUTES = 2 * 366 * 24 * 60


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def check_alert_offsets(offsets: list[int]) -> None:
    """Raise ValueError unless every offset is within 0..MAX_ALERT_OFFSET_MINUTES."""
    if any(offset < 0 for offset in offsets):
        raise ValueError("alert offsets must be non-negative minutes")
    if any(offset > MAX_ALERT_OFFSET_MINUTES for offset in offsets):
        raise ValueError(f"alert offsets must be at most {MAX_ALERT_OFFSET_MINUTES} minutes")


class Reminder(BaseModel):
    """
    Reminder entity.

    `anchor_at` is the start of the recurrence rule and, for one-time
    reminders, the only occurrence. `alert_offsets` are minutes before each
    occurrence (0 = at the occurrence), kept unique and sorted ascending.
    """

    id: str = Field(default_factory=new_id)
    title: str
    description: str | None = None
    anchor_at: datetime
    rrule: str | None = None
    alert_offsets: list[int] = Field(default_factory=lambda: [0])
    active: bool = True
    timezone: str = "UTC"
    tags: list[str] = Field(default_factory=list)
    last_triggered_at: datetime | None = None
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("anchor_at", "created_at", "updated_at")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("last_triggered_at", "deleted_at")
    @classmethod
    def _optional_to_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    @field_validator("rrule")
    @classmethod
    def _blank_rule_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("alert_offsets")
    @classmethod
    def _canonical_offsets(cls, v: list[int]) -> list[int]:
        check_alert_offsets(v)
        return sorted(set(v))

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown IANA timezone: {v}") from e
        return v

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_recurring(self) -> bool:
        return self.rrule is not None

    @property
    def is_schedulable(self) -> bool:
        """Active and not soft-deleted."""
        return self.active and not self.is_deleted
