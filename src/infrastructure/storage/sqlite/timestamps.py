"""UTC timestamp encoding for SQLite columns."""

from datetime import UTC, datetime

from src.core.entities.reminder import ensure_utc

# Fixed width so that string order equals chronological order
DB_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def to_db(value: datetime) -> str:
    return ensure_utc(value).strftime(DB_TIMESTAMP_FORMAT)


def to_db_optional(value: datetime | None) -> str | None:
    return to_db(value) if value is not None else None


def from_db(value: str) -> datetime:
    return datetime.strptime(value, DB_TIMESTAMP_FORMAT).replace(tzinfo=UTC)


def from_db_optional(value: str | None) -> datetime | None:
    return from_db(value) if value else None
