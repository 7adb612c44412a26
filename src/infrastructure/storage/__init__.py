"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteEndpointStore,
    SQLiteReminderStore,
    SQLiteScheduleStore,
)

__all__ = [
    "ConnectionPool",
    "SQLiteReminderStore",
    "SQLiteScheduleStore",
    "SQLiteEndpointStore",
]
