"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.endpoint_store import SQLiteEndpointStore
from src.infrastructure.storage.sqlite.reminder_store import SQLiteReminderStore
from src.infrastructure.storage.sqlite.schedule_store import SQLiteScheduleStore

# Type aliases for convenience
ReminderStore = SQLiteReminderStore
ScheduleStore = SQLiteScheduleStore
EndpointStore = SQLiteEndpointStore

__all__ = [
    # Connection
    "ConnectionPool",
    # Store classes
    "SQLiteReminderStore",
    "SQLiteScheduleStore",
    "SQLiteEndpointStore",
    # Type aliases
    "ReminderStore",
    "ScheduleStore",
    "EndpointStore",
]
