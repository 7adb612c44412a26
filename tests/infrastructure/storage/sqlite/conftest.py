"""Pytest fixtures for SQLite storage tests."""

import pytest

from src.core.events import ChangeFeed
from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteEndpointStore,
    SQLiteReminderStore,
    SQLiteScheduleStore,
)


@pytest.fixture
def reminder_store(pool: ConnectionPool, feed: ChangeFeed) -> SQLiteReminderStore:
    return SQLiteReminderStore(pool, feed)


@pytest.fixture
def schedule_store(pool: ConnectionPool, feed: ChangeFeed) -> SQLiteScheduleStore:
    return SQLiteScheduleStore(pool, feed)


@pytest.fixture
def endpoint_store(pool: ConnectionPool, feed: ChangeFeed) -> SQLiteEndpointStore:
    return SQLiteEndpointStore(pool, feed)
