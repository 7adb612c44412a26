"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable, Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.config import reset_settings
from src.core.entities.notification import DueNotification, ScheduledNotification
from src.core.entities.reminder import Reminder
from src.core.events import ChangeFeed
from src.infrastructure.storage.sqlite import ConnectionPool
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database


def utc(*args: int) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point storage at a temp dir and drop cached settings around each test."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("CRON_SECRET", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def make_reminder() -> Callable[..., Reminder]:
    """Factory for reminders anchored at 2024-01-01 09:00 UTC."""

    def _make(**overrides) -> Reminder:
        values = {
            "title": "Standup",
            "anchor_at": utc(2024, 1, 1, 9, 0),
            "alert_offsets": [0],
        }
        values.update(overrides)
        return Reminder(**values)

    return _make


@pytest.fixture
def make_due() -> Callable[..., DueNotification]:
    """Factory for due schedule entries joined with reminder fields."""

    def _make(
        reminder_id: str = "rem-1",
        fires_at: datetime | None = None,
        offset_minutes: int = 0,
        title: str | None = "Standup",
        description: str | None = None,
        reminder_exists: bool = True,
        reminder_deleted: bool = False,
    ) -> DueNotification:
        return DueNotification(
            notification=ScheduledNotification(
                reminder_id=reminder_id,
                fires_at=fires_at or utc(2024, 1, 1, 9, 0),
                offset_minutes=offset_minutes,
            ),
            title=title,
            description=description,
            reminder_exists=reminder_exists,
            reminder_deleted=reminder_deleted,
        )

    return _make


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def pool(temp_db_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Migrated temp database behind a small connection pool."""
    await initialize_database(temp_db_path, create_backup_before=False)
    pool = ConnectionPool(temp_db_path, pool_size=2)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()
