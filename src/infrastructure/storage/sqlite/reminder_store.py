"""
SQLite implementation of reminder storage.

Reminders are soft-deleted: `deleted_at` is set and the row is kept so
that schedule entries referring to it can be recognised as orphans.
"""

import json
from datetime import UTC, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.reminder import Reminder
from src.core.events import ChangeAction, ChangeEntity, ChangeEvent, ChangeFeed
from src.core.exceptions import ReminderNotFoundError
from src.core.interfaces.storage import IReminderStore
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.timestamps import (
    from_db,
    from_db_optional,
    to_db,
    to_db_optional,
)

logger = get_logger(__name__)


class SQLiteReminderStore(IReminderStore):
    """SQLite implementation of reminder storage."""

    def __init__(self, pool: ConnectionPool, feed: ChangeFeed | None = None):
        self._pool = pool
        self._feed = feed

    async def _publish(self, action: ChangeAction, reminder_id: str) -> None:
        if self._feed is not None:
            await self._feed.publish(ChangeEvent(ChangeEntity.REMINDER, action, reminder_id))

    async def create(self, reminder: Reminder) -> Reminder:
        """Insert a new reminder."""
        reminder.updated_at = datetime.now(UTC)
        async with self._pool.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO reminders (
                    id, title, description, anchor_at, rrule, alert_offsets,
                    active, timezone, tags, last_triggered_at, deleted_at,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    reminder.id,
                    reminder.title,
                    reminder.description,
                    to_db(reminder.anchor_at),
                    reminder.rrule,
                    json.dumps(reminder.alert_offsets),
                    1 if reminder.active else 0,
                    reminder.timezone,
                    json.dumps(reminder.tags),
                    to_db_optional(reminder.last_triggered_at),
                    to_db_optional(reminder.deleted_at),
                    to_db(reminder.created_at),
                    to_db(reminder.updated_at),
                ),
            )

        logger.info("reminder_created", reminder_id=reminder.id, title=reminder.title)
        await self._publish(ChangeAction.CREATED, reminder.id)
        return reminder

    async def get_by_id(self, reminder_id: str) -> Reminder | None:
        """Get reminder by ID, including soft-deleted ones."""
        async with self._pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM reminders WHERE id = ?", (reminder_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_entity(row)

    async def update(self, reminder: Reminder) -> Reminder:
        """
        Persist changes to an existing reminder.

        Raises:
            ReminderNotFoundError: If no row has the reminder's id
        """
        reminder.updated_at = datetime.now(UTC)
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE reminders SET
                    title = ?, description = ?, anchor_at = ?, rrule = ?,
                    alert_offsets = ?, active = ?, timezone = ?, tags = ?,
                    deleted_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    reminder.title,
                    reminder.description,
                    to_db(reminder.anchor_at),
                    reminder.rrule,
                    json.dumps(reminder.alert_offsets),
                    1 if reminder.active else 0,
                    reminder.timezone,
                    json.dumps(reminder.tags),
                    to_db_optional(reminder.deleted_at),
                    to_db(reminder.updated_at),
                    reminder.id,
                ),
            )
            if cursor.rowcount == 0:
                raise ReminderNotFoundError(reminder.id)

        logger.info("reminder_updated", reminder_id=reminder.id)
        await self._publish(ChangeAction.UPDATED, reminder.id)
        return reminder

    async def soft_delete(self, reminder_id: str) -> Reminder | None:
        """Set deleted_at. Deleting an already deleted reminder is a no-op."""
        now = to_db(datetime.now(UTC))
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE reminders SET deleted_at = ?, updated_at = ?
                WHERE id = ? AND deleted_at IS NULL
                """,
                (now, now, reminder_id),
            )
            changed = cursor.rowcount > 0

        if changed:
            logger.info("reminder_deleted", reminder_id=reminder_id)
            await self._publish(ChangeAction.DELETED, reminder_id)
        return await self.get_by_id(reminder_id)

    async def mark_triggered(self, reminder_id: str, at: datetime) -> None:
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "UPDATE reminders SET last_triggered_at = ? WHERE id = ?",
                (to_db(at), reminder_id),
            )
            changed = cursor.rowcount > 0

        if changed:
            await self._publish(ChangeAction.UPDATED, reminder_id)

    async def list_active(self) -> list[Reminder]:
        """Active, non-deleted reminders ordered by anchor."""
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM reminders
                WHERE active = 1 AND deleted_at IS NULL
                ORDER BY anchor_at ASC
                """
            )
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    async def list_all(self) -> list[Reminder]:
        """Non-deleted reminders, paused ones included."""
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM reminders
                WHERE deleted_at IS NULL
                ORDER BY anchor_at ASC
                """
            )
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Reminder:
        return Reminder(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            anchor_at=from_db(row["anchor_at"]),
            rrule=row["rrule"],
            alert_offsets=json.loads(row["alert_offsets"] or "[]"),
            active=bool(row["active"]),
            timezone=row["timezone"],
            tags=json.loads(row["tags"] or "[]"),
            last_triggered_at=from_db_optional(row["last_triggered_at"]),
            deleted_at=from_db_optional(row["deleted_at"]),
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )
