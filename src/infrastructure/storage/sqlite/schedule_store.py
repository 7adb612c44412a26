"""
SQLite implementation of the notification schedule.

Every write targets rows by id or by reminder id.
"""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.notification import DueNotification, ScheduledNotification
from src.core.events import ChangeAction, ChangeEntity, ChangeEvent, ChangeFeed
from src.core.interfaces.storage import IScheduleStore
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.timestamps import from_db, to_db

logger = get_logger(__name__)

_ORDER = "ORDER BY s.fires_at ASC, s.offset_minutes DESC"


class SQLiteScheduleStore(IScheduleStore):
    """SQLite implementation of schedule storage."""

    def __init__(self, pool: ConnectionPool, feed: ChangeFeed | None = None):
        self._pool = pool
        self._feed = feed

    async def _publish(self, action: ChangeAction, entity_id: str) -> None:
        if self._feed is not None:
            await self._feed.publish(ChangeEvent(ChangeEntity.SCHEDULE, action, entity_id))

    async def replace_unsent(
        self,
        reminder_id: str,
        entries: list[ScheduledNotification],
    ) -> int:
        """Delete unsent entries and insert `entries` in one transaction."""
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM scheduled_notifications WHERE reminder_id = ? AND sent = 0",
                (reminder_id,),
            )
            removed = cursor.rowcount

            await conn.executemany(
                """
                INSERT INTO scheduled_notifications (
                    id, reminder_id, fires_at, offset_minutes, sent, created_at
                ) VALUES (?, ?, ?, ?, 0, ?)
                """,
                [
                    (
                        entry.id,
                        reminder_id,
                        to_db(entry.fires_at),
                        entry.offset_minutes,
                        to_db(entry.created_at),
                    )
                    for entry in entries
                ],
            )

        logger.debug(
            "schedule_replaced",
            reminder_id=reminder_id,
            removed=removed,
            inserted=len(entries),
        )
        if removed or entries:
            await self._publish(ChangeAction.UPDATED, reminder_id)
        return removed

    async def delete_unsent(self, reminder_id: str) -> int:
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM scheduled_notifications WHERE reminder_id = ? AND sent = 0",
                (reminder_id,),
            )
            removed = cursor.rowcount

        if removed:
            await self._publish(ChangeAction.DELETED, reminder_id)
        return removed

    async def list_unsent(self, reminder_id: str) -> list[ScheduledNotification]:
        return await self._select(
            f"SELECT s.* FROM scheduled_notifications s "
            f"WHERE s.reminder_id = ? AND s.sent = 0 {_ORDER}",
            (reminder_id,),
        )

    async def list_for_reminder(self, reminder_id: str) -> list[ScheduledNotification]:
        return await self._select(
            f"SELECT s.* FROM scheduled_notifications s WHERE s.reminder_id = ? {_ORDER}",
            (reminder_id,),
        )

    async def list_due_with_reminder(self, now: datetime) -> list[DueNotification]:
        """
        Due unsent entries with their reminder's display fields.

        Left join: entries whose reminder row is gone are returned as orphans.
        """
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT s.*,
                       r.id AS r_id,
                       r.title AS r_title,
                       r.description AS r_description,
                       r.deleted_at AS r_deleted_at
                FROM scheduled_notifications s
                LEFT JOIN reminders r ON r.id = s.reminder_id
                WHERE s.sent = 0 AND s.fires_at <= ?
                {_ORDER}
                """,
                (to_db(now),),
            )
            rows = await cursor.fetchall()

        return [
            DueNotification(
                notification=self._row_to_entity(row),
                title=row["r_title"],
                description=row["r_description"],
                reminder_exists=row["r_id"] is not None,
                reminder_deleted=row["r_deleted_at"] is not None,
            )
            for row in rows
        ]

    async def mark_sent(self, notification_id: str) -> bool:
        """Idempotent; a second call changes nothing."""
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "UPDATE scheduled_notifications SET sent = 1 WHERE id = ? AND sent = 0",
                (notification_id,),
            )
            changed = cursor.rowcount > 0

        if changed:
            await self._publish(ChangeAction.UPDATED, notification_id)
        return changed

    async def _select(self, sql: str, params: tuple) -> list[ScheduledNotification]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> ScheduledNotification:
        return ScheduledNotification(
            id=row["id"],
            reminder_id=row["reminder_id"],
            fires_at=from_db(row["fires_at"]),
            offset_minutes=row["offset_minutes"],
            sent=bool(row["sent"]),
            created_at=from_db(row["created_at"]),
        )
