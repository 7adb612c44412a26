"""SQLite implementation of push endpoint storage."""

import aiosqlite

from src.config import get_logger
from src.core.entities.notification import DeliveryEndpoint, EndpointKeys
from src.core.events import ChangeAction, ChangeEntity, ChangeEvent, ChangeFeed
from src.core.interfaces.storage import IEndpointStore
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.timestamps import from_db, to_db

logger = get_logger(__name__)


class SQLiteEndpointStore(IEndpointStore):
    """Push endpoints keyed by their unique URL."""

    def __init__(self, pool: ConnectionPool, feed: ChangeFeed | None = None):
        self._pool = pool
        self._feed = feed

    async def _publish(self, action: ChangeAction, entity_id: str) -> None:
        if self._feed is not None:
            await self._feed.publish(ChangeEvent(ChangeEntity.ENDPOINT, action, entity_id))

    async def register(self, endpoint: DeliveryEndpoint) -> DeliveryEndpoint:
        """Upsert by URL; re-registering refreshes the keys and keeps the id."""
        async with self._pool.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO push_endpoints (id, endpoint_url, p256dh, auth, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(endpoint_url) DO UPDATE SET
                    p256dh = excluded.p256dh,
                    auth = excluded.auth
                """,
                (
                    endpoint.id,
                    endpoint.endpoint_url,
                    endpoint.keys.p256dh,
                    endpoint.keys.auth,
                    to_db(endpoint.created_at),
                ),
            )
            cursor = await conn.execute(
                "SELECT * FROM push_endpoints WHERE endpoint_url = ?",
                (endpoint.endpoint_url,),
            )
            row = await cursor.fetchone()

        stored = self._row_to_entity(row)
        created = stored.id == endpoint.id
        logger.info("push_endpoint_registered", endpoint_id=stored.id, created=created)
        await self._publish(ChangeAction.CREATED if created else ChangeAction.UPDATED, stored.id)
        return stored

    async def unregister(self, endpoint_url: str) -> bool:
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM push_endpoints WHERE endpoint_url = ?", (endpoint_url,)
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("push_endpoint_unregistered")
            await self._publish(ChangeAction.DELETED, endpoint_url)
        return deleted

    async def list_all(self) -> list[DeliveryEndpoint]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM push_endpoints ORDER BY created_at ASC")
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    async def delete_by_urls(self, endpoint_urls: list[str]) -> int:
        if not endpoint_urls:
            return 0

        placeholders = ", ".join("?" for _ in endpoint_urls)
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                f"DELETE FROM push_endpoints WHERE endpoint_url IN ({placeholders})",
                tuple(endpoint_urls),
            )
            deleted = cursor.rowcount

        for url in endpoint_urls:
            await self._publish(ChangeAction.DELETED, url)
        return deleted

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> DeliveryEndpoint:
        return DeliveryEndpoint(
            id=row["id"],
            endpoint_url=row["endpoint_url"],
            keys=EndpointKeys(p256dh=row["p256dh"], auth=row["auth"]),
            created_at=from_db(row["created_at"]),
        )
