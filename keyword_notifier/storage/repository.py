"""
Item repository backed by PostgreSQL.

Batch writes use a single INSERT ... SELECT FROM unnest(...) statement so a
batch is either attempted as a whole or not at all. Uniqueness of item ids
is enforced by the primary key, which makes upsert_ignore race-free even
when several fetch cycles or processes write concurrently.
"""

import asyncio
import logging
from collections.abc import Sequence

import asyncpg

from keyword_notifier.ingestion.schemas import ShareableItem
from keyword_notifier.storage.base import ItemStore, StoreError
from keyword_notifier.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS shareables (
    id         TEXT PRIMARY KEY,
    title      TEXT NOT NULL,
    url        TEXT NOT NULL,
    date       TEXT NOT NULL,
    source     TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_shareables_source
    ON shareables(source);
CREATE INDEX IF NOT EXISTS idx_shareables_date
    ON shareables(date DESC);
"""

_UPSERT_IGNORE_SQL = """
INSERT INTO shareables (id, title, url, date, source)
SELECT * FROM unnest($1::text[], $2::text[], $3::text[], $4::text[], $5::text[])
ON CONFLICT (id) DO NOTHING
RETURNING id
"""

_INSERT_SQL = """
INSERT INTO shareables (id, title, url, date, source)
SELECT * FROM unnest($1::text[], $2::text[], $3::text[], $4::text[], $5::text[])
"""

# Failures that mean the store is unreachable or refused the statement
_STORE_FAILURES = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


def _to_columns(items: Sequence[ShareableItem]) -> tuple[list[str], ...]:
    """Split items into parallel column arrays for unnest()."""
    return (
        [item.id for item in items],
        [item.title for item in items],
        [item.url for item in items],
        [item.date for item in items],
        [item.source for item in items],
    )


def _record_to_item(record) -> ShareableItem:
    """Convert an asyncpg Record to a ShareableItem."""
    return ShareableItem(
        id=record["id"],
        title=record["title"],
        url=record["url"],
        date=record["date"],
        source=record["source"],
    )


class ItemRepository(ItemStore):
    """
    Storage for discovered items.

    Tables:
        - shareables: one row per item, keyed by item id
    """

    def __init__(self, database: Database):
        """
        Initialize repository.

        Args:
            database: Connected Database instance
        """
        self._db = database

    async def create_tables(self) -> None:
        """Create the shareables table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Shareables table ensured")

    async def list_known_ids(self) -> set[str]:
        try:
            rows = await self._db.fetch("SELECT id FROM shareables")
        except _STORE_FAILURES as e:
            raise StoreError(f"Failed to read known item ids: {e}") from e

        return {row["id"] for row in rows}

    async def upsert_ignore(self, items: Sequence[ShareableItem]) -> int:
        if not items:
            return 0

        try:
            rows = await self._db.fetch(_UPSERT_IGNORE_SQL, *_to_columns(items))
        except _STORE_FAILURES as e:
            raise StoreError(f"Failed to upsert {len(items)} items: {e}") from e

        inserted = len(rows)
        logger.info(
            f"Upserted {len(items)} items: {inserted} new, "
            f"{len(items) - inserted} already known"
        )
        return inserted

    async def insert(self, items: Sequence[ShareableItem]) -> int:
        if not items:
            return 0

        try:
            await self._db.execute(_INSERT_SQL, *_to_columns(items))
        except asyncpg.UniqueViolationError as e:
            raise StoreError(
                f"Batch of {len(items)} items rejected, an id is already stored: {e}"
            ) from e
        except _STORE_FAILURES as e:
            raise StoreError(f"Failed to insert {len(items)} items: {e}") from e

        logger.info(f"Inserted {len(items)} items")
        return len(items)

    async def list_all(
        self,
        source: str | None = None,
        limit: int | None = None,
    ) -> list[ShareableItem]:
        conditions = []
        params: list = []

        if source is not None:
            params.append(source)
            conditions.append(f"source = ${len(params)}")

        sql = "SELECT id, title, url, date, source FROM shareables"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY date DESC, id"

        if limit is not None:
            params.append(limit)
            sql += f" LIMIT ${len(params)}"

        try:
            rows = await self._db.fetch(sql, *params)
        except _STORE_FAILURES as e:
            raise StoreError(f"Failed to list items: {e}") from e

        return [_record_to_item(row) for row in rows]

    async def count_by_source(self) -> dict[str, int]:
        sql = "SELECT source, COUNT(*) AS count FROM shareables GROUP BY source ORDER BY source"
        try:
            rows = await self._db.fetch(sql)
        except _STORE_FAILURES as e:
            raise StoreError(f"Failed to count items: {e}") from e

        return {row["source"]: row["count"] for row in rows}

    async def health_check(self) -> bool:
        return await self._db.health_check()
