"""
asyncpg pool holding the item table's connections.

The pool is opened once at process start. A database that cannot be
reached then is fatal to the process; failures later on surface per call
and are turned into StoreError by the repository.
"""

import logging
from typing import Any

import asyncpg

logger = logging.getLogger(__name__)

# Seconds a single statement may run before asyncpg cancels it
STATEMENT_TIMEOUT = 30.0


class Database:
    """
    Connection pool shared by every source's fetch cycle and the listing API.

    Usage:
        db = Database(str(settings.database_url))
        await db.connect()
        rows = await db.fetch("SELECT id FROM shareables")
        await db.close()
    """

    def __init__(self, database_url: str, min_size: int = 1, max_size: int = 10):
        self._database_url = database_url
        self._min_size = min_size
        self._max_size = max_size
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Open the pool and run one round trip so a bad URL fails here."""
        if self._pool is not None:
            return

        pool = await asyncpg.create_pool(
            self._database_url,
            min_size=self._min_size,
            max_size=self._max_size,
            command_timeout=STATEMENT_TIMEOUT,
        )
        try:
            await pool.fetchval("SELECT 1")
        except Exception:
            await pool.close()
            raise

        self._pool = pool
        logger.info(f"Item database connected (pool {self._min_size}-{self._max_size})")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Item database closed")

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise asyncpg.InterfaceError("item database is not connected")
        return self._pool

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement, returning its status tag (e.g. "INSERT 0 3")."""
        return await self._require_pool().execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self._require_pool().fetch(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self._require_pool().fetchval(query, *args)

    async def health_check(self) -> bool:
        """True when the pool is open and the server answers a trivial query."""
        if self._pool is None:
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.warning(f"Item database health check failed: {e}")
            return False
