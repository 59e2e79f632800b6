"""
In-process item store for deployments without a database.

The known-item set lives as long as the process: a restart forgets it and
items seen before the restart are reported once more.

All mutations run inside one asyncio.Lock, so the check for an existing id
and the insert that follows it form a single critical section.
"""

import asyncio
import logging
from collections.abc import Sequence

from keyword_notifier.ingestion.schemas import ShareableItem
from keyword_notifier.storage.base import ItemStore, StoreError

logger = logging.getLogger(__name__)


class InMemoryItemStore(ItemStore):
    """Item store kept in a dict keyed by item id."""

    def __init__(self) -> None:
        self._items: dict[str, ShareableItem] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._items)

    async def list_known_ids(self) -> set[str]:
        async with self._lock:
            return set(self._items)

    async def upsert_ignore(self, items: Sequence[ShareableItem]) -> int:
        if not items:
            return 0

        inserted = 0
        async with self._lock:
            for item in items:
                if item.id in self._items:
                    continue
                self._items[item.id] = item
                inserted += 1

        logger.info(
            f"Upserted {len(items)} items in memory: {inserted} new, "
            f"{len(items) - inserted} already known"
        )
        return inserted

    async def insert(self, items: Sequence[ShareableItem]) -> int:
        if not items:
            return 0

        async with self._lock:
            batch_ids = [item.id for item in items]
            clashes = [i for i in batch_ids if i in self._items]
            if clashes or len(set(batch_ids)) != len(batch_ids):
                raise StoreError(
                    f"Batch of {len(items)} items rejected, duplicate ids: "
                    f"{sorted(set(clashes)) or 'within batch'}"
                )
            for item in items:
                self._items[item.id] = item

        logger.info(f"Inserted {len(items)} items in memory")
        return len(items)

    async def list_all(
        self,
        source: str | None = None,
        limit: int | None = None,
    ) -> list[ShareableItem]:
        async with self._lock:
            items = [
                item for item in self._items.values()
                if source is None or item.source == source
            ]

        items.sort(key=lambda item: item.id)
        items.sort(key=lambda item: item.date, reverse=True)
        return items[:limit] if limit is not None else items

    async def count_by_source(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        async with self._lock:
            for item in self._items.values():
                counts[item.source] = counts.get(item.source, 0) + 1
        return dict(sorted(counts.items()))
