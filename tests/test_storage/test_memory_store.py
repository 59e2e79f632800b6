"""Tests for the in-memory item store."""

import asyncio

import pytest

from keyword_notifier.ingestion.schemas import ShareableItem
from keyword_notifier.storage.base import StoreError
from keyword_notifier.storage.memory import InMemoryItemStore


class TestInMemoryItemStore:
    """Tests for InMemoryItemStore."""

    @pytest.mark.asyncio
    async def test_upsert_ignore_skips_known(self, memory_store, sample_items):
        assert await memory_store.upsert_ignore(sample_items[:2]) == 2
        assert await memory_store.upsert_ignore(sample_items) == 1
        assert await memory_store.list_known_ids() == {item.id for item in sample_items}

    @pytest.mark.asyncio
    async def test_upsert_keeps_first_version(self, memory_store, sample_items):
        await memory_store.upsert_ignore(sample_items[:1])
        changed = sample_items[0].model_copy(update={"title": "edited"})

        await memory_store.upsert_ignore([changed])

        stored = await memory_store.list_all(source="twitter")
        assert stored[0].title == sample_items[0].title

    @pytest.mark.asyncio
    async def test_insert_rejects_whole_batch_on_clash(self, memory_store, sample_items):
        await memory_store.upsert_ignore(sample_items[:1])

        with pytest.raises(StoreError):
            await memory_store.insert(sample_items)

        assert len(memory_store) == 1

    @pytest.mark.asyncio
    async def test_insert_rejects_duplicates_within_batch(self, memory_store, sample_items):
        with pytest.raises(StoreError):
            await memory_store.insert([sample_items[1], sample_items[1]])

        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_list_all_newest_first(self, memory_store, sample_items):
        await memory_store.upsert_ignore(list(reversed(sample_items)))

        items = await memory_store.list_all()

        assert [item.date for item in items] == [
            "2024-05-14T09:30:00.000Z", "2024-05-13", "2024-05-12",
        ]

    @pytest.mark.asyncio
    async def test_list_all_filter_and_limit(self, memory_store, sample_items):
        await memory_store.upsert_ignore(sample_items)

        items = await memory_store.list_all(source="stackoverflow", limit=1)

        assert [item.id for item in items] == ["stackoverflow-78481234"]

    @pytest.mark.asyncio
    async def test_count_by_source(self, memory_store, sample_items):
        await memory_store.upsert_ignore(sample_items)

        assert await memory_store.count_by_source() == {"stackoverflow": 2, "twitter": 1}
        assert await memory_store.health_check() is True

    @pytest.mark.asyncio
    async def test_concurrent_upserts_store_each_id_once(self):
        store = InMemoryItemStore()
        items = [
            ShareableItem(
                id=f"twitter-{i}",
                title=f"tweet {i}",
                date="2024-05-14",
                url=f"https://twitter.com/twitter/status/{i}",
                source="twitter",
            )
            for i in range(20)
        ]

        results = await asyncio.gather(*(store.upsert_ignore(items) for _ in range(5)))

        assert sum(results) == 20
        assert len(store) == 20
