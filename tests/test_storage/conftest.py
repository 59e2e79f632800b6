"""Shared fixtures for storage tests."""

from unittest.mock import AsyncMock

import pytest

from keyword_notifier.storage.repository import ItemRepository


@pytest.fixture
def mock_database():
    """Mock Database with async fetch methods."""
    db = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock()
    db.execute = AsyncMock(return_value="INSERT 0 0")
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def repository(mock_database):
    """ItemRepository wired to the mock database."""
    return ItemRepository(mock_database)


def make_record(item) -> dict:
    """Build a dict that quacks like an asyncpg Record for one item."""
    return {
        "id": item.id,
        "title": item.title,
        "url": item.url,
        "date": item.date,
        "source": item.source,
    }


@pytest.fixture
def record_factory():
    return make_record
