"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from keyword_notifier.api.app import create_app
from keyword_notifier.storage.base import ItemStore


@pytest.fixture
def mock_store(sample_items) -> AsyncMock:
    """Store returning the sample items."""
    store = AsyncMock(spec=ItemStore)
    store.list_all.return_value = sample_items
    store.count_by_source.return_value = {"stackoverflow": 2, "twitter": 1}
    store.health_check.return_value = True
    return store


@pytest.fixture
def client(mock_store):
    """Test client over an app wired to the mock store."""
    app = create_app(store=mock_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def failing_client(failing_store):
    """Test client whose store is unreachable."""
    app = create_app(store=failing_store)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
