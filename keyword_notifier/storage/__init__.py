"""Storage layer for item persistence."""

from keyword_notifier.storage.base import ItemStore, StoreError
from keyword_notifier.storage.database import Database
from keyword_notifier.storage.memory import InMemoryItemStore
from keyword_notifier.storage.repository import ItemRepository

__all__ = ["Database", "InMemoryItemStore", "ItemRepository", "ItemStore", "StoreError"]
