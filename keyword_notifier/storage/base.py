"""
Abstract base class for item stores.

Defines the interface the fetch pipeline and the listing API depend on.
Two backends implement it: ItemRepository (PostgreSQL) and
InMemoryItemStore (storeless deployments).
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from keyword_notifier.ingestion.schemas import ShareableItem


class StoreError(Exception):
    """Raised when the store rejects an operation for a reason other than an ignored duplicate."""


class ItemStore(ABC):
    """
    Durable record of every item ever discovered.

    Invariant: no two stored items share an id.
    """

    @abstractmethod
    async def list_known_ids(self) -> set[str]:
        """
        Read the ids of every stored item.

        Raises:
            StoreError: On connectivity or schema failures
        """
        ...

    @abstractmethod
    async def upsert_ignore(self, items: Sequence[ShareableItem]) -> int:
        """
        Insert items, silently skipping those whose id already exists.

        The batch is written in one atomic operation.

        Returns:
            Number of items actually inserted

        Raises:
            StoreError: On connectivity or schema failures, never on duplicates
        """
        ...

    @abstractmethod
    async def insert(self, items: Sequence[ShareableItem]) -> int:
        """
        Insert items that are expected to be new.

        A duplicate id rejects the whole batch.

        Returns:
            Number of items inserted

        Raises:
            StoreError: On duplicates, connectivity or schema failures
        """
        ...

    @abstractmethod
    async def list_all(
        self,
        source: str | None = None,
        limit: int | None = None,
    ) -> list[ShareableItem]:
        """List stored items, newest first."""
        ...

    @abstractmethod
    async def count_by_source(self) -> dict[str, int]:
        """Count stored items per source."""
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        return True
