"""
Dedup gate: decides which candidate items get persisted.

Two strategies share one contract: no item id is ever stored twice, and an
empty candidate batch is a successful no-op.

- IdempotentWriteGate: hands every candidate to the store's upsert-ignore
  write and lets the store's uniqueness constraint discard known ids. Safe
  under overlapping cycles and multiple processes. This is the default.
- CheckThenWriteGate: reads a snapshot of known ids, keeps only the absent
  ones and inserts them. Two overlapping cycles for the same source can
  both pass the check; the store's uniqueness constraint then rejects the
  later batch with a StoreError instead of storing a duplicate.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Literal

from keyword_notifier.ingestion.schemas import ShareableItem
from keyword_notifier.storage.base import ItemStore

logger = logging.getLogger(__name__)

DedupStrategy = Literal["idempotent", "check_then_write"]

KnownIdentifierSet = frozenset[str]


def unique_by_id(items: Iterable[ShareableItem]) -> list[ShareableItem]:
    """Drop repeated ids from a batch, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


class DedupGate(ABC):
    """Persists the genuinely new items of a candidate batch."""

    strategy: DedupStrategy

    @abstractmethod
    async def persist(self, store: ItemStore, candidates: Sequence[ShareableItem]) -> int:
        """
        Write new candidates to the store.

        Args:
            store: Store to write to
            candidates: Normalized items from one fetch cycle

        Returns:
            Number of items newly persisted

        Raises:
            StoreError: If the store rejects the batch
        """
        ...


class IdempotentWriteGate(DedupGate):
    """Submits every candidate to an upsert-ignore write."""

    strategy: DedupStrategy = "idempotent"

    async def persist(self, store: ItemStore, candidates: Sequence[ShareableItem]) -> int:
        batch = unique_by_id(candidates)
        if not batch:
            return 0

        return await store.upsert_ignore(batch)


class CheckThenWriteGate(DedupGate):
    """Filters candidates against a snapshot of known ids before inserting."""

    strategy: DedupStrategy = "check_then_write"

    async def persist(self, store: ItemStore, candidates: Sequence[ShareableItem]) -> int:
        batch = unique_by_id(candidates)
        if not batch:
            return 0

        known: KnownIdentifierSet = frozenset(await store.list_known_ids())
        fresh = self.filter_new(batch, known)

        logger.debug(
            f"Check-then-write: {len(batch)} candidates, {len(fresh)} unknown "
            f"(snapshot of {len(known)} ids)"
        )

        if not fresh:
            return 0

        return await store.insert(fresh)

    @staticmethod
    def filter_new(
        candidates: Sequence[ShareableItem],
        known: KnownIdentifierSet,
    ) -> list[ShareableItem]:
        """Keep candidates whose id is absent from the snapshot."""
        return [item for item in candidates if item.id not in known]


def create_dedup_gate(strategy: DedupStrategy = "idempotent") -> DedupGate:
    """
    Create the dedup gate for a deployment.

    Args:
        strategy: "idempotent" (default) or "check_then_write"

    Returns:
        DedupGate instance
    """
    if strategy == "idempotent":
        return IdempotentWriteGate()
    if strategy == "check_then_write":
        return CheckThenWriteGate()
    raise ValueError(f"Unknown dedup strategy: {strategy}")
