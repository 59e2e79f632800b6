"""Data ingestion module - source adapters, pagination and deduplication."""

from keyword_notifier.ingestion.schemas import (
    ShareableItem,
    SourceName,
    make_item_id,
)

__all__ = [
    "ShareableItem",
    "SourceName",
    "make_item_id",
]
