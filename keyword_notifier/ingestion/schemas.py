"""
Canonical item schema for the keyword-notifier pipeline.

CRITICAL: The `id` format is the only deduplication key across fetch cycles
and process restarts. Every source adapter MUST build ids with make_item_id()
so that the same upstream item always maps to the same id.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceName(str, Enum):
    """Supported content sources."""

    TWITTER = "twitter"
    STACKOVERFLOW = "stackoverflow"


def make_item_id(source: SourceName | str, native_id: str | int) -> str:
    """
    Build the globally unique item id.

    Args:
        source: Source the item came from
        native_id: Identifier of the item within its source

    Returns:
        Id in format "{source}-{native_id}"
    """
    source_str = source.value if isinstance(source, SourceName) else source
    return f"{source_str}-{native_id}"


class ShareableItem(BaseModel):
    """
    CANONICAL ITEM SCHEMA

    One discoverable unit of content. Immutable once created; after the
    dedup gate hands it to the store, the store owns it.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique ID in format: {source}-{native_id}",
        examples=["twitter-1234567890", "stackoverflow-7654321"],
    )
    title: str = Field(..., description="Human readable summary, may embed a status marker")
    date: str = Field(..., description="ISO timestamp or date, used for display ordering")
    url: str = Field(..., description="Canonical link to the original content")
    source: str = Field(..., min_length=1, description="Name of the source adapter")

    @model_validator(mode="after")
    def _id_carries_source(self) -> "ShareableItem":
        if not self.id.startswith(f"{self.source}-"):
            raise ValueError(f"Item id {self.id!r} does not start with source {self.source!r}")
        return self

    @classmethod
    def create(
        cls,
        source: SourceName,
        native_id: str | int,
        title: str,
        date: str,
        url: str,
    ) -> "ShareableItem":
        """Create an item, deriving its id from the source and native id."""
        return cls(
            id=make_item_id(source, native_id),
            title=title,
            date=date,
            url=url,
            source=source.value,
        )
