"""
Source adapter capabilities and shared functionality.

Adapters are not required to inherit from anything. The fetch cycle and the
scheduler only rely on the capability protocols below:

- PaginatedSource: fetch_page(keyword, cursor) -> Page, for cursor-paged APIs
- SingleShotSource: fetch_all(keyword) -> list of raw items, for one-call APIs

Both expose `name` and normalize(raw), which turns a raw payload into a
ShareableItem or returns None when an exclusion rule applies.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from keyword_notifier.ingestion.http_client import DecodeError
from keyword_notifier.ingestion.schemas import ShareableItem

logger = logging.getLogger(__name__)

RawT = TypeVar("RawT")
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class Page(Generic[RawT]):
    """
    One page of raw results from a paginated source.

    Attributes:
        items: Raw items in provider order
        next_cursor: Continuation token for the next page, None when exhausted
    """

    items: list[RawT] = field(default_factory=list)
    next_cursor: str | None = None


@runtime_checkable
class SourceAdapter(Protocol):
    """Capabilities shared by every source adapter."""

    @property
    def name(self) -> str:
        """Source name, embedded in every item id."""
        ...

    def normalize(self, raw: Any) -> ShareableItem | None:
        """Convert a raw item, or return None when an exclusion rule applies."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        ...


@runtime_checkable
class PaginatedSource(SourceAdapter, Protocol):
    """A source whose results are walked with continuation tokens."""

    async def fetch_page(self, keyword: str, cursor: str | None = None) -> Page:
        """Fetch one page of raw results."""
        ...


@runtime_checkable
class SingleShotSource(SourceAdapter, Protocol):
    """A source answered by a single request."""

    async def fetch_all(self, keyword: str) -> list[Any]:
        """Fetch every raw result in one request."""
        ...


def decode_payload(model: type[ModelT], data: Any, source: str) -> ModelT:
    """
    Validate a decoded JSON document against a response model.

    Args:
        model: Pydantic model describing the expected response shape
        data: Decoded JSON document
        source: Source name, used in the error message

    Returns:
        Validated model instance

    Raises:
        DecodeError: If the document does not match the model
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DecodeError(
            f"Unexpected {source} response shape: {e.error_count()} validation error(s)"
        ) from e
