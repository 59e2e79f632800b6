"""
Cursor pagination driver.

Walks a PaginatedSource from its first page until the provider stops
returning a continuation token, normalizing every raw item on the way.

Termination does not depend on the provider alone: a hard page ceiling and
a repeated-cursor check both end the walk. Hitting either is a normal
termination (logged, flagged on the result), not an error.
"""

import logging
from dataclasses import dataclass, field

from keyword_notifier.ingestion.base_adapter import PaginatedSource
from keyword_notifier.ingestion.schemas import ShareableItem

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 50


@dataclass
class PaginationResult:
    """Items collected across all pages of one walk."""

    items: list[ShareableItem] = field(default_factory=list)
    pages: int = 0
    excluded: int = 0
    truncated: bool = False

    @property
    def fetched(self) -> int:
        """Raw items seen, excluded ones included."""
        return len(self.items) + self.excluded


class PaginationDriver:
    """
    Collects every page of a paginated source.

    Usage:
        driver = PaginationDriver(max_pages=10)
        result = await driver.collect(twitter_adapter, "rustlang")
    """

    def __init__(self, max_pages: int = DEFAULT_MAX_PAGES):
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        self.max_pages = max_pages

    async def collect(self, adapter: PaginatedSource, keyword: str) -> PaginationResult:
        """
        Fetch and normalize all pages for a keyword.

        Exclusion rules only filter items; a page whose items were all
        excluded does not stop the walk.

        Args:
            adapter: Paginated source to walk
            keyword: Search keyword

        Returns:
            PaginationResult with items in page order

        Raises:
            FetchError: If any page fails; items from earlier pages are discarded
        """
        result = PaginationResult()
        requested: set[str] = set()
        cursor: str | None = None

        while True:
            page = await adapter.fetch_page(keyword, cursor)
            result.pages += 1

            for raw in page.items:
                item = adapter.normalize(raw)
                if item is None:
                    result.excluded += 1
                    continue
                result.items.append(item)

            cursor = page.next_cursor
            if cursor is None:
                break

            if cursor in requested:
                logger.warning(
                    f"{adapter.name} returned already requested cursor {cursor!r}, "
                    f"stopping after {result.pages} pages"
                )
                result.truncated = True
                break

            if result.pages >= self.max_pages:
                logger.warning(
                    f"{adapter.name} still had more results after {self.max_pages} pages, "
                    "stopping at page ceiling"
                )
                result.truncated = True
                break

            requested.add(cursor)

        logger.debug(
            f"{adapter.name} pagination done: pages={result.pages}, "
            f"items={len(result.items)}, excluded={result.excluded}"
        )
        return result
