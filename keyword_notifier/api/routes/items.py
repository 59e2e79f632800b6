"""
Item listing endpoints: an HTML page grouped by source and a JSON listing.
"""

import html
import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import HTMLResponse

from keyword_notifier.api.dependencies import get_item_store
from keyword_notifier.api.models import ItemListResponse
from keyword_notifier.ingestion.schemas import ShareableItem, SourceName
from keyword_notifier.ingestion.stackoverflow_adapter import (
    MARKER_ANSWERED,
    MARKER_HAS_ANSWERS,
    MARKER_UNANSWERED,
)
from keyword_notifier.storage.base import ItemStore, StoreError

logger = structlog.get_logger(__name__)
router = APIRouter()

MARKER_SYMBOLS = {
    MARKER_ANSWERED: "✅",
    MARKER_HAS_ANSWERS: "🔄",
    MARKER_UNANSWERED: "❓",
}

SECTION_TITLES = {
    SourceName.TWITTER: "Twitter",
    SourceName.STACKOVERFLOW: "Stack Overflow",
}

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{content}
</body>
</html>
"""


def render_title(title: str) -> str:
    """Translate status markers to symbols and escape the result."""
    for marker, symbol in MARKER_SYMBOLS.items():
        title = title.replace(marker, symbol)
    return html.escape(title)


def render_item(item: ShareableItem) -> str:
    url = html.escape(item.url, quote=True)
    return f'<li><a href="{url}">{render_title(item.title)}</a></li>'


def render_index(items: list[ShareableItem]) -> str:
    """Render one list per source, in a fixed section order."""
    sections = []
    for source, heading in SECTION_TITLES.items():
        entries = "".join(render_item(item) for item in items if item.source == source.value)
        sections.append(f"<h2>{heading}</h2>\n<ul>{entries}</ul>")
    return _PAGE_TEMPLATE.format(title="Keyword notifier", content="\n".join(sections))


def render_error(message: str) -> str:
    content = f"<h2>Error loading data</h2>\n<p>{html.escape(message)}</p>"
    return _PAGE_TEMPLATE.format(title="Error", content=content)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(store: ItemStore = Depends(get_item_store)) -> HTMLResponse:
    try:
        items = await store.list_all()
    except StoreError as e:
        logger.error("Error loading items", error=str(e))
        return HTMLResponse(
            content=render_error(str(e)),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("Fetched items", count=len(items))
    return HTMLResponse(content=render_index(items))


@router.get(
    "/items",
    response_model=ItemListResponse,
    summary="List stored items",
    description="Stored items, newest first, optionally filtered by source.",
)
async def list_items(
    source: SourceName | None = Query(default=None, description="Only items from this source"),
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum items to return"),
    store: ItemStore = Depends(get_item_store),
) -> ItemListResponse:
    start = time.perf_counter()
    source_name = source.value if source else None

    try:
        items = await store.list_all(source=source_name, limit=limit)
    except StoreError as e:
        logger.error("Error loading items", error=str(e), source=source_name)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Item store unavailable",
        ) from e

    latency = (time.perf_counter() - start) * 1000
    logger.info("item_list", count=len(items), source=source_name, latency_ms=round(latency, 2))

    return ItemListResponse(items=items, total=len(items), source=source_name)
