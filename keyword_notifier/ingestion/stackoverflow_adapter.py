"""
Stack Exchange API adapter for Stack Overflow question search.

A single request returns the most recently active questions matching the
keyword. Further pages are deliberately not requested: the source is polled
often enough that the first page covers everything new.

The answer state of each question is embedded in the item title as a
short marker which the listing page turns into a symbol:

    :white_check_mark:  accepted / resolved
    :waiting-spin:      has answers, none accepted
    :question:          unanswered
"""

import html
import logging
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from keyword_notifier.ingestion.base_adapter import decode_payload
from keyword_notifier.ingestion.http_client import DecodeError, HTTPClient
from keyword_notifier.ingestion.schemas import ShareableItem, SourceName

logger = logging.getLogger(__name__)

STACKEXCHANGE_API_BASE = "https://api.stackexchange.com/2.3"
SEARCH_ADVANCED = f"{STACKEXCHANGE_API_BASE}/search/advanced"

MARKER_ANSWERED = ":white_check_mark:"
MARKER_HAS_ANSWERS = ":waiting-spin:"
MARKER_UNANSWERED = ":question:"


class Question(BaseModel):
    """Raw question as returned by /search/advanced."""

    question_id: int | None = None
    is_answered: bool
    link: str
    title: str
    answer_count: int = Field(ge=0)
    creation_date: int


class StackOverflowResponse(BaseModel):
    items: list[Question]
    has_more: bool = False
    quota_remaining: int | None = None


def answer_marker(question: Question) -> str:
    """Map the answer state of a question to its title marker."""
    if question.is_answered:
        return MARKER_ANSWERED
    if question.answer_count > 0:
        return MARKER_HAS_ANSWERS
    return MARKER_UNANSWERED


def format_creation_date(epoch_seconds: int) -> str:
    """
    Convert a Unix timestamp into an ISO date (UTC).

    Raises:
        DecodeError: If the timestamp is outside the representable range
    """
    try:
        created = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        raise DecodeError(f"Invalid Stack Overflow creation_date {epoch_seconds}: {e}") from e
    return created.date().isoformat()


class StackOverflowAdapter:
    """Stack Overflow keyword search, one page per fetch."""

    def __init__(
        self,
        page_size: int = 30,
        site: str = "stackoverflow",
        api_key: str | None = None,
        http_client: HTTPClient | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize Stack Overflow adapter.

        Args:
            page_size: Number of questions per request (1-100)
            site: Stack Exchange site to search
            api_key: Optional Stack Apps key for a higher request quota
            http_client: Shared HTTP client (created if omitted)
            timeout: Request timeout when creating a client
        """
        self._page_size = max(1, min(page_size, 100))
        self._site = site
        self._api_key = api_key
        self._http = http_client or HTTPClient(timeout=timeout)

    @property
    def name(self) -> str:
        return SourceName.STACKOVERFLOW.value

    async def fetch_all(self, keyword: str) -> list[Question]:
        """
        Fetch the most recently active questions matching the keyword.

        Raises:
            TransportError: On network failures or error status codes
            DecodeError: On malformed responses
        """
        params = {
            "order": "desc",
            "sort": "activity",
            "site": self._site,
            "q": keyword,
            "pagesize": self._page_size,
            "key": self._api_key,
        }

        data = await self._http.get_json(SEARCH_ADVANCED, params=params)
        response = decode_payload(StackOverflowResponse, data, self.name)

        if response.quota_remaining is not None and response.quota_remaining < 10:
            logger.warning(f"Stack Exchange quota nearly exhausted: {response.quota_remaining} left")

        logger.debug(f"Stack Overflow returned {len(response.items)} questions")
        return response.items

    def normalize(self, raw: Question) -> ShareableItem:
        """Transform a question into a ShareableItem. No exclusion rules apply."""
        native_id = raw.question_id if raw.question_id is not None else raw.link
        title = html.unescape(raw.title)

        return ShareableItem.create(
            source=SourceName.STACKOVERFLOW,
            native_id=native_id,
            title=f"{answer_marker(raw)} - {title}",
            date=format_creation_date(raw.creation_date),
            url=raw.link,
        )

    async def aclose(self) -> None:
        await self._http.aclose()
