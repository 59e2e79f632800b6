"""
Twitter API v2 adapter for keyword search.

Uses the recent search endpoint, one page per request, walking the result
set with `next_token`. The pagination loop itself lives in the pagination
driver; this adapter only knows how to request a single page.

Exclusion rules applied during normalization:
- Retweets (text carries a standalone "RT" marker)
- Replies (text starts with an @mention)
"""

import logging
import re

from pydantic import BaseModel, Field

from keyword_notifier.ingestion.base_adapter import Page, decode_payload
from keyword_notifier.ingestion.http_client import HTTPClient
from keyword_notifier.ingestion.schemas import ShareableItem, SourceName

logger = logging.getLogger(__name__)

# Twitter API v2 endpoints
TWITTER_API_BASE = "https://api.twitter.com/2"
TWEETS_SEARCH_RECENT = f"{TWITTER_API_BASE}/tweets/search/recent"
TWEET_URL = "https://twitter.com/twitter/status/{tweet_id}"

RETWEET_MARKER = re.compile(r"(?<![A-Za-z0-9_])RT(?![A-Za-z0-9_])")
REPLY_MARKER = "@"


class Tweet(BaseModel):
    """Raw tweet as returned by the recent search endpoint."""

    id: str
    text: str
    created_at: str


class TwitterSearchMeta(BaseModel):
    next_token: str | None = None
    result_count: int | None = None


class TwitterSearchResponse(BaseModel):
    """Recent search response. `data` is omitted by the API on empty pages."""

    data: list[Tweet] = Field(default_factory=list)
    meta: TwitterSearchMeta = Field(default_factory=TwitterSearchMeta)


def is_retweet(text: str) -> bool:
    """Check whether tweet text carries the retweet marker."""
    return RETWEET_MARKER.search(text) is not None


def is_reply(text: str) -> bool:
    """Check whether tweet text starts with the reply marker."""
    return text.lstrip().startswith(REPLY_MARKER)


class TwitterAdapter:
    """
    Twitter API v2 recent-search source.

    Rate Limits (Essential tier):
        - 450 requests per 15-minute window
        - 100 tweets per request (max)

    Rate limiting is not handled here: a 429 surfaces as a TransportError
    and the source simply waits for its next tick.
    """

    def __init__(
        self,
        bearer_token: str,
        max_results_per_request: int = 100,
        http_client: HTTPClient | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize Twitter adapter.

        Args:
            bearer_token: Twitter API bearer token
            max_results_per_request: Max tweets per API call (10-100)
            http_client: Shared HTTP client (created if omitted)
            timeout: Request timeout when creating a client
        """
        if not bearer_token:
            raise ValueError("Twitter bearer token is required")

        self._bearer_token = bearer_token
        self._max_results = max(10, min(max_results_per_request, 100))
        self._http = http_client or HTTPClient(timeout=timeout)

    @property
    def name(self) -> str:
        return SourceName.TWITTER.value

    async def fetch_page(self, keyword: str, cursor: str | None = None) -> Page[Tweet]:
        """
        Fetch one page of recent tweets matching the keyword.

        Args:
            keyword: Search query
            cursor: next_token from the previous page, None for the first page

        Returns:
            Page of raw tweets and the continuation token, if any

        Raises:
            TransportError: On network failures or error status codes
            DecodeError: On malformed responses
        """
        params = {
            "query": keyword,
            "max_results": self._max_results,
            "tweet.fields": "created_at",
            "next_token": cursor,
        }

        data = await self._http.get_json(
            TWEETS_SEARCH_RECENT,
            params=params,
            bearer_token=self._bearer_token,
        )
        response = decode_payload(TwitterSearchResponse, data, self.name)

        logger.debug(
            f"Twitter page fetched: tweets={len(response.data)}, "
            f"has_more={response.meta.next_token is not None}"
        )

        return Page(items=response.data, next_cursor=response.meta.next_token)

    def normalize(self, raw: Tweet) -> ShareableItem | None:
        """Transform a tweet into a ShareableItem, or None if it is excluded."""
        if is_retweet(raw.text):
            logger.debug(f"Skipping tweet {raw.id} because it is a retweet")
            return None

        if is_reply(raw.text):
            logger.debug(f"Skipping tweet {raw.id} because it is a reply")
            return None

        return ShareableItem.create(
            source=SourceName.TWITTER,
            native_id=raw.id,
            title=raw.text,
            date=raw.created_at,
            url=TWEET_URL.format(tweet_id=raw.id),
        )

    async def aclose(self) -> None:
        await self._http.aclose()
