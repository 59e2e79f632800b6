"""Tests for the Twitter recent-search adapter."""

import httpx
import pytest
import respx

from keyword_notifier.ingestion.base_adapter import PaginatedSource, SingleShotSource
from keyword_notifier.ingestion.http_client import DecodeError, TransportError
from keyword_notifier.ingestion.twitter_adapter import (
    TWEETS_SEARCH_RECENT,
    Tweet,
    TwitterAdapter,
    is_reply,
    is_retweet,
)


def _tweet(tweet_id: str, text: str) -> Tweet:
    return Tweet(id=tweet_id, text=text, created_at="2024-05-14T09:30:00.000Z")


class TestExclusionRules:
    @pytest.mark.parametrize(
        "text",
        [
            "RT @someone: rust 1.78 is out",
            "great thread RT",
            "(RT) worth a read",
        ],
    )
    def test_retweets_detected(self, text):
        assert is_retweet(text)

    @pytest.mark.parametrize(
        "text",
        [
            "Rust 1.78 is out",
            "ART of borrowing",
            "Check out RTFM culture",
            "rt lowercase is not a marker",
        ],
    )
    def test_non_retweets_pass(self, text):
        assert not is_retweet(text)

    def test_reply_detected(self):
        assert is_reply("@ferris thanks for the crate")
        assert is_reply("  @ferris leading whitespace")

    def test_mention_inside_text_is_not_reply(self):
        assert not is_reply("Thanks @ferris for the crate")


class TestTwitterAdapter:
    """Tests for TwitterAdapter."""

    def test_requires_bearer_token(self):
        with pytest.raises(ValueError):
            TwitterAdapter(bearer_token="")

    def test_is_paginated_source(self):
        adapter = TwitterAdapter(bearer_token="token")
        assert isinstance(adapter, PaginatedSource)
        assert not isinstance(adapter, SingleShotSource)
        assert adapter.name == "twitter"

    def test_normalize_builds_item(self):
        adapter = TwitterAdapter(bearer_token="token")
        item = adapter.normalize(_tweet("1790000000000000001", "Shipping a new crate"))

        assert item is not None
        assert item.id == "twitter-1790000000000000001"
        assert item.title == "Shipping a new crate"
        assert item.date == "2024-05-14T09:30:00.000Z"
        assert item.url == "https://twitter.com/twitter/status/1790000000000000001"
        assert item.source == "twitter"

    def test_normalize_excludes_retweets_and_replies(self):
        adapter = TwitterAdapter(bearer_token="token")

        assert adapter.normalize(_tweet("1", "RT @a: hello")) is None
        assert adapter.normalize(_tweet("2", "@a hello")) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_page_sends_query(self):
        route = respx.get(TWEETS_SEARCH_RECENT).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {"id": "1", "text": "hello", "created_at": "2024-05-14T09:30:00.000Z"},
                    ],
                    "meta": {"result_count": 1, "next_token": "T1"},
                },
            )
        )

        adapter = TwitterAdapter(bearer_token="token", max_results_per_request=50)
        page = await adapter.fetch_page("rustlang")
        await adapter.aclose()

        request = route.calls.last.request
        assert request.url.params["query"] == "rustlang"
        assert request.url.params["max_results"] == "50"
        assert request.url.params["tweet.fields"] == "created_at"
        assert "next_token" not in request.url.params
        assert request.headers["Authorization"] == "Bearer token"

        assert [tweet.id for tweet in page.items] == ["1"]
        assert page.next_cursor == "T1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_page_forwards_cursor(self):
        route = respx.get(TWEETS_SEARCH_RECENT).mock(
            return_value=httpx.Response(200, json={"meta": {"result_count": 0}})
        )

        adapter = TwitterAdapter(bearer_token="token")
        page = await adapter.fetch_page("rustlang", cursor="T1")
        await adapter.aclose()

        assert route.calls.last.request.url.params["next_token"] == "T1"
        assert page.items == []
        assert page.next_cursor is None

    def test_max_results_clamped(self):
        assert TwitterAdapter(bearer_token="t", max_results_per_request=5)._max_results == 10
        assert TwitterAdapter(bearer_token="t", max_results_per_request=500)._max_results == 100

    @pytest.mark.asyncio
    @respx.mock
    async def test_unexpected_shape_raises_decode_error(self):
        respx.get(TWEETS_SEARCH_RECENT).mock(
            return_value=httpx.Response(200, json={"data": [{"id": "1"}]})
        )

        adapter = TwitterAdapter(bearer_token="token")
        with pytest.raises(DecodeError):
            await adapter.fetch_page("rustlang")
        await adapter.aclose()

    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized_raises_transport_error(self):
        respx.get(TWEETS_SEARCH_RECENT).mock(
            return_value=httpx.Response(401, json={"title": "Unauthorized"})
        )

        adapter = TwitterAdapter(bearer_token="bad")
        with pytest.raises(TransportError) as exc_info:
            await adapter.fetch_page("rustlang")
        await adapter.aclose()

        assert exc_info.value.status_code == 401
