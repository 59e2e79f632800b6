"""
HTTP transport layer for source adapters.

Provides:
- FetchError / TransportError / DecodeError: failure taxonomy for sources
- HTTPClient: Async JSON GET client over httpx

Failures are never retried here. A fetch cycle that hits a transport or
decode failure ends for that tick and the scheduler tries again at the
next one.
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "keyword-notifier/0.1.0"


class FetchError(Exception):
    """Base exception for failures while fetching from a source."""


class TransportError(FetchError):
    """Raised when a source cannot be reached or answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class DecodeError(FetchError):
    """Raised when a response body does not have the expected shape."""


class HTTPClient:
    """
    Async HTTP client returning decoded JSON documents.

    The underlying httpx.AsyncClient is created lazily and reused for every
    request until aclose() is called, so paginated fetches share one
    connection pool.

    Example:
        async with HTTPClient(timeout=10.0) as client:
            data = await client.get_json(
                "https://api.example.com/search",
                params={"q": "rust"},
                bearer_token="...",
            )
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds.
            user_agent: User-Agent header sent with every request.
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/json; charset=utf-8",
                },
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        bearer_token: str | None = None,
    ) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Args:
            url: Request URL
            params: Query parameters (None values are dropped)
            bearer_token: Optional bearer credential

        Returns:
            The decoded JSON document

        Raises:
            TransportError: On connection failures, timeouts or non-2xx status
            DecodeError: When the body is not valid JSON
        """
        client = self._ensure_client()

        headers = {}
        if bearer_token:
            headers["Authorization"] = f"Bearer {bearer_token}"

        request_params = (
            {k: v for k, v in params.items() if v is not None} if params else None
        )

        try:
            response = await client.get(url, params=request_params, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Request to {url} failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {url} is not valid JSON: {e}") from e
