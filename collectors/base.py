"""Base client for the Meta Graph API.

This module provides the base class with token handling, HTTP session
management and retry logic that is shared across Graph API clients.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_URL = "https://graph.facebook.com"
DEFAULT_API_VERSION = "v21.0"

# Graph API error codes for application/user/account throttling
RATE_LIMIT_ERROR_CODES = frozenset({4, 17, 32, 613, 80000, 80003, 80004, 80014})

T = TypeVar("T")


class GraphApiError(Exception):
    """Raised when a Graph API request fails.

    Attributes:
        status: HTTP status of the response (0 when unknown).
        code: Graph error code from the response body, if any.
    """

    def __init__(self, message: str, status: int = 0, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code

    @property
    def is_rate_limit(self) -> bool:
        return self.status == 429 or self.code in RATE_LIMIT_ERROR_CODES


class BaseGraphApiClient:
    """Base async client for the Meta Graph API.

    This class owns a lazily created ``aiohttp.ClientSession`` and provides
    common functionality for API interactions with rate limit handling.

    Attributes:
        api_version: Graph API version segment (e.g. 'v21.0').
        graph_url: Graph API host URL.
        max_retries: Maximum retry attempts for rate-limited requests.
        base_delay: Base delay in seconds for exponential backoff.

    Example:
        >>> class MyClient(BaseGraphApiClient):
        ...     async def fetch_me(self):
        ...         return await self._execute_with_retry(
        ...             lambda: self._request("GET", "me")
        ...         )
    """

    MAX_RETRIES = 3
    BASE_DELAY = 1.0
    REQUEST_TIMEOUT = 30.0

    def __init__(
        self,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        graph_url: str = DEFAULT_GRAPH_URL,
        request_timeout: float = REQUEST_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        base_delay: float = BASE_DELAY,
    ) -> None:
        """Initialize the Graph API client.

        Args:
            access_token: Meta access token. May be empty; requests then fail.
            api_version: Graph API version segment.
            graph_url: Graph API host URL.
            request_timeout: Total timeout per HTTP request in seconds.
            max_retries: Maximum retry attempts for rate-limited requests.
            base_delay: Base delay in seconds for exponential backoff.
        """
        self.api_version = api_version
        self.graph_url = graph_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._access_token = access_token
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def base_url(self) -> str:
        """Versioned API root, e.g. 'https://graph.facebook.com/v21.0/'."""
        return f"{self.graph_url}/{self.api_version}/"

    def _get_session(self) -> aiohttp.ClientSession:
        """Lazy initialization of the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if one was opened."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str = "",
        data: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send one request and decode the JSON body.

        Args:
            method: HTTP method.
            path: Path below the versioned API root.
            data: Form fields for POST requests.
            params: Query parameters.

        Returns:
            Decoded JSON response.

        Raises:
            GraphApiError: On a missing token or an error response.
            aiohttp.ClientError: On transport failures.
        """
        if not self._access_token:
            raise GraphApiError("Meta access token is not configured")

        form = dict(data or {})
        form["access_token"] = self._access_token

        session = self._get_session()
        async with session.request(
            method, self.base_url + path, data=form, params=params
        ) as response:
            payload = await response.json(content_type=None)

            if response.status >= 400:
                error = payload.get("error", {}) if isinstance(payload, dict) else {}
                raise GraphApiError(
                    error.get("message") or f"HTTP {response.status}",
                    status=response.status,
                    code=error.get("code"),
                )
            return payload

    async def _execute_with_retry(self, request_func: Callable[[], Awaitable[T]]) -> T:
        """Execute an API request with exponential backoff for rate limits.

        Implements retry logic for HTTP 429 and Graph throttling error codes
        with exponential backoff and jitter.

        Args:
            request_func: A callable returning the request coroutine.

        Returns:
            The API response.

        Raises:
            GraphApiError: If request fails after all retries or non-retryable error.
        """
        last_error: Optional[GraphApiError] = None

        for attempt in range(self.max_retries + 1):
            try:
                return await request_func()

            except GraphApiError as ex:
                last_error = ex

                if not ex.is_rate_limit:
                    raise

                if attempt < self.max_retries:
                    # Exponential backoff with jitter
                    delay = self.base_delay * (2**attempt)
                    jitter = delay * 0.1 * (0.5 - time.time() % 1)
                    wait_time = delay + jitter

                    logger.warning(
                        f"Rate limited ({ex.status or ex.code}). "
                        f"Retry {attempt + 1}/{self.max_retries} after {wait_time:.2f}s"
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(
                        f"Rate limit exceeded after {self.max_retries} retries"
                    )
                    raise

        if last_error:
            raise last_error
        raise RuntimeError("Unexpected state in retry logic")
