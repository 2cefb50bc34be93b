"""Base async HTTP client with rate limiting and connection pooling.

Remote clients inherit from this base to ensure consistent behavior:
- Async/await for non-blocking I/O
- Connection pooling for performance
- Rate limiting to respect server quotas
- Automatic retries with exponential backoff on transient failures
- Proper error handling and logging

Usage:
    class MyServerClient(BaseAsyncClient):
        def __init__(self, token: str, rate_limit: int = 10):
            super().__init__(
                base_url="https://files.example.com",
                headers={"Authorization": f"Bearer {token}"},
                rate_limit=rate_limit
            )

        async def get_index(self) -> dict:
            return await self.get_json("/index")
"""

import asyncio
import logging
from typing import Any

import httpx


logger = logging.getLogger(__name__)

# Retry configuration
_RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds


class RateLimiter:
    """Token bucket rate limiter for async operations.

    Ensures we don't exceed server rate limits using a token bucket algorithm.
    Safe to share between concurrent tasks on one event loop.

    Args:
        rate: Maximum requests per second
    """

    def __init__(self, rate: int) -> None:
        self.rate = rate
        self.tokens = rate
        self.updated_at: float = 0.0
        self._initialized: bool = False
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary."""
        async with self._lock:
            loop = asyncio.get_running_loop()

            if not self._initialized:
                self.updated_at = loop.time()
                self._initialized = True

            while self.tokens < 1:
                now = loop.time()
                elapsed = now - self.updated_at
                self.tokens = min(self.rate, self.tokens + elapsed * self.rate)
                self.updated_at = now

                if self.tokens < 1:
                    wait_time = (1 - self.tokens) / self.rate
                    await asyncio.sleep(wait_time)

            self.tokens -= 1
            self.updated_at = loop.time()


class RemoteServiceError(Exception):
    """Raised when the remote server cannot serve a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class BaseAsyncClient:
    """Base async HTTP client with rate limiting and connection pooling.

    Args:
        base_url: Base URL for all requests
        headers: Default headers for all requests
        rate_limit: Maximum requests per second (default: 10)
        timeout: Request timeout in seconds (default: 30)
        max_connections: Connection pool size (default: 10)
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        rate_limit: int = 10,
        timeout: float = 30.0,
        max_connections: int = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self.max_connections = max_connections
        self._rate_limiter = RateLimiter(rate=rate_limit)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            limits=httpx.Limits(
                max_keepalive_connections=min(5, self.max_connections),
                max_connections=self.max_connections,
            ),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request with rate limiting, retries, and error handling.

        Retries on transient failures (429, 502, 503, 504, timeouts, network
        errors) with exponential backoff. Non-retryable errors raise immediately.

        Args:
            method: HTTP method
            endpoint: Endpoint path (relative to base_url)
            params: Query parameters

        Returns:
            The successful (status < 400) response

        Raises:
            RemoteServiceError: If request fails after all retries
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        # Ensure endpoint starts with /
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"

        last_error: RemoteServiceError | None = None

        for attempt in range(_MAX_RETRIES + 1):
            # Rate limit before each attempt
            await self._rate_limiter.acquire()

            logger.debug(
                "%s %s%s params=%s (attempt %d/%d)",
                method, self.base_url, endpoint, params, attempt + 1, _MAX_RETRIES + 1,
            )

            try:
                response = await self._client.request(
                    method=method,
                    url=endpoint,
                    params=params,
                )
            except httpx.TimeoutException as e:
                last_error = RemoteServiceError(f"Request timeout: {e}")
                kind = "Timeout"
            except httpx.NetworkError as e:
                last_error = RemoteServiceError(f"Network error: {e}")
                kind = "Network error"
            except httpx.HTTPError as e:
                logger.error("Unexpected error for %s: %s", endpoint, e)
                raise RemoteServiceError(f"Unexpected error: {e}") from e
            else:
                logger.debug("Response: %d for %s", response.status_code, endpoint)

                if response.status_code < 400:
                    return response

                error_body = response.text[:500]
                last_error = RemoteServiceError(
                    message=f"Request failed: {response.status_code}",
                    status_code=response.status_code,
                    response_body=error_body,
                )
                if response.status_code not in _RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Server error: %d %s - %s",
                        response.status_code, endpoint, error_body,
                    )
                    raise last_error
                kind = f"Retryable {response.status_code}"

            if attempt < _MAX_RETRIES:
                backoff = _BASE_BACKOFF * (2 ** attempt)
                logger.warning(
                    "%s for %s, retrying in %.1fs (attempt %d/%d)",
                    kind, endpoint, backoff, attempt + 1, _MAX_RETRIES + 1,
                )
                await asyncio.sleep(backoff)

        # Exhausted retries
        logger.error("Giving up on %s: %s", endpoint, last_error)
        raise last_error or RemoteServiceError("Request failed after retries")

    async def get_json(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET ``endpoint`` and parse the JSON body."""
        response = await self._send("GET", endpoint, params=params)
        try:
            return response.json()
        except ValueError as e:
            logger.error("Failed to parse JSON response: %s", e)
            raise RemoteServiceError(
                message=f"Invalid JSON response: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e

    async def get_bytes(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> bytes:
        """GET ``endpoint`` and return the raw body."""
        response = await self._send("GET", endpoint, params=params)
        return response.content
