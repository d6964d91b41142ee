"""HTTP plumbing shared by the WikiTree and WikiTree+ clients."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from ..net import LIMITERS, AsyncRateLimiter, RateLimitConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
RETRY_ATTEMPTS = 3


# =============================================================================
# Exceptions
# =============================================================================

class WikiTreeError(Exception):
    """Base exception for WikiTree errors."""


class WikiTreeAPIError(WikiTreeError):
    """Raised when a request fails, returns a non-2xx status, or is not JSON."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(WikiTreeAPIError):
    """Raised when the server keeps answering 429 after retries."""


def _is_transient(exc: BaseException) -> bool:
    """Transport failures, 429 and 5xx are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class BaseClient:
    """Owns an ``httpx.AsyncClient`` and sends paced, retried JSON requests.

    A client passed in by the caller is used as-is and left open on ``close``.
    """

    name: str = "base"
    base_url: str = ""
    error_class: type[WikiTreeAPIError] = WikiTreeAPIError

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        rate_limit: RateLimitConfig | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout
        self._limiter = AsyncRateLimiter(rate_limit) if rate_limit else LIMITERS.get(self.name)
        self.request_count = 0

    def _default_headers(self) -> dict[str, str]:
        return {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=self._default_headers())
        return self._client

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and decode the JSON body.

        Raises:
            RateLimitError: HTTP 429 on every attempt
            WikiTreeAPIError: Any other failure (``error_class`` for subclasses)
        """
        client = self._get_client()

        @retry(
            reraise=True,
            stop=stop_after_attempt(RETRY_ATTEMPTS),
            wait=wait_exponential_jitter(initial=0.5, max=4.0),
            retry=retry_if_exception(_is_transient),
        )
        async def _do() -> httpx.Response:
            await self._limiter.acquire()
            self.request_count += 1
            resp = await client.request(method, url, params=params, data=data)
            resp.raise_for_status()
            return resp

        try:
            resp = await _do()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("%s HTTP error %d for %s", self.name, status, url)
            if status == 429:
                raise RateLimitError(f"{self.name} rate limit exceeded", status_code=status) from e
            raise self.error_class(f"{self.name} returned HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            logger.warning("%s request failed: %s", self.name, e)
            raise self.error_class(f"{self.name} request failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise self.error_class(f"{self.name} returned malformed JSON", status_code=resp.status_code) from e

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> BaseClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        await self.close()
        return False
