"""
Page Fetcher

Async HTTP client for downloading the page under analysis:
- Realistic browser User-Agent
- Up to 5 redirects
- Automatic retry with exponential backoff on timeouts and 5xx
- 4xx responses are returned, not raised
- Timeout, DNS and other network failures raise distinct errors
"""

import asyncio
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from aisearch.utils.config import get_settings

logger = logging.getLogger(__name__)

DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated",
)


class FetchError(Exception):
    """Raised when the page under analysis cannot be retrieved."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FetchTimeoutError(FetchError):
    """The server did not answer within the timeout."""


class DNSResolutionError(FetchError):
    """The host name could not be resolved."""


class NetworkError(FetchError):
    """Connection refused, reset, TLS failure or too many redirects."""


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 2
    initial_delay: float = 0.5
    max_delay: float = 4.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


@dataclass
class FetchResult:
    """Downloaded page."""
    url: str
    final_url: str
    status: int
    html: str
    headers: Dict[str, str] = field(default_factory=dict)
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _is_dns_failure(error: Exception) -> bool:
    cause = error.__cause__ or error.__context__
    while cause is not None:
        if isinstance(cause, socket.gaierror):
            return True
        cause = cause.__cause__ or cause.__context__
    message = str(error).lower()
    return any(marker in message for marker in DNS_FAILURE_MARKERS)


def classify_http_error(error: httpx.HTTPError, url: str) -> FetchError:
    """Translate an httpx error into the matching FetchError."""
    if isinstance(error, httpx.TimeoutException):
        return FetchTimeoutError(f"Timed out fetching {url}", url=url)
    if isinstance(error, httpx.ConnectError) and _is_dns_failure(error):
        return DNSResolutionError(f"Could not resolve host for {url}", url=url)
    if isinstance(error, httpx.TooManyRedirects):
        return NetworkError(f"Too many redirects for {url}", url=url)
    return NetworkError(f"Network error fetching {url}: {error}", url=url)


class PageFetcher:
    """
    Async page fetcher.

    Usage:
        fetcher = PageFetcher()
        page = await fetcher.fetch("https://example.com/blog/post")
        await fetcher.close()
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        user_agent: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.retry_config = retry_config or RetryConfig()

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={
                "User-Agent": user_agent or settings.USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            },
            follow_redirects=True,
            max_redirects=max_redirects or settings.MAX_REDIRECTS,
            timeout=httpx.Timeout(timeout or settings.TIMEOUT_PAGE_FETCH),
        )

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a page.

        Returns:
            FetchResult for any status below 500. A 429 is retried first.

        Raises:
            FetchError: On timeout, DNS or network failure, or persistent 5xx
        """
        last_exception: Optional[FetchError] = None
        delay = self.retry_config.initial_delay

        for attempt in range(self.retry_config.max_retries + 1):
            retries_left = attempt < self.retry_config.max_retries
            try:
                page = await self._fetch_once(url)
            except FetchError as e:
                last_exception = e
                if isinstance(e, DNSResolutionError):
                    raise
                if e.status_code and e.status_code not in self.retry_config.retryable_status_codes:
                    raise

                if retries_left:
                    logger.warning(
                        f"Fetch failed (attempt {attempt + 1}/{self.retry_config.max_retries + 1}): {e}. "
                        f"Retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * self.retry_config.exponential_base, self.retry_config.max_delay)
                continue

            # Retryable 4xx (429) is retried, then returned as the page
            if page.status in self.retry_config.retryable_status_codes and retries_left:
                logger.warning(
                    f"Got {page.status} for {url} (attempt {attempt + 1}/{self.retry_config.max_retries + 1}). "
                    f"Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
                delay = min(delay * self.retry_config.exponential_base, self.retry_config.max_delay)
                continue
            return page

        raise last_exception

    async def _fetch_once(self, url: str) -> FetchResult:
        logger.debug(f"GET {url}")
        started = time.perf_counter()
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise classify_http_error(e, url) from e

        if response.status_code >= 500:
            raise FetchError(
                f"Server error {response.status_code} fetching {url}",
                url=url,
                status_code=response.status_code,
            )

        return FetchResult(
            url=url,
            final_url=str(response.url),
            status=response.status_code,
            html=response.text,
            headers={k.lower(): v for k, v in response.headers.items()},
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
