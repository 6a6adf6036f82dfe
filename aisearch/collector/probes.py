"""
Outbound Probes

Short-timeout requests made during the Retrieval audit: a TTFB timing
probe against the page and plain-text fetches of /llms.txt and
/robots.txt. Probes never raise; failures come back as None.
"""

import logging
import time
from typing import Optional

import httpx

from aisearch.utils.config import get_settings

logger = logging.getLogger(__name__)


class ProbeClient:
    """
    Usage:
        probes = ProbeClient()
        ttfb_ms = await probes.measure_ttfb("https://example.com")
        llms_txt = await probes.fetch_text("https://example.com/llms.txt", kind="llms_txt")
        await probes.close()
    """

    TTFB_MAX_REDIRECTS = 2

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, user_agent: Optional[str] = None):
        settings = get_settings()
        self.timeouts = {
            "ttfb": settings.TIMEOUT_TTFB_PROBE,
            "llms_txt": settings.TIMEOUT_LLMS_TXT,
            "robots_txt": settings.TIMEOUT_ROBOTS_TXT,
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={"User-Agent": user_agent or settings.USER_AGENT},
            timeout=httpx.Timeout(settings.TIMEOUT_TTFB_PROBE),
        )

    async def measure_ttfb(self, url: str) -> Optional[float]:
        """Milliseconds until the first body byte of a 200 response."""
        timeout = self.timeouts["ttfb"]
        started = time.perf_counter()
        try:
            request = self._client.build_request("GET", url, timeout=timeout)
            response = await self._client.send(request, stream=True, follow_redirects=False)
            redirects = 0
            while response.is_redirect and redirects < self.TTFB_MAX_REDIRECTS:
                await response.aclose()
                next_request = response.next_request
                if next_request is None:
                    break
                response = await self._client.send(next_request, stream=True, follow_redirects=False)
                redirects += 1

            try:
                if response.status_code != 200:
                    logger.debug(f"TTFB probe for {url} got status {response.status_code}")
                    return None
                async for _ in response.aiter_bytes():
                    break
                ttfb_ms = round((time.perf_counter() - started) * 1000, 1)
            finally:
                await response.aclose()
        except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL) as e:
            logger.debug(f"TTFB probe failed for {url}: {type(e).__name__}: {e}")
            return None

        logger.debug(f"Synthetic TTFB for {url}: {ttfb_ms}ms")
        return ttfb_ms

    async def fetch_text(self, url: str, kind: str = "llms_txt") -> Optional[str]:
        """Body of a 200 response without following redirects, else None."""
        try:
            response = await self._client.get(
                url,
                timeout=self.timeouts.get(kind, self.timeouts["llms_txt"]),
                follow_redirects=False,
            )
        except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL) as e:
            logger.debug(f"Probe {kind} failed for {url}: {type(e).__name__}: {e}")
            return None

        if response.status_code != 200:
            return None
        return response.text

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
