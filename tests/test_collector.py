"""
Tests for the page fetcher and outbound probes.

HTTP is served by httpx.MockTransport.
"""

import httpx
import pytest

from aisearch.collector import (
    DNSResolutionError,
    FetchError,
    FetchTimeoutError,
    NetworkError,
    PageFetcher,
    ProbeClient,
    RetryConfig,
)

NO_WAIT = RetryConfig(max_retries=2, initial_delay=0, max_delay=0)


def mock_client(handler, follow_redirects=True):
    calls = []

    def counting_handler(request):
        calls.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(counting_handler), follow_redirects=follow_redirects)
    return client, calls


# =============================================================================
# PAGE FETCHER
# =============================================================================

class TestPageFetcher:
    """Test page download and error classification."""

    @pytest.mark.asyncio
    async def test_fetch_follows_redirects(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://example.com/new"})
            return httpx.Response(200, html="<html><body>New</body></html>", headers={"Last-Modified": "x"})

        client, _ = mock_client(handler)
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        page = await fetcher.fetch("https://example.com/old")

        assert page.status == 200
        assert page.final_url == "https://example.com/new"
        assert "New" in page.html
        assert page.headers["last-modified"] == "x"
        assert page.ok
        await client.aclose()

    @pytest.mark.asyncio
    async def test_4xx_is_returned(self):
        client, calls = mock_client(lambda request: httpx.Response(404, html="<p>Not found</p>"))
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        page = await fetcher.fetch("https://example.com/missing")

        assert page.status == 404
        assert not page.ok
        assert len(calls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_persistent_5xx_raises_after_retries(self):
        client, calls = mock_client(lambda request: httpx.Response(503))
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("https://example.com/")

        assert exc_info.value.status_code == 503
        assert len(calls) == 3
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_retryable_5xx_raises_at_once(self):
        client, calls = mock_client(lambda request: httpx.Response(501))
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        with pytest.raises(FetchError):
            await fetcher.fetch("https://example.com/")
        assert len(calls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_recovers_after_transient_error(self):
        responses = [httpx.Response(502), httpx.Response(200, html="<p>ok</p>")]
        client, calls = mock_client(lambda request: responses.pop(0))
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        page = await fetcher.fetch("https://example.com/")

        assert page.status == 200
        assert len(calls) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self):
        responses = [httpx.Response(429), httpx.Response(200, html="<p>ok</p>")]
        client, calls = mock_client(lambda request: responses.pop(0))
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        page = await fetcher.fetch("https://example.com/")

        assert page.status == 200
        assert len(calls) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_persistent_rate_limit_is_returned(self):
        client, calls = mock_client(lambda request: httpx.Response(429, html="<p>Slow down</p>"))
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        page = await fetcher.fetch("https://example.com/")

        assert page.status == 429
        assert not page.ok
        assert len(calls) == 3
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        client, calls = mock_client(handler)
        fetcher = PageFetcher(http_client=client, retry_config=RetryConfig(max_retries=1, initial_delay=0))

        with pytest.raises(FetchTimeoutError):
            await fetcher.fetch("https://example.com/")
        assert len(calls) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_dns_failure_is_not_retried(self):
        def handler(request):
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)

        client, calls = mock_client(handler)
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        with pytest.raises(DNSResolutionError):
            await fetcher.fetch("https://no-such-host.example/")
        assert len(calls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_refused_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        client, _ = mock_client(handler)
        fetcher = PageFetcher(http_client=client, retry_config=NO_WAIT)

        with pytest.raises(NetworkError):
            await fetcher.fetch("https://example.com/")
        await client.aclose()


# =============================================================================
# PROBES
# =============================================================================

class TestProbeClient:
    """Test TTFB and text probes."""

    @pytest.mark.asyncio
    async def test_measure_ttfb(self):
        async def body():
            yield b"<html>"
            yield b"</html>"

        client, _ = mock_client(lambda request: httpx.Response(200, content=body()), follow_redirects=False)
        probes = ProbeClient(http_client=client)

        ttfb_ms = await probes.measure_ttfb("https://example.com/")

        assert ttfb_ms is not None
        assert ttfb_ms >= 0
        await client.aclose()

    @pytest.mark.asyncio
    async def test_measure_ttfb_with_buffered_body(self):
        client, _ = mock_client(lambda request: httpx.Response(200, content=b"<html></html>"), follow_redirects=False)
        probes = ProbeClient(http_client=client)
        assert await probes.measure_ttfb("https://example.com/") is not None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_ttfb_follows_redirects_itself(self):
        async def body():
            yield b"ok"

        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://example.com/new"})
            return httpx.Response(200, content=body())

        client, calls = mock_client(handler, follow_redirects=False)
        probes = ProbeClient(http_client=client)

        assert await probes.measure_ttfb("https://example.com/old") is not None
        assert [c.url.path for c in calls] == ["/old", "/new"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_url_is_none(self):
        def handler(request):
            raise httpx.InvalidURL("Invalid port")

        client, _ = mock_client(handler, follow_redirects=False)
        probes = ProbeClient(http_client=client)
        assert await probes.measure_ttfb("https://example.com/") is None
        assert await probes.fetch_text("https://example.com/llms.txt") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_ttfb_non_200_is_none(self):
        client, _ = mock_client(lambda request: httpx.Response(500), follow_redirects=False)
        probes = ProbeClient(http_client=client)
        assert await probes.measure_ttfb("https://example.com/") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_ttfb_network_error_is_none(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client, _ = mock_client(handler, follow_redirects=False)
        probes = ProbeClient(http_client=client)
        assert await probes.measure_ttfb("https://example.com/") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_text(self):
        client, _ = mock_client(lambda request: httpx.Response(200, text="# Example\n"), follow_redirects=False)
        probes = ProbeClient(http_client=client)
        assert await probes.fetch_text("https://example.com/llms.txt") == "# Example\n"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_text_does_not_follow_redirects(self):
        def handler(request):
            if request.url.path == "/llms.txt":
                return httpx.Response(302, headers={"Location": "https://example.com/"})
            return httpx.Response(200, text="<html>home</html>")

        client, calls = mock_client(handler, follow_redirects=False)
        probes = ProbeClient(http_client=client)

        assert await probes.fetch_text("https://example.com/llms.txt") is None
        assert len(calls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_text_error_is_none(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = mock_client(handler, follow_redirects=False)
        probes = ProbeClient(http_client=client)
        assert await probes.fetch_text("https://example.com/robots.txt", kind="robots_txt") is None
        await client.aclose()
