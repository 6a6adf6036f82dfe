"""
Tests for the Retrieval audit.

These tests verify:
- TTFB scoring bands (field and synthetic)
- Field data preference with synthetic fallback
- Paywall, main content and HTML size checks
- llms.txt with robots.txt partial credit
"""

import pytest

from aisearch.audit import retrieval
from aisearch.audit.base import parse_html
from aisearch.audit.retrieval import (
    check_html_size,
    detect_paywall,
    measure_main_content,
    score_field_ttfb,
    score_synthetic_ttfb,
)
from aisearch.models import DataSourceType, Pillar

from conftest import FakeFieldClient, FakeProbes, field_result, make_ctx


# =============================================================================
# TTFB BANDS
# =============================================================================

class TestTtfbBands:
    """Test TTFB point bands."""

    @pytest.mark.parametrize("ttfb_ms,expected", [
        (120, 5),
        (199.9, 5),
        (200, 4),
        (499, 4),
        (650, 2),
        (1500, 1),
        (2000, 0),
        (None, 0),
    ])
    def test_synthetic_bands(self, ttfb_ms, expected):
        assert score_synthetic_ttfb(ttfb_ms) == expected

    def test_good_field_rating_always_full_points(self):
        assert score_field_ttfb(790, "good") == 5
        assert score_field_ttfb(100, "good") == 5

    def test_needs_improvement_split_at_1200ms(self):
        assert score_field_ttfb(1100, "needs-improvement") == 3
        assert score_field_ttfb(1500, "needs-improvement") == 2

    def test_poor_split_at_3000ms(self):
        assert score_field_ttfb(2500, "poor") == 1
        assert score_field_ttfb(3500, "poor") == 0


# =============================================================================
# TTFB SOURCE SELECTION
# =============================================================================

class TestTtfbSource:
    """Test field data preference and synthetic fallback."""

    @pytest.mark.asyncio
    async def test_field_needs_improvement_1500ms_scores_2(self, article_html, article_url):
        ctx = make_ctx()
        probes = FakeProbes(ttfb_ms=100)
        field_client = FakeFieldClient(field_result(ttfb=1500))

        result = await retrieval.run(article_html, article_url, ctx, probes, field_client)

        assert result.checks["ttfb"] == 2
        assert ctx.ttfb_source == DataSourceType.FIELD
        assert ctx.field_rating == "needs-improvement"
        assert ("ttfb", article_url) not in probes.calls

    @pytest.mark.asyncio
    async def test_no_field_data_falls_back_to_probe(self, article_html, article_url):
        ctx = make_ctx()
        probes = FakeProbes(ttfb_ms=350)

        result = await retrieval.run(article_html, article_url, ctx, probes, FakeFieldClient())

        assert result.checks["ttfb"] == 4
        assert ctx.ttfb_source == DataSourceType.SYNTHETIC
        assert ctx.ttfb_ms == 350
        assert ctx.data_sources[-1].metric == "ttfb"

    @pytest.mark.asyncio
    async def test_field_client_error_falls_back_to_probe(self, article_html, article_url):
        ctx = make_ctx()
        field_client = FakeFieldClient(error=RuntimeError("provider down"))

        result = await retrieval.run(article_html, article_url, ctx, FakeProbes(ttfb_ms=150), field_client)

        assert result.checks["ttfb"] == 5
        assert ctx.ttfb_source == DataSourceType.SYNTHETIC

    @pytest.mark.asyncio
    async def test_probe_timeout_scores_zero(self, article_html, article_url):
        ctx = make_ctx()
        result = await retrieval.run(article_html, article_url, ctx, FakeProbes(ttfb_ms=None))
        assert result.checks["ttfb"] == 0
        assert ctx.data_sources[-1].success is False

    @pytest.mark.asyncio
    async def test_probe_exception_is_a_signal_miss(self, article_html, article_url):
        ctx = make_ctx()
        probes = FakeProbes(error=RuntimeError("socket closed"))

        result = await retrieval.run(article_html, article_url, ctx, probes)

        assert result.checks["ttfb"] == 0
        assert [m.metric for m in ctx.signal_misses] == ["ttfb"]
        assert ctx.signal_misses[0].pillar == Pillar.RETRIEVAL


# =============================================================================
# CONTENT CHECKS
# =============================================================================

class TestRetrievalContent:
    """Test paywall, main content and HTML size."""

    @pytest.mark.asyncio
    async def test_accessible_page_scores_full_on_content_checks(self, article_html, article_url, probes):
        ctx = make_ctx()
        result = await retrieval.run(article_html, article_url, ctx, probes)

        assert result.checks["paywall"] == 5
        assert result.checks["main_content"] == 5
        assert result.checks["html_size"] == 5
        assert result.checks["llms_txt_file"] == 5
        assert ctx.has_llms_txt is True
        assert ctx.main_content_ratio >= 0.7

    def test_paywall_detected_with_phrase_and_markup(self):
        soup = parse_html(
            "<html><head><title>Exclusive story</title></head><body><article>"
            "<p>The first paragraph of the story.</p>"
            '<div class="paywall">Subscribe to read more of this story.</div>'
            "</article></body></html>"
        )
        assert detect_paywall(soup) is True

    def test_phrase_without_paywall_markup_is_not_a_paywall(self):
        soup = parse_html("<body><p>Already a subscriber? Welcome back.</p></body>")
        assert detect_paywall(soup) is False

    def test_corporate_pages_are_never_paywalled(self):
        soup = parse_html(
            "<body><h1>Pricing</h1><p>Subscribe to read more.</p>"
            '<div class="paywall">locked</div></body>'
        )
        assert detect_paywall(soup) is False

    def test_locked_content_tier_meta(self):
        soup = parse_html(
            '<head><meta property="article:content_tier" content="locked"></head>'
            "<body><p>Story text.</p></body>"
        )
        assert detect_paywall(soup) is True

    def test_small_main_container_scores_zero(self):
        filler = " ".join(["word"] * 400)
        html = f"<body><main><p>short intro text</p></main><div><p>{filler}</p></div></body>"
        ratio, selector = measure_main_content(html)
        assert ratio < 0.7
        assert selector == "main"

    def test_navigation_is_excluded_from_main_content_ratio(self):
        html = (
            "<body><nav>" + " ".join(["menu"] * 300) + "</nav>"
            "<main><p>" + " ".join(["content"] * 100) + "</p></main></body>"
        )
        ratio, _ = measure_main_content(html)
        assert ratio == 1.0

    def test_empty_page_has_no_main_content(self):
        assert measure_main_content("") == (0.0, None)

    def test_html_over_2mb_scores_zero(self):
        ctx = make_ctx()
        html = "<html><body>" + "a" * (2049 * 1024) + "</body></html>"
        assert check_html_size(html, ctx) == 0
        assert ctx.html_size_bytes > 2048 * 1024


# =============================================================================
# LLMS.TXT
# =============================================================================

class TestLlmsTxt:
    """Test llms.txt detection with robots.txt partial credit."""

    @pytest.mark.asyncio
    async def test_robots_ai_rules_give_partial_credit(self, article_html, article_url):
        ctx = make_ctx()
        probes = FakeProbes(texts={"robots_txt": "User-agent: GPTBot\nDisallow: /private"})

        result = await retrieval.run(article_html, article_url, ctx, probes)

        assert result.checks["llms_txt_file"] == 2
        assert ctx.robots_mentions_ai is True

    @pytest.mark.asyncio
    async def test_no_llms_txt_and_plain_robots_scores_zero(self, article_html, article_url):
        ctx = make_ctx()
        probes = FakeProbes(texts={"robots_txt": "User-agent: *\nDisallow:"})

        result = await retrieval.run(article_html, article_url, ctx, probes)

        assert result.checks["llms_txt_file"] == 0

    @pytest.mark.asyncio
    async def test_probes_target_domain_root(self, article_html, article_url):
        probes = FakeProbes()
        await retrieval.run(article_html, article_url, make_ctx(), probes)

        assert ("llms_txt", "https://example.com/llms.txt") in probes.calls
        assert ("robots_txt", "https://example.com/robots.txt") in probes.calls

    @pytest.mark.asyncio
    async def test_blank_llms_txt_does_not_count(self, article_html, article_url):
        probes = FakeProbes(texts={"llms_txt": "   \n"})
        result = await retrieval.run(article_html, article_url, make_ctx(), probes)
        assert result.checks["llms_txt_file"] == 0
