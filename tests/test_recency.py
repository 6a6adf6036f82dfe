"""
Tests for the Recency audit.

These tests verify:
- Freshness from headers, meta tags, JSON-LD, <time> and free text
- Last-Modified header precedence
- Canonical URL stability rules
"""

from datetime import datetime, timedelta

import pytest

from aisearch.audit import recency
from aisearch.audit.base import parse_html
from aisearch.audit.recency import (
    check_last_modified,
    check_stable_canonical,
    is_fresh,
    is_stable_canonical,
    parse_date,
)

from conftest import NOW, make_ctx


def _http_date(moment: datetime) -> str:
    return moment.strftime("%a, %d %b %Y %H:%M:%S GMT")


# =============================================================================
# LAST MODIFIED
# =============================================================================

class TestLastModified:
    """Test freshness signals."""

    def test_fresh_header(self):
        headers = {"Last-Modified": _http_date(NOW - timedelta(days=10))}
        assert check_last_modified(parse_html("<body></body>"), headers, NOW) == 5

    def test_stale_header_wins_over_fresh_meta(self):
        soup = parse_html(
            '<head><meta property="article:modified_time" content="2026-09-20T00:00:00Z"></head>'
        )
        headers = {"last-modified": "Mon, 06 Jan 2020 10:00:00 GMT"}
        assert check_last_modified(soup, headers, NOW) == 0

    def test_unparseable_header_falls_back_to_page(self):
        soup = parse_html('<body><time datetime="2026-09-28">Sep 28</time></body>')
        assert check_last_modified(soup, {"Last-Modified": "not a date"}, NOW) == 5

    def test_json_ld_date_modified(self):
        soup = parse_html(
            '<script type="application/ld+json">{"@type": "Article", "dateModified": "2026-08-30"}</script>'
        )
        assert check_last_modified(soup, None, NOW) == 5

    def test_free_text_updated_label(self):
        soup = parse_html("<body><p>Last updated: September 3, 2026</p></body>")
        assert check_last_modified(soup, {}, NOW) == 5

    def test_date_class_element(self):
        soup = parse_html('<body><span class="post-date">2026-09-01</span></body>')
        assert check_last_modified(soup, {}, NOW) == 5

    def test_old_dates_score_zero(self):
        soup = parse_html(
            '<head><meta property="article:published_time" content="2022-01-15T00:00:00Z"></head>'
            "<body><p>Published: January 15, 2022</p></body>"
        )
        assert check_last_modified(soup, {}, NOW) == 0

    def test_no_signal_scores_zero(self):
        assert check_last_modified(parse_html("<body><p>Hello</p></body>"), {}, NOW) == 0

    def test_freshness_window(self):
        assert is_fresh(NOW - timedelta(days=89), NOW)
        assert not is_fresh(NOW - timedelta(days=91), NOW)
        assert not is_fresh(NOW + timedelta(days=10), NOW)

    def test_parse_date_is_utc_aware(self):
        parsed = parse_date("2026-09-01")
        assert parsed.tzinfo is not None
        assert parse_date("garbage") is None
        assert parse_date("") is None

    @pytest.mark.parametrize("text", ["3", "October", "Monday", "2026", "Oct 3"])
    def test_partial_dates_are_rejected(self, text):
        assert parse_date(text) is None

    def test_month_and_year_is_enough(self):
        parsed = parse_date("September 2026")
        assert (parsed.year, parsed.month, parsed.day) == (2026, 9, 1)

    @pytest.mark.parametrize("markup", [
        '<div class="updated">3</div>',
        '<span class="post-date">October</span>',
        '<span class="date">Monday</span>',
        "<p>Updated: October, stay tuned</p>",
    ])
    def test_partial_dates_earn_nothing(self, markup):
        soup = parse_html(f"<body>{markup}</body>")
        assert check_last_modified(soup, {}, NOW) == 0


# =============================================================================
# CANONICAL
# =============================================================================

class TestStableCanonical:
    """Test canonical URL stability."""

    @pytest.mark.parametrize("canonical,expected", [
        ("https://x.com/a?id=1&session=abc", False),
        ("https://x.com/a", True),
        ("https://x.com/a?utm_source=newsletter&utm_medium=email", True),
        ("https://x.com/session=abc123/a", False),
        ("https://x.com/a/1700000000000", False),
        ("https://x.com/a;jsessionid=ABC123", False),
        ("ftp://x.com/a", False),
    ])
    def test_is_stable_canonical(self, canonical, expected):
        assert is_stable_canonical(canonical) is expected

    def test_query_canonical_scores_zero(self):
        soup = parse_html('<head><link rel="canonical" href="https://x.com/a?id=1&session=abc"></head>')
        assert check_stable_canonical(soup, "https://x.com/a") == 0

    def test_relative_canonical_resolves(self):
        soup = parse_html('<head><link rel="canonical" href="/guides/ai-search"></head>')
        assert check_stable_canonical(soup, "https://x.com/guides/ai-search?ref=home") == 5

    def test_missing_canonical_scores_zero(self):
        assert check_stable_canonical(parse_html("<head></head>"), "https://x.com/a") == 0


# =============================================================================
# PILLAR
# =============================================================================

class TestRecencyPillar:
    """Test the pillar as a whole."""

    def test_article_fixture(self, article_html, ctx):
        result = recency.run(article_html, {}, ctx, now=NOW)
        assert result.checks == {"last_modified": 5, "stable_canonical": 5}

    def test_naive_now_is_treated_as_utc(self, article_html, ctx):
        result = recency.run(article_html, None, ctx, now=NOW.replace(tzinfo=None))
        assert result.checks["last_modified"] == 5

    def test_article_goes_stale(self, article_html, ctx):
        later = NOW + timedelta(days=120)
        assert recency.run(article_html, {}, ctx, now=later).checks["last_modified"] == 0

    def test_empty_document(self):
        result = recency.run("", None, make_ctx(), now=NOW)
        assert result.earned == 0
