"""
Retrieval Audit (25 points)

Can an AI crawler fetch and isolate the content of the page?

Checks:
- ttfb:          Time to first byte, field data first, synthetic probe fallback
- paywall:       No paywall or auth wall
- main_content:  Primary content container holds >= 70% of page text
- html_size:     HTML document <= 2 MB
- llms_txt_file: /llms.txt present (partial credit for AI rules in robots.txt)
"""

import asyncio
import logging
import re
from typing import Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from aisearch.models import DataSourceType, DiagnosticContext, Pillar, PillarResult
from .base import clean_soup, count_words, meta_content, parse_html, run_check, text_of

logger = logging.getLogger(__name__)

PILLAR = Pillar.RETRIEVAL

MAX_HTML_SIZE_KB = 2048
MAIN_CONTENT_THRESHOLD = 0.70

# Corporate/product pages are never treated as paywalled
CORPORATE_INDICATORS = [
    "payment", "payments", "checkout", "merchant", "api", "sdk",
    "enterprise", "business", "company", "about us", "careers",
    "contact us", "our team", "our mission", "products", "services",
    "solutions", "platform", "features", "pricing", "customers",
]

CONTENT_RESTRICTION_PHRASES = [
    "to continue reading",
    "subscribers only",
    "members only",
    "sign in to view",
    "create account to read",
    "premium content",
    "unlock this article",
    "already a subscriber",
    "subscribe to read more",
    "limited articles remaining",
]

PAYWALL_SELECTORS = (
    ".paywall, #paywall, [data-paywall], .subscription-required, "
    ".members-only, .premium-content, .locked-content"
)

MAIN_CONTENT_SELECTORS = [
    "main",
    "article",
    "[role=main]",
    "#content",
    ".content",
    "#main-content",
    ".main-content",
    "#main",
    ".main",
    ".post-content",
    ".entry-content",
    ".article-body",
    ".story-body",
    ".mw-parser-output",
    ".markdown-body",
    ".prose",
    ".page-content",
    ".site-content",
]

AI_CRAWLER_RULE = re.compile(
    r"User-agent:\s*(GPTBot|ChatGPT|OAI-SearchBot|ClaudeBot|anthropic-ai|"
    r"PerplexityBot|Google-Extended|CCBot)",
    re.IGNORECASE,
)

_CORPORATE_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(i) for i in CORPORATE_INDICATORS) + r")\b"
)


# =============================================================================
# SCORING BANDS
# =============================================================================


def score_field_ttfb(ttfb_ms: float, rating: str) -> int:
    """TTFB points from a field-data p75 and its rating."""
    if rating == "good":
        return 5
    if rating == "needs-improvement":
        return 3 if ttfb_ms < 1200 else 2
    return 1 if ttfb_ms < 3000 else 0


def score_synthetic_ttfb(ttfb_ms: Optional[float]) -> int:
    """TTFB points from a single timing probe."""
    if ttfb_ms is None:
        return 0
    if ttfb_ms < 200:
        return 5
    if ttfb_ms < 500:
        return 4
    if ttfb_ms < 1000:
        return 2
    if ttfb_ms < 2000:
        return 1
    return 0


# =============================================================================
# CHECKS
# =============================================================================


def check_html_size(html: str, ctx: DiagnosticContext) -> int:
    size_bytes = len((html or "").encode("utf-8"))
    ctx.html_size_bytes = size_bytes
    return 5 if size_bytes / 1024 <= MAX_HTML_SIZE_KB else 0


def detect_paywall(soup: BeautifulSoup) -> bool:
    body_text = text_of(soup.body or soup).lower()
    title = text_of(soup.find("title")).lower()

    if _CORPORATE_PATTERN.search(body_text) or _CORPORATE_PATTERN.search(title):
        return False

    restricted = any(phrase in body_text for phrase in CONTENT_RESTRICTION_PHRASES)
    if restricted:
        restricted = bool(soup.select(PAYWALL_SELECTORS))

    locked_meta = (
        (meta_content(soup, property="article:content_tier") or "").lower() == "locked"
        or (meta_content(soup, name="access") or "").lower() == "subscription"
    )
    return restricted or locked_meta


def check_paywall(soup: BeautifulSoup, ctx: DiagnosticContext) -> int:
    ctx.paywall_detected = detect_paywall(soup)
    return 0 if ctx.paywall_detected else 5


def measure_main_content(html: str) -> Tuple[float, Optional[str]]:
    """
    Best main-content ratio across known content containers.

    Noise (scripts, navigation, header/footer, ads) is stripped before
    counting. Nested matches of the same selector are counted once.

    Returns:
        (ratio, selector) - ratio in [0, 1], selector None if nothing matched
    """
    soup = clean_soup(html)
    total_words = count_words(text_of(soup.body or soup))
    if total_words == 0:
        return 0.0, None

    best_ratio, best_selector = 0.0, None
    for selector in MAIN_CONTENT_SELECTORS:
        matches = soup.select(selector)
        if not matches:
            continue
        matched_ids = {id(m) for m in matches}
        outermost = [m for m in matches if not any(id(p) in matched_ids for p in m.parents)]
        words = sum(count_words(text_of(m)) for m in outermost)
        ratio = min(1.0, words / total_words)
        if ratio > best_ratio:
            best_ratio, best_selector = ratio, selector
            if ratio >= MAIN_CONTENT_THRESHOLD:
                break

    return best_ratio, best_selector


def check_main_content(html: str, ctx: DiagnosticContext) -> int:
    ratio, selector = measure_main_content(html)
    ctx.main_content_ratio = ratio
    ctx.main_content_selector = selector
    logger.debug(f"Main content ratio for {ctx.url}: {ratio:.2f} via {selector}")
    return 5 if ratio >= MAIN_CONTENT_THRESHOLD else 0


async def check_ttfb(url: str, ctx: DiagnosticContext, probes, field_client=None) -> int:
    """Field data first, then a synthetic probe. Never raises."""
    try:
        if field_client is not None:
            try:
                field = await field_client.fetch_field_data(url)
            except Exception as e:
                logger.warning(f"Field data lookup failed for {url}: {e}")
                field = None

            metrics = field.metrics if field is not None and field.has_data else None
            if metrics is not None and metrics.ttfb is not None:
                rating = getattr(metrics.ttfb_rating, "value", metrics.ttfb_rating)
                ctx.record_ttfb(metrics.ttfb, DataSourceType.FIELD)
                ctx.field_rating = rating
                ctx.field_metrics = metrics
                ctx.add_data_source(DataSourceType.FIELD, "ttfb", value=metrics.ttfb, rating=rating)
                return score_field_ttfb(metrics.ttfb, rating)

        ttfb_ms = await probes.measure_ttfb(url)
        ctx.record_ttfb(ttfb_ms, DataSourceType.SYNTHETIC)
        ctx.add_data_source(DataSourceType.SYNTHETIC, "ttfb", success=ttfb_ms is not None, value=ttfb_ms)
        return score_synthetic_ttfb(ttfb_ms)
    except Exception as e:
        ctx.record_miss(PILLAR, "ttfb", e)
        return 0


async def check_llms_txt(url: str, ctx: DiagnosticContext, probes) -> int:
    """5 for /llms.txt, 2 for AI crawler rules in robots.txt. Never raises."""
    try:
        llms_txt = await probes.fetch_text(urljoin(url, "/llms.txt"), kind="llms_txt")
        if llms_txt and llms_txt.strip():
            ctx.has_llms_txt = True
            return 5

        robots_txt = await probes.fetch_text(urljoin(url, "/robots.txt"), kind="robots_txt")
        if robots_txt and AI_CRAWLER_RULE.search(robots_txt):
            ctx.robots_mentions_ai = True
            return 2
        return 0
    except Exception as e:
        ctx.record_miss(PILLAR, "llms_txt_file", e)
        return 0


# =============================================================================
# ENTRY POINT
# =============================================================================


async def run(html: str, url: str, ctx: DiagnosticContext, probes, field_client=None) -> PillarResult:
    """
    Audit the Retrieval pillar.

    The TTFB and llms.txt probes run concurrently; each degrades only its
    own sub-score.
    """
    soup = parse_html(html)
    checks = {
        "html_size": run_check(ctx, PILLAR, "html_size", check_html_size, html, ctx),
        "paywall": run_check(ctx, PILLAR, "paywall", check_paywall, soup, ctx),
        "main_content": run_check(ctx, PILLAR, "main_content", check_main_content, html, ctx),
    }

    checks["ttfb"], checks["llms_txt_file"] = await asyncio.gather(
        check_ttfb(url, ctx, probes, field_client),
        check_llms_txt(url, ctx, probes),
    )

    result = PillarResult(pillar=PILLAR, checks=checks)
    logger.info(f"Retrieval audit for {url}: {result.earned}/{result.max_points}")
    return result
