"""
Structure Audit (30 points)

Is the content organized so answer engines can lift passages?

Checks:
- heading_frequency:  A heading every <= 300 words
- heading_depth:      1-3 distinct heading levels
- structured_data:    FAQPage / HowTo / Dataset JSON-LD
- feed_presence:      RSS or Atom feed
- listicle_format:    Numbered title with substantial list content (10 pts)
- comparison_tables:  Table alongside comparison headings
- semantic_url:       Readable slug reflecting the title
"""

import logging
import re
from typing import List
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from aisearch.models import DiagnosticContext, Pillar, PillarResult
from .base import (
    content_root,
    count_words,
    json_ld_nodes,
    json_ld_types,
    page_title,
    parse_html,
    run_check,
    text_of,
)

logger = logging.getLogger(__name__)

PILLAR = Pillar.STRUCTURE

MAX_WORDS_PER_HEADING = 300
MAX_HEADING_LEVELS = 3
VALUABLE_SCHEMA_TYPES = {"FAQPage", "HowTo", "Dataset"}
MIN_LIST_ITEM_WORDS = 3

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

LISTICLE_TITLE = re.compile(r"^\d+\s+|[\s\-–—]\d+\s+")
COMPARISON_LANGUAGE = re.compile(r"\b(vs|versus|compared|comparison|compare)\b", re.IGNORECASE)
FEED_TYPES = ("application/rss+xml", "application/atom+xml")
FEED_HREF = re.compile(r"/rss|/feed|\.rss|\.atom", re.IGNORECASE)
_HEX_ID = re.compile(r"^[a-f0-9]{8,}$", re.IGNORECASE)


def _headings(root: Tag) -> List[Tag]:
    return root.find_all(HEADING_TAGS)


# =============================================================================
# CHECKS
# =============================================================================


def check_heading_frequency(root: Tag) -> int:
    words = count_words(text_of(root))
    headings = len(_headings(root))
    if words == 0 or headings == 0:
        return 0
    return 5 if words / headings <= MAX_WORDS_PER_HEADING else 0


def check_heading_depth(root: Tag) -> int:
    levels = {int(h.name[1]) for h in _headings(root)}
    return 5 if 0 < len(levels) <= MAX_HEADING_LEVELS else 0


def check_structured_data(soup: BeautifulSoup) -> int:
    for node in json_ld_nodes(soup):
        if VALUABLE_SCHEMA_TYPES.intersection(json_ld_types(node)):
            return 5
    return 0


def check_feed_presence(soup: BeautifulSoup) -> int:
    for link in soup.find_all("link"):
        if (link.get("type") or "").lower() in FEED_TYPES:
            return 5
    for anchor in soup.find_all("a", href=True):
        if FEED_HREF.search(anchor["href"]):
            return 5
    return 0


def score_listicle(numbered_title: bool, list_count: int, substantial_items: int) -> int:
    if numbered_title and list_count >= 1 and substantial_items >= 3:
        return 10
    if list_count >= 2 and substantial_items >= 5:
        return 7
    if numbered_title and substantial_items >= 2:
        return 4
    if list_count >= 1 and substantial_items >= 3:
        return 2
    return 0


def check_listicle_format(root: Tag, title: str) -> int:
    lists = root.find_all(["ol", "ul"])
    items = [li for li in root.find_all("li") if count_words(text_of(li)) >= MIN_LIST_ITEM_WORDS]
    return score_listicle(bool(LISTICLE_TITLE.search(title)), len(lists), len(items))


def check_comparison_tables(root: Tag, ctx: DiagnosticContext) -> int:
    comparison_headings = [
        text_of(h) for h in _headings(root) if COMPARISON_LANGUAGE.search(text_of(h))
    ]
    has_table = root.find("table") is not None
    if comparison_headings and not has_table:
        ctx.comparison_headings = comparison_headings[:3]
    return 5 if has_table and comparison_headings else 0


def score_semantic_url(url: str, title: str) -> int:
    parsed = urlparse(url)
    parts = [p for p in parsed.path.rstrip("/").split("/") if p]
    slug = parts[-1] if parts else ""

    readable = len(slug) > 3 and not slug.isdigit() and not _HEX_ID.match(slug)
    if not readable:
        return 0

    keywords = [w for w in re.findall(r"[a-z0-9]+", title.lower()) if len(w) > 3]
    path = parsed.path.lower()
    matches = sum(1 for keyword in set(keywords) if keyword in path)
    clean_query = len(parsed.query) < 50

    if matches >= 2 and clean_query:
        return 5
    if matches >= 1:
        return 3
    return 1


def check_semantic_url(url: str, title: str) -> int:
    if not url:
        return 0
    return score_semantic_url(url, title)


# =============================================================================
# ENTRY POINT
# =============================================================================


def run(html: str, ctx: DiagnosticContext, url: str = None) -> PillarResult:
    """Audit the Structure pillar."""
    soup = parse_html(html)
    root = content_root(soup)
    title = page_title(soup)
    page_url = url or ctx.url

    ctx.page_title = title
    first_paragraph = root.find("p")
    ctx.first_paragraph = text_of(first_paragraph)

    checks = {
        "heading_frequency": run_check(ctx, PILLAR, "heading_frequency", check_heading_frequency, root),
        "heading_depth": run_check(ctx, PILLAR, "heading_depth", check_heading_depth, root),
        "structured_data": run_check(ctx, PILLAR, "structured_data", check_structured_data, soup),
        "feed_presence": run_check(ctx, PILLAR, "feed_presence", check_feed_presence, soup),
        "listicle_format": run_check(ctx, PILLAR, "listicle_format", check_listicle_format, root, title),
        "comparison_tables": run_check(ctx, PILLAR, "comparison_tables", check_comparison_tables, root, ctx),
        "semantic_url": run_check(ctx, PILLAR, "semantic_url", check_semantic_url, page_url, title),
    }
    result = PillarResult(pillar=PILLAR, checks=checks)
    logger.info(f"Structure audit for {page_url}: {result.earned}/{result.max_points}")
    return result
