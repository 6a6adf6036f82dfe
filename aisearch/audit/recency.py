"""
Recency Audit (10 points)

Checks:
- last_modified:    Freshness signal < 90 days old
- stable_canonical: Canonical URL without volatile query params or session segments
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Mapping, Optional
from urllib.parse import parse_qsl, urljoin, urlparse

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from aisearch.models import DiagnosticContext, Pillar, PillarResult
from .base import json_ld_nodes, parse_html, run_check, text_of

logger = logging.getLogger(__name__)

PILLAR = Pillar.RECENCY

FRESHNESS_WINDOW = timedelta(days=90)
FUTURE_TOLERANCE = timedelta(days=1)
# Must differ in year and month
PARSE_DEFAULTS = (datetime(1900, 1, 1), datetime(1901, 2, 1))

DATE_META = [
    {"property": "article:modified_time"},
    {"property": "og:updated_time"},
    {"property": "article:published_time"},
    {"name": "last-modified"},
    {"name": "date"},
    {"name": "DC.date.modified"},
    {"name": "DC.date.created"},
    {"itemprop": "dateModified"},
    {"itemprop": "datePublished"},
]
DATE_CLASS_SELECTORS = ".date, .updated, .modified, .last-updated, .post-date, .article-date"
MAX_DATE_ELEMENT_CHARS = 80

DATE_LABEL = re.compile(r"(?:updated|modified|revised|published)(?:\s+on)?[\s:]+(.{6,40})", re.IGNORECASE)
DATE_IN_TEXT = [
    re.compile(r"\d{4}-\d{1,2}-\d{1,2}"),
    re.compile(r"\d{1,2}/\d{1,2}/\d{4}"),
    re.compile(r"\d{1,2}\.\d{1,2}\.\d{4}"),
    re.compile(r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4}", re.IGNORECASE),
    re.compile(r"\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{4}", re.IGNORECASE),
]

ALLOWED_CANONICAL_PARAMS = {"utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content"}
VOLATILE_SEGMENT = re.compile(r"^(session|sessionid|sid|token|ts|timestamp)([=_:\-]|$)", re.IGNORECASE)
LONG_DIGIT_RUN = re.compile(r"\d{10,}")


# =============================================================================
# DATES
# =============================================================================


def parse_date(value: str) -> Optional[datetime]:
    """
    Parse a date string into an aware UTC datetime.

    dateutil fills missing fields from its default, so the string is parsed
    against two different defaults: a year or month that moves with the
    default was never in the input, and the value is rejected.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value.strip(), dayfirst=False, default=PARSE_DEFAULTS[0])
        shifted = date_parser.parse(value.strip(), dayfirst=False, default=PARSE_DEFAULTS[1])
    except (ValueError, OverflowError, TypeError):
        return None
    if (parsed.year, parsed.month) != (shifted.year, shifted.month):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def find_date_in_text(text: str) -> Optional[datetime]:
    """First recognizable date inside free text."""
    for pattern in DATE_IN_TEXT:
        match = pattern.search(text)
        if match:
            parsed = parse_date(match.group(0))
            if parsed:
                return parsed
    return None


def header_value(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    if not headers:
        return None
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def is_fresh(moment: datetime, now: datetime) -> bool:
    return now - FRESHNESS_WINDOW < moment <= now + FUTURE_TOLERANCE


def on_page_dates(soup: BeautifulSoup) -> List[datetime]:
    """Every date an on-page freshness signal resolves to."""
    raw: List[str] = []
    for attrs in DATE_META:
        tag = soup.find("meta", attrs=attrs)
        if tag is not None and tag.get("content"):
            raw.append(tag["content"])

    for node in json_ld_nodes(soup):
        for key in ("dateModified", "datePublished"):
            if isinstance(node.get(key), str):
                raw.append(node[key])

    for tag in soup.select("time[datetime]"):
        raw.append(tag["datetime"])

    dates = [d for d in (parse_date(value) for value in raw) if d]

    for node in soup.select(DATE_CLASS_SELECTORS):
        text = text_of(node)
        if text and len(text) <= MAX_DATE_ELEMENT_CHARS:
            found = find_date_in_text(text) or parse_date(text)
            if found:
                dates.append(found)

    for match in DATE_LABEL.finditer(text_of(soup.body or soup)):
        found = find_date_in_text(match.group(1))
        if found:
            dates.append(found)
    return dates


# =============================================================================
# CHECKS
# =============================================================================


def check_last_modified(
    soup: BeautifulSoup,
    headers: Optional[Mapping[str, str]],
    now: datetime,
) -> int:
    """
    A parseable Last-Modified header decides on its own; on-page signals
    are consulted only when the header is absent or unparseable.
    """
    header_date = parse_date(header_value(headers, "last-modified") or "")
    if header_date is not None:
        return 5 if is_fresh(header_date, now) else 0

    return 5 if any(is_fresh(d, now) for d in on_page_dates(soup)) else 0


def is_stable_canonical(canonical: str) -> bool:
    parsed = urlparse(canonical)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False

    params = {key.lower() for key, _ in parse_qsl(parsed.query, keep_blank_values=True)}
    if parsed.query and not params:
        return False
    if params - ALLOWED_CANONICAL_PARAMS:
        return False

    if "jsessionid" in parsed.params.lower() or ";jsessionid=" in parsed.path.lower():
        return False
    segments = [s for s in parsed.path.split("/") if s]
    return not any(VOLATILE_SEGMENT.match(s) or LONG_DIGIT_RUN.search(s) for s in segments)


def check_stable_canonical(soup: BeautifulSoup, page_url: Optional[str]) -> int:
    link = soup.find("link", rel=lambda rel: rel and "canonical" in [r.lower() for r in _as_list(rel)])
    href = (link.get("href") or "").strip() if link is not None else ""
    if not href:
        return 0
    canonical = urljoin(page_url, href) if page_url else href
    return 5 if is_stable_canonical(canonical) else 0


def _as_list(value) -> Iterable[str]:
    return value if isinstance(value, list) else str(value).split()


# =============================================================================
# ENTRY POINT
# =============================================================================


def run(
    html: str,
    headers: Optional[Mapping[str, str]],
    ctx: DiagnosticContext,
    now: Optional[datetime] = None,
) -> PillarResult:
    """Audit the Recency pillar. ``now`` is injectable for tests."""
    soup = parse_html(html)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    checks = {
        "last_modified": run_check(ctx, PILLAR, "last_modified", check_last_modified, soup, headers, now),
        "stable_canonical": run_check(ctx, PILLAR, "stable_canonical", check_stable_canonical, soup, ctx.url),
    }
    result = PillarResult(pillar=PILLAR, checks=checks)
    logger.info(f"Recency audit for {ctx.url}: {result.earned}/{result.max_points}")
    return result
