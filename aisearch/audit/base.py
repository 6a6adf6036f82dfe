"""
Audit Helpers

Shared parsing utilities for the pillar audits: HTML parsing, text
extraction, JSON-LD traversal and guarded check execution.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from aisearch.models import DiagnosticContext, Pillar

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# Elements that never count as page content
NOISE_SELECTORS = [
    "script",
    "style",
    "noscript",
    "template",
    "svg",
    "nav",
    "header",
    "footer",
    "aside",
    ".nav",
    ".navigation",
    ".menu",
    ".sidebar",
    ".footer",
    ".header",
    '[aria-hidden="true"]',
    "[hidden]",
    ".ads",
    ".advertisement",
]

# Candidate containers for the primary content, most specific first
CONTENT_SELECTORS = "main, article, [role=main], .content, #content"


# =============================================================================
# PARSING
# =============================================================================


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML with lxml, falling back to the stdlib parser."""
    try:
        return BeautifulSoup(html or "", "lxml")
    except Exception:
        return BeautifulSoup(html or "", "html.parser")


def clean_soup(html: str) -> BeautifulSoup:
    """Parse HTML and strip noise elements (scripts, navigation, ads)."""
    soup = parse_html(html)
    for selector in NOISE_SELECTORS:
        for node in soup.select(selector):
            node.decompose()
    return soup


def normalize_text(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def text_of(node: Optional[Tag]) -> str:
    """Whitespace-collapsed visible text of a node."""
    if node is None:
        return ""
    return normalize_text(node.get_text(" ", strip=True))


def count_words(text: str) -> int:
    return len((text or "").split())


def content_root(soup: BeautifulSoup) -> Tag:
    """Primary content container, or body when none is marked up."""
    return soup.select_one(CONTENT_SELECTORS) or soup.body or soup


def page_title(soup: BeautifulSoup) -> str:
    title = soup.find("title")
    if title and text_of(title):
        return text_of(title)
    return text_of(soup.find("h1"))


def meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    """Content attribute of the first matching <meta>, if any."""
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = tag.get("content")
    return content.strip() if content else None


def has_class_fragment(node: Tag, *fragments: str) -> bool:
    """True if any class or the id of a node contains every fragment."""
    values = list(node.get("class") or [])
    if node.get("id"):
        values.append(node["id"])
    joined = " ".join(values).lower()
    return all(fragment in joined for fragment in fragments)


# =============================================================================
# JSON-LD
# =============================================================================


def iter_json_ld(soup: BeautifulSoup) -> Iterator[Any]:
    """Yield parsed JSON-LD blocks, skipping malformed ones."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text() or ""
        if not raw.strip():
            continue
        try:
            yield json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")


def walk_json_ld(data: Any) -> Iterator[Dict[str, Any]]:
    """Yield every object in a JSON-LD tree, including @graph members."""
    if isinstance(data, list):
        for item in data:
            yield from walk_json_ld(item)
    elif isinstance(data, dict):
        yield data
        for value in data.values():
            if isinstance(value, (dict, list)):
                yield from walk_json_ld(value)


def json_ld_nodes(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    nodes = []
    for block in iter_json_ld(soup):
        nodes.extend(walk_json_ld(block))
    return nodes


def json_ld_types(node: Dict[str, Any]) -> List[str]:
    """Normalized @type values of a JSON-LD object."""
    raw = node.get("@type")
    if raw is None:
        return []
    if isinstance(raw, list):
        return [str(t) for t in raw]
    return [str(raw)]


# =============================================================================
# GUARDED CHECKS
# =============================================================================


def run_check(
    ctx: DiagnosticContext,
    pillar: Pillar,
    metric: str,
    check: Callable[..., int],
    *args,
) -> int:
    """
    Run one sub-metric check.

    A failing check is logged, recorded on the context and scores 0 so the
    rest of the pillar still completes.
    """
    try:
        return check(*args)
    except Exception as e:
        ctx.record_miss(pillar, metric, e)
        return 0
