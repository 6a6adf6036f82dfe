"""
Trust Audit (15 points)

Checks:
- author_bio:      Visible author attribution and credentials
- nap_consistency: Name + contact details, imprint link or address block
- license:         Open content license (CC-BY, CC0, MIT, Apache, public domain)
"""

import logging
import re
from typing import List

from bs4 import BeautifulSoup

from aisearch.models import DiagnosticContext, Pillar, PillarResult
from .base import has_class_fragment, json_ld_nodes, json_ld_types, meta_content, parse_html, run_check, text_of

logger = logging.getLogger(__name__)

PILLAR = Pillar.TRUST

AUTHOR_BIO_SELECTORS = ".author-bio, .author-info, .author-box, .author-details, .writer-bio"
BYLINE_SELECTORS = ".byline a, .author-name a, .written-by a, .posted-by a, a[rel=author]"
AUTHOR_HEADING = re.compile(r"about the author|about me|author bio", re.IGNORECASE)

IMPRINT_TEXT = re.compile(r"\b(imprint|impressum|legal notice)\b", re.IGNORECASE)
IMPRINT_HREF = re.compile(r"/(imprint|impressum|legal)\b", re.IGNORECASE)

OPEN_LICENSE = re.compile(
    r"cc[\s\-]?by|cc0|creative\s*commons|creativecommons\.org|public\s+domain|"
    r"mit\s+license|apache\s+license|apache-2\.0",
    re.IGNORECASE,
)
# Bare names are only trusted inside an explicit license declaration
DECLARED_LICENSE = re.compile(r"\b(mit|apache)\b", re.IGNORECASE)
ALL_RIGHTS_RESERVED = re.compile(r"all\s+rights\s+reserved", re.IGNORECASE)


# =============================================================================
# AUTHOR
# =============================================================================


def _has_structured_author(soup: BeautifulSoup) -> bool:
    for node in json_ld_nodes(soup):
        if "Person" in json_ld_types(node):
            return True
        author = node.get("author")
        authors = author if isinstance(author, list) else [author]
        for candidate in authors:
            if isinstance(candidate, dict) and candidate.get("name"):
                return True
            if isinstance(candidate, str) and candidate.strip():
                return True
    return False


def check_author_bio(soup: BeautifulSoup) -> int:
    indicators = [
        lambda: _has_structured_author(soup),
        lambda: bool(meta_content(soup, name="author") or meta_content(soup, property="article:author")),
        lambda: bool(soup.select(AUTHOR_BIO_SELECTORS)),
        lambda: any(
            has_class_fragment(node, "author", "bio") or has_class_fragment(node, "author", "info")
            for node in soup.find_all(True)
        ),
        lambda: bool(soup.select(BYLINE_SELECTORS)),
        lambda: any(AUTHOR_HEADING.search(text_of(h)) for h in soup.find_all(["h2", "h3", "h4"])),
    ]
    return 5 if any(indicator() for indicator in indicators) else 0


# =============================================================================
# NAME / ADDRESS / PHONE
# =============================================================================


def _has_name(soup: BeautifulSoup) -> bool:
    if meta_content(soup, property="og:site_name"):
        return True
    if any(text_of(n) for n in soup.select(".company-name, .site-name, .brand-name")):
        return True
    if any(text_of(n) for n in soup.select("[itemtype*=Organization] [itemprop=name]")):
        return True
    return any(
        "Organization" in json_ld_types(node) and node.get("name") for node in json_ld_nodes(soup)
    )


def _has_contact(soup: BeautifulSoup) -> bool:
    for anchor in soup.find_all("a", href=True):
        if anchor["href"].lower().startswith(("tel:", "mailto:")):
            return True
    selectors = ".phone, .telephone, .contact-phone, .email, .contact-email, [itemprop=telephone], [itemprop=email]"
    return any(text_of(n) for n in soup.select(selectors))


def _has_address(soup: BeautifulSoup) -> bool:
    selectors = "address, .address, .company-address, [itemtype*=PostalAddress], [itemprop=address]"
    return any(text_of(n) for n in soup.select(selectors))


def _has_imprint_link(soup: BeautifulSoup) -> bool:
    for anchor in soup.find_all("a"):
        if IMPRINT_TEXT.search(text_of(anchor)) or IMPRINT_HREF.search(anchor.get("href") or ""):
            return True
    return False


def check_nap_consistency(soup: BeautifulSoup) -> int:
    if _has_name(soup) and _has_contact(soup):
        return 5
    return 5 if _has_imprint_link(soup) or _has_address(soup) else 0


# =============================================================================
# LICENSE
# =============================================================================


def declared_licenses(soup: BeautifulSoup) -> List[str]:
    """Values of explicit license declarations on the page."""
    values = []
    for attrs in ({"property": "og:license"}, {"name": "license"}, {"name": "dc.rights"}):
        content = meta_content(soup, **attrs)
        if content:
            values.append(content)

    for node in soup.select("[rel=license], [property='dc:license'], [property='dcterms:license']"):
        values.extend(v for v in (node.get("href"), node.get("content"), text_of(node)) if v)

    for node in json_ld_nodes(soup):
        license_value = node.get("license")
        if isinstance(license_value, str):
            values.append(license_value)
        elif isinstance(license_value, dict):
            values.extend(str(v) for v in license_value.values() if isinstance(v, str))
    return values


def check_license(soup: BeautifulSoup) -> int:
    declared = declared_licenses(soup)
    footer_text = " ".join(text_of(f) for f in soup.find_all("footer"))

    if any(ALL_RIGHTS_RESERVED.search(value) for value in declared + [footer_text]):
        return 0

    if any(OPEN_LICENSE.search(value) or DECLARED_LICENSE.search(value) for value in declared):
        return 5
    if OPEN_LICENSE.search(footer_text):
        return 5
    if soup.select("[class*=creative-commons], [class*=cc-by]"):
        return 5
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================


def run(html: str, ctx: DiagnosticContext) -> PillarResult:
    """Audit the Trust pillar."""
    soup = parse_html(html)
    checks = {
        "author_bio": run_check(ctx, PILLAR, "author_bio", check_author_bio, soup),
        "nap_consistency": run_check(ctx, PILLAR, "nap_consistency", check_nap_consistency, soup),
        "license": run_check(ctx, PILLAR, "license", check_license, soup),
    }
    result = PillarResult(pillar=PILLAR, checks=checks)
    logger.info(f"Trust audit for {ctx.url}: {result.earned}/{result.max_points}")
    return result
