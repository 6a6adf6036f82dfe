"""
Content Extractor

Builds a ContentProfile for a page: title, description, headings, topics,
page type and content type.

Both classifiers are ordered lists of (predicate, tag) rules over a
precomputed PageSignals; the first matching rule wins.
"""

import logging
import re
from collections import Counter
from typing import Callable, List, Optional, Tuple
from urllib.parse import parse_qsl, urlparse

from aisearch.audit.base import (
    content_root,
    count_words,
    json_ld_nodes,
    json_ld_types,
    meta_content,
    page_title,
    parse_html,
    text_of,
)
from .models import ContentProfile, ContentType, PageSignals, PageType

logger = logging.getLogger(__name__)


# =============================================================================
# URL PATTERNS
# =============================================================================

HOMEPAGE_PATHS = {
    "/", "", "/index", "/index.html", "/index.php", "/home", "/homepage",
    "/default.html", "/default.aspx",
}
LANGUAGE_ROOT = re.compile(r"^/[a-z]{2}(-[a-z]{2})?/?$", re.IGNORECASE)

SEARCH_SEGMENTS = {"search", "results", "suche", "buscar"}
SEARCH_PARAMS = {"q", "query", "s", "search", "keyword"}
CONTACT_SEGMENTS = {"contact", "contact-us", "contactus", "kontakt", "contacto", "get-in-touch"}
ABOUT_SEGMENTS = {"about", "about-us", "aboutus", "company", "team", "our-story", "who-we-are", "ueber-uns"}

BLOG_SEGMENTS = {"blog", "blogs", "post", "posts", "journal", "stories", "insights"}
BLOG_SUBDOMAINS = {"blog", "news", "insights", "stories"}
DATE_PATH = re.compile(r"/\d{4}/\d{1,2}/|/\d{4}-\d{2}-\d{2}")
ARTICLE_SEGMENTS = {"article", "articles", "news", "press", "magazine", "updates", "resources"}
PRODUCT_SEGMENTS = {"product", "products", "item", "items", "p", "dp"}
CATEGORY_SEGMENTS = {
    "category", "categories", "collections", "collection", "tag", "c",
    "shop", "store", "catalog", "catalogue",
}
# Roots also match as "<root>-..." segments, e.g. api-reference
DOCS_ROOTS = {"docs", "doc", "documentation", "api", "guide", "guides", "manual", "wiki", "reference"}

ARTICLE_SCHEMAS = {"Article", "NewsArticle", "ScholarlyArticle", "TechArticle", "Report"}
CATEGORY_SCHEMAS = {"CollectionPage", "ItemList", "OfferCatalog"}

STOPWORDS = {
    "the", "and", "for", "with", "that", "this", "from", "your", "you", "are", "our",
    "how", "what", "why", "when", "who", "will", "can", "all", "about", "into", "more",
    "best", "guide", "page", "home", "have", "has", "its", "their", "them", "they",
    "not", "but", "new", "get", "use", "using", "was", "were", "been", "vs",
}


def _has_segment(signals: PageSignals, names) -> bool:
    """Some path segment is one of names. Short markers like /p/ need a segment after them."""
    segments = [segment.lower() for segment in signals.segments]
    for index, segment in enumerate(segments):
        if segment in names and (len(segment) > 2 or index < len(segments) - 1):
            return True
    return False


def _has_docs_segment(signals: PageSignals) -> bool:
    for segment in signals.segments:
        root = segment.lower().split("-", 1)[0]
        if root in DOCS_ROOTS:
            return True
    return False


def _first_segment_in(signals: PageSignals, names) -> bool:
    """First path segment (after an optional /en/ style prefix) is one of names."""
    segments = signals.segments
    if len(segments) > 1 and LANGUAGE_ROOT.match(f"/{segments[0]}"):
        segments = segments[1:]
    return bool(segments) and segments[0] in names


# =============================================================================
# PAGE TYPE RULES (first match wins)
# =============================================================================

Rule = Tuple[Callable[[PageSignals], bool], PageType]

PAGE_TYPE_RULES: List[Rule] = [
    (lambda s: s.path in HOMEPAGE_PATHS, PageType.HOMEPAGE),
    (lambda s: LANGUAGE_ROOT.match(s.path) is not None, PageType.HOMEPAGE),
    (
        lambda s: _first_segment_in(s, SEARCH_SEGMENTS)
        or (bool(s.query_params & SEARCH_PARAMS) and s.depth <= 1),
        PageType.SEARCH,
    ),
    (lambda s: _first_segment_in(s, CONTACT_SEGMENTS), PageType.CONTACT),
    (lambda s: _first_segment_in(s, ABOUT_SEGMENTS), PageType.ABOUT),
    (
        lambda s: "Organization" in s.schema_types and s.depth <= 1 and len(s.path) < 20,
        PageType.HOMEPAGE,
    ),
    (lambda s: _has_segment(s, BLOG_SEGMENTS), PageType.BLOG),
    (lambda s: s.subdomain in BLOG_SUBDOMAINS, PageType.BLOG),
    (lambda s: DATE_PATH.search(s.path) is not None, PageType.BLOG),
    (lambda s: "BlogPosting" in s.schema_types, PageType.BLOG),
    (lambda s: bool(s.schema_types & ARTICLE_SCHEMAS), PageType.ARTICLE),
    (lambda s: _has_segment(s, ARTICLE_SEGMENTS), PageType.ARTICLE),
    (
        lambda s: s.has_publish_date and (s.has_author or s.has_article_tag),
        PageType.BLOG,
    ),
    (lambda s: _has_segment(s, PRODUCT_SEGMENTS), PageType.PRODUCT),
    (lambda s: "Product" in s.schema_types, PageType.PRODUCT),
    (lambda s: s.has_price and (s.has_add_to_cart or s.has_product_info), PageType.PRODUCT),
    (lambda s: _has_segment(s, CATEGORY_SEGMENTS), PageType.CATEGORY),
    (lambda s: bool(s.schema_types & CATEGORY_SCHEMAS), PageType.CATEGORY),
    (lambda s: s.product_card_count >= 6, PageType.CATEGORY),
    (
        lambda s: _has_docs_segment(s) or s.has_docs_markup,
        PageType.DOCUMENTATION,
    ),
    (
        lambda s: s.nav_count > 2 and s.content_block_count / max(s.link_count, 1) < 0.2,
        PageType.HOMEPAGE,
    ),
]


# =============================================================================
# CONTENT TYPE RULES (ecommerce > news > documentation > blog > corporate)
# =============================================================================

CONTENT_TYPE_RULES: List[Tuple[Callable[[PageSignals], bool], ContentType]] = [
    (
        lambda s: "Product" in s.schema_types
        or s.has_shop_markup
        or "buy now" in s.body_text
        or "add to cart" in s.body_text,
        ContentType.ECOMMERCE,
    ),
    (
        lambda s: s.has_news_markup or "NewsArticle" in s.schema_types or "news" in s.topics,
        ContentType.NEWS,
    ),
    (
        lambda s: s.code_block_count > 10 or s.has_docs_markup or "documentation" in s.body_text,
        ContentType.DOCUMENTATION,
    ),
    (
        lambda s: s.has_blog_markup or "BlogPosting" in s.schema_types or "blog" in s.topics,
        ContentType.BLOG,
    ),
    (
        lambda s: any(p in s.body_text for p in ("about us", "our services", "our team", "our company")),
        ContentType.CORPORATE,
    ),
]


def classify_page_type(signals: PageSignals) -> PageType:
    for predicate, page_type in PAGE_TYPE_RULES:
        if predicate(signals):
            return page_type
    return PageType.GENERAL


def classify_content_type(signals: PageSignals) -> ContentType:
    for predicate, content_type in CONTENT_TYPE_RULES:
        if predicate(signals):
            return content_type
    return ContentType.OTHER


# =============================================================================
# EXTRACTOR
# =============================================================================


class ContentExtractor:
    """
    Extract a content profile from fetched HTML.

    Usage:
        profile = ContentExtractor(html, url).extract()
        profile.page_type  # PageType.BLOG
    """

    MAX_TOPICS = 5

    def __init__(self, html: str, url: str):
        self.html = html or ""
        self.url = url
        self.soup = parse_html(self.html)
        self._signals: Optional[PageSignals] = None

    @property
    def signals(self) -> PageSignals:
        if self._signals is None:
            self._signals = self._collect_signals()
        return self._signals

    def headings(self) -> List[str]:
        return [t for t in (text_of(h) for h in self.soup.find_all(["h1", "h2", "h3"])) if t]

    def extract_topics(self) -> List[str]:
        """Most frequent significant words across title and headings."""
        text = " ".join([page_title(self.soup)] + self.headings()).lower()
        words = [w for w in re.findall(r"[a-z][a-z0-9\-]{2,}", text) if w not in STOPWORDS]
        return [word for word, _ in Counter(words).most_common(self.MAX_TOPICS)]

    def _collect_signals(self) -> PageSignals:
        soup = self.soup
        parsed = urlparse(self.url or "")
        path = (parsed.path.rstrip("/") or "/").lower()
        hostname = (parsed.hostname or "").lower()
        host_parts = hostname.split(".")

        schema_types = set()
        for node in json_ld_nodes(soup):
            schema_types.update(json_ld_types(node))

        return PageSignals(
            path=path,
            segments=[s for s in path.split("/") if s],
            subdomain=host_parts[0] if len(host_parts) > 2 else "",
            query_params={k.lower() for k, _ in parse_qsl(parsed.query, keep_blank_values=True)},
            schema_types=schema_types,
            body_text=text_of(soup.body or soup).lower(),
            has_author=bool(soup.select("[rel=author], .author, .by-author, .post-author, .article-author")),
            has_publish_date=bool(soup.select("[datetime], .publish-date, .post-date, .article-date, time")),
            has_article_tag=bool(soup.select("article, .article, .post, .blog-post")),
            has_price=bool(soup.select("[itemprop=price], .price, .product-price")),
            has_add_to_cart=bool(
                soup.select("button[class*=cart], button[id*=cart], .add-to-cart, #add-to-cart")
            ),
            has_product_info=bool(soup.select(".product-info, .product-details, .product-description")),
            has_docs_markup=bool(soup.select(".docs-content, .documentation, .api-reference")),
            has_blog_markup=bool(soup.select(".blog-post, .article-date, .author")),
            has_news_markup=bool(soup.select(".news-item, .press-release")),
            has_shop_markup=bool(soup.select(".product, .price, .add-to-cart, .shop")),
            product_card_count=len(soup.select(".product-card, .product-item, [itemtype*=Product]")),
            nav_count=len(soup.select("nav, .navigation, .menu")),
            link_count=len(soup.find_all("a")),
            content_block_count=len(soup.find_all(["p", "article", "section"])),
            code_block_count=len(soup.find_all(["code", "pre"])),
            topics=self.extract_topics(),
        )

    def detect_page_type(self) -> PageType:
        try:
            page_type = classify_page_type(self.signals)
        except Exception as e:
            logger.warning(f"Page type detection failed for {self.url}: {e}")
            return PageType.GENERAL
        logger.debug(f"Detected page type {page_type.value} for {self.url}")
        return page_type

    def detect_content_type(self) -> ContentType:
        try:
            return classify_content_type(self.signals)
        except Exception as e:
            logger.warning(f"Content type detection failed for {self.url}: {e}")
            return ContentType.OTHER

    def extract(self) -> ContentProfile:
        topics = self.signals.topics
        return ContentProfile(
            url=self.url,
            title=page_title(self.soup),
            description=meta_content(self.soup, name="description") or "",
            language=(self.soup.html.get("lang", "") if self.soup.html else "").strip(),
            word_count=count_words(text_of(content_root(self.soup))),
            headings=self.headings(),
            primary_topic=topics[0] if topics else "",
            topics=topics,
            page_type=self.detect_page_type(),
            content_type=self.detect_content_type(),
        )
