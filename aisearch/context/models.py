"""
Content Profile Data Models

Types produced by the content extractor: page-type and content-type
classification plus the raw signals the classifiers read.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Set


# =============================================================================
# ENUMS
# =============================================================================


class PageType(str, Enum):
    """What kind of page is being analyzed. Selects the dynamic weights."""
    HOMEPAGE = "homepage"
    ARTICLE = "article"
    BLOG = "blog"
    PRODUCT = "product"
    CATEGORY = "category"
    ABOUT = "about"
    CONTACT = "contact"
    DOCUMENTATION = "documentation"
    SEARCH = "search"
    GENERAL = "general"


class ContentType(str, Enum):
    """Business classification of the site content."""
    ECOMMERCE = "ecommerce"
    NEWS = "news"
    DOCUMENTATION = "documentation"
    BLOG = "blog"
    CORPORATE = "corporate"
    OTHER = "other"


# =============================================================================
# SIGNALS AND PROFILE
# =============================================================================


@dataclass
class PageSignals:
    """Precomputed facts about a page, read by the classification rules."""
    path: str = "/"
    segments: List[str] = field(default_factory=list)
    subdomain: str = ""
    query_params: Set[str] = field(default_factory=set)
    schema_types: Set[str] = field(default_factory=set)
    body_text: str = ""  # lower-cased

    has_author: bool = False
    has_publish_date: bool = False
    has_article_tag: bool = False
    has_price: bool = False
    has_add_to_cart: bool = False
    has_product_info: bool = False
    has_docs_markup: bool = False
    has_blog_markup: bool = False
    has_news_markup: bool = False
    has_shop_markup: bool = False
    product_card_count: int = 0
    nav_count: int = 0
    link_count: int = 0
    content_block_count: int = 0
    code_block_count: int = 0

    topics: List[str] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.segments)


@dataclass
class ContentProfile:
    """What the extractor learned about a page."""
    url: str
    title: str = ""
    description: str = ""
    language: str = ""
    word_count: int = 0
    headings: List[str] = field(default_factory=list)
    primary_topic: str = ""
    topics: List[str] = field(default_factory=list)
    page_type: PageType = PageType.GENERAL
    content_type: ContentType = ContentType.OTHER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "language": self.language,
            "word_count": self.word_count,
            "headings": list(self.headings),
            "primary_topic": self.primary_topic,
            "topics": list(self.topics),
            "page_type": self.page_type.value,
            "content_type": self.content_type.value,
        }
