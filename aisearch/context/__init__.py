"""
Content Context

Page-type and content-type detection for the page under analysis.
The detected page type selects the dynamic scoring weights.
"""

from .models import ContentProfile, ContentType, PageSignals, PageType
from .extractor import (
    CONTENT_TYPE_RULES,
    PAGE_TYPE_RULES,
    ContentExtractor,
    classify_content_type,
    classify_page_type,
)

__all__ = [
    "ContentProfile",
    "ContentType",
    "PageSignals",
    "PageType",
    "CONTENT_TYPE_RULES",
    "PAGE_TYPE_RULES",
    "ContentExtractor",
    "classify_content_type",
    "classify_page_type",
]
