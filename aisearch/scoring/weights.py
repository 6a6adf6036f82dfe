"""
Dynamic Scoring Weights

Per-page-type pillar maxima. Every table sums to 100, so the total score
stays on a 0-100 scale whichever table applies.

A homepage is judged mostly on being fetchable and trustworthy; a blog
post on the facts it carries; documentation on its structure.
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from aisearch.models import PILLAR_MAX_POINTS, Pillar

P = Pillar

DEFAULT_WEIGHT_KEY = "default"

DYNAMIC_SCORING_WEIGHTS: Mapping[str, Mapping[Pillar, int]] = MappingProxyType({
    # Balanced: the module maxima
    "default": MappingProxyType(dict(PILLAR_MAX_POINTS)),
    "homepage": MappingProxyType({P.RETRIEVAL: 35, P.FACT_DENSITY: 15, P.STRUCTURE: 25, P.TRUST: 20, P.RECENCY: 5}),
    "blog": MappingProxyType({P.RETRIEVAL: 25, P.FACT_DENSITY: 35, P.STRUCTURE: 20, P.TRUST: 10, P.RECENCY: 10}),
    "product": MappingProxyType({P.RETRIEVAL: 30, P.FACT_DENSITY: 25, P.STRUCTURE: 20, P.TRUST: 20, P.RECENCY: 5}),
    "documentation": MappingProxyType({P.RETRIEVAL: 25, P.FACT_DENSITY: 25, P.STRUCTURE: 35, P.TRUST: 5, P.RECENCY: 10}),
    "category": MappingProxyType({P.RETRIEVAL: 35, P.FACT_DENSITY: 15, P.STRUCTURE: 30, P.TRUST: 15, P.RECENCY: 5}),
    "about": MappingProxyType({P.RETRIEVAL: 20, P.FACT_DENSITY: 15, P.STRUCTURE: 20, P.TRUST: 40, P.RECENCY: 5}),
    "contact": MappingProxyType({P.RETRIEVAL: 30, P.FACT_DENSITY: 10, P.STRUCTURE: 20, P.TRUST: 35, P.RECENCY: 5}),
    "search": MappingProxyType({P.RETRIEVAL: 40, P.FACT_DENSITY: 15, P.STRUCTURE: 30, P.TRUST: 10, P.RECENCY: 5}),
})

# Page types that share another type's table
PAGE_TYPE_WEIGHT_MAP: Mapping[str, str] = MappingProxyType({
    "homepage": "homepage",
    "article": "blog",
    "blog": "blog",
    "product": "product",
    "category": "category",
    "about": "about",
    "contact": "contact",
    "documentation": "documentation",
    "search": "search",
    "general": "default",
})


def weight_key_for(page_type: Optional[str]) -> str:
    """Weight table key for a page type; unknown types get the default."""
    if page_type is None:
        return DEFAULT_WEIGHT_KEY
    page_type = getattr(page_type, "value", page_type)
    return PAGE_TYPE_WEIGHT_MAP.get(str(page_type).lower(), DEFAULT_WEIGHT_KEY)


def get_weights(page_type: Optional[str]) -> Dict[Pillar, int]:
    """Dynamic pillar maxima for a page type, in pillar declaration order."""
    table = DYNAMIC_SCORING_WEIGHTS[weight_key_for(page_type)]
    return {pillar: table[pillar] for pillar in Pillar}
