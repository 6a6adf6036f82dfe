"""
Scoring Module

1. **Dynamic weights**
   Per-page-type pillar maxima; every table sums to 100.

2. **Scorer**
   Rescales pillar points onto the weights, totals them and ranks
   recommendations by the points they are worth.

3. **Enhancement**
   Merges fresher field TTFB data into a scored result without
   touching the other pillars.

Example Usage:
    from aisearch.scoring import score

    result = score(pillar_results, page_type="blog", context=ctx)
    print(result.total)
    for rec in result.recommendations[:3]:
        print(rec.metric, rec.gain)
"""

from .helpers import clamp, rescale, round_half_up
from .weights import (
    DEFAULT_WEIGHT_KEY,
    DYNAMIC_SCORING_WEIGHTS,
    PAGE_TYPE_WEIGHT_MAP,
    get_weights,
    weight_key_for,
)
from .recommendations import (
    GENERIC_TEMPLATE,
    PAGE_TYPE_TIPS,
    TEMPLATES,
    RecommendationTemplate,
    RecommendationTemplateStore,
)
from .scorer import build_recommendations, metric_gain, score
from .enhancement import enhance_retrieval, merge_enhancement

__all__ = [
    # Helpers
    "clamp",
    "rescale",
    "round_half_up",

    # Weights
    "DEFAULT_WEIGHT_KEY",
    "DYNAMIC_SCORING_WEIGHTS",
    "PAGE_TYPE_WEIGHT_MAP",
    "get_weights",
    "weight_key_for",

    # Recommendations
    "GENERIC_TEMPLATE",
    "PAGE_TYPE_TIPS",
    "TEMPLATES",
    "RecommendationTemplate",
    "RecommendationTemplateStore",

    # Scorer
    "build_recommendations",
    "metric_gain",
    "score",

    # Enhancement
    "enhance_retrieval",
    "merge_enhancement",
]
