"""
AI Search Readiness Scorer

Aggregates the five pillar results into a 0-100 score.

Steps:
1. Pick the dynamic weight table for the detected page type
2. Rescale each pillar's raw points onto its dynamic max:
       earned' = round_half_up(earned / module_max * dynamic_max)
3. Total = sum of rescaled pillars, clamped to [0, 100]
4. One recommendation per sub-metric below its max, with
       gain = round_half_up(metric_max / module_max * dynamic_max)
5. Recommendations sorted by gain, ties in pillar then metric order
"""

import logging
from typing import Dict, Iterable, List, Optional

from aisearch.models import (
    METRIC_MAX_POINTS,
    PILLAR_MAX_POINTS,
    DiagnosticContext,
    DynamicScoring,
    Pillar,
    PillarBreakdown,
    PillarResult,
    Recommendation,
    ScoringResult,
)
from aisearch.utils.config import get_settings
from .helpers import clamp, rescale, round_half_up
from .recommendations import RecommendationTemplateStore
from .weights import get_weights

logger = logging.getLogger(__name__)

_default_store = RecommendationTemplateStore()


def _index_results(pillar_results: Iterable[PillarResult]) -> Dict[Pillar, PillarResult]:
    results = {result.pillar: result for result in pillar_results}
    # A missing pillar scores 0 on every metric
    for pillar in Pillar:
        if pillar not in results:
            logger.warning(f"No result for pillar {pillar.value}, scoring it as 0")
            results[pillar] = PillarResult(pillar=pillar)
    return results


def metric_gain(pillar: Pillar, metric: str, dynamic_max: int) -> int:
    """Points a metric is worth under the current weighting."""
    module_max = PILLAR_MAX_POINTS[pillar]
    return round_half_up(METRIC_MAX_POINTS[pillar][metric] / module_max * dynamic_max)


def build_recommendations(
    results: Dict[Pillar, PillarResult],
    weights: Dict[Pillar, int],
    context: Optional[DiagnosticContext] = None,
    page_type: Optional[str] = None,
    store: Optional[RecommendationTemplateStore] = None,
) -> List[Recommendation]:
    store = store or _default_store
    recommendations = []

    for pillar in Pillar:
        checks = results[pillar].checks
        for metric, max_points in METRIC_MAX_POINTS[pillar].items():
            if checks.get(metric, 0) >= max_points:
                continue
            recommendations.append(store.build(
                metric,
                pillar,
                gain=metric_gain(pillar, metric, weights[pillar]),
                context=context,
                page_type=page_type,
            ))

    # sorted() is stable: equal gains keep pillar/metric declaration order
    return sorted(recommendations, key=lambda r: -r.gain)


def score(
    pillar_results: Iterable[PillarResult],
    page_type: Optional[str] = None,
    dynamic: Optional[bool] = None,
    context: Optional[DiagnosticContext] = None,
    store: Optional[RecommendationTemplateStore] = None,
) -> ScoringResult:
    """
    Score an analysis.

    Args:
        pillar_results: One PillarResult per pillar (missing pillars score 0)
        page_type: Detected page type, selects the weight table
        dynamic: Apply page-type weights (default: ENABLE_DYNAMIC_SCORING)
        context: Per-call diagnostics used to personalize recommendations
        store: Template store override

    Returns:
        ScoringResult
    """
    if dynamic is None:
        dynamic = get_settings().ENABLE_DYNAMIC_SCORING

    page_type_value = getattr(page_type, "value", page_type)
    applied = bool(dynamic and page_type_value)
    weights = get_weights(page_type_value if applied else None)

    results = _index_results(pillar_results)

    pillar_scores: Dict[Pillar, int] = {}
    raw_scores: Dict[Pillar, int] = {}
    breakdown: Dict[Pillar, PillarBreakdown] = {}

    for pillar in Pillar:
        result = results[pillar]
        weighted = rescale(result.earned, result.max_points, weights[pillar])
        raw_scores[pillar] = result.earned
        pillar_scores[pillar] = weighted
        breakdown[pillar] = PillarBreakdown(
            earned=result.earned,
            max=result.max_points,
            weighted_earned=weighted,
            weighted_max=weights[pillar],
            checks=dict(result.checks),
        )

    total = int(clamp(sum(pillar_scores.values()), 0, 100))

    recommendations = build_recommendations(
        results, weights, context=context, page_type=page_type_value, store=store,
    )

    logger.info(
        f"Scored {context.url if context else 'page'}: {total}/100 "
        f"(page type {page_type_value or 'none'}, dynamic={applied}, "
        f"{len(recommendations)} recommendations)"
    )

    return ScoringResult(
        total=total,
        pillar_scores=pillar_scores,
        breakdown=breakdown,
        recommendations=recommendations,
        dynamic_scoring=DynamicScoring(
            applied_weights=applied,
            page_type=page_type_value,
            weights=dict(weights),
            raw_scores=raw_scores,
            weighted_scores=dict(pillar_scores),
        ),
    )
