"""
Progressive Enhancement

Re-scores RETRIEVAL once real-user (field) TTFB data is available and
merges the difference into an already returned ScoringResult.

merge_enhancement() is pure: it never touches the result it is given, and
applying it again with the same data returns an equal result.
"""

import copy
import logging
from typing import Any, Dict, Optional, Tuple

from aisearch.audit.retrieval import score_field_ttfb
from aisearch.models import (
    DataSourceType,
    EnhancementData,
    Pillar,
    PillarBreakdown,
    PillarResult,
    ScoringResult,
)
from .helpers import clamp, rescale

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No real-world data available for this URL"
ENHANCED_MESSAGE = "Score enhanced with real-world Chrome user data"


def merge_enhancement(
    original: ScoringResult,
    retrieval: PillarResult,
    data_source: DataSourceType = DataSourceType.FIELD,
    field_metrics: Optional[Dict[str, Any]] = None,
    message: str = ENHANCED_MESSAGE,
) -> ScoringResult:
    """
    Replace the RETRIEVAL pillar of a scored result.

    Only the RETRIEVAL breakdown, its pillar score, its dynamic-scoring
    entries and the total change. Recommendations are left as they were.

    Args:
        original: Result to enhance (not modified)
        retrieval: Re-scored RETRIEVAL pillar
        data_source: Where the new data came from
        field_metrics: Field metrics to attach for display

    Returns:
        New ScoringResult with ``enhancement`` set
    """
    if retrieval.pillar != Pillar.RETRIEVAL:
        raise ValueError(f"Enhancement only applies to RETRIEVAL, got {retrieval.pillar.value}")

    updated = copy.deepcopy(original)
    old_breakdown = original.breakdown[Pillar.RETRIEVAL]
    weighted_max = old_breakdown.weighted_max

    old_weighted = original.pillar_scores[Pillar.RETRIEVAL]
    new_weighted = rescale(retrieval.earned, retrieval.max_points, weighted_max)

    updated.breakdown[Pillar.RETRIEVAL] = PillarBreakdown(
        earned=retrieval.earned,
        max=retrieval.max_points,
        weighted_earned=new_weighted,
        weighted_max=weighted_max,
        checks=dict(retrieval.checks),
    )
    updated.pillar_scores[Pillar.RETRIEVAL] = new_weighted
    updated.dynamic_scoring.raw_scores[Pillar.RETRIEVAL] = retrieval.earned
    updated.dynamic_scoring.weighted_scores[Pillar.RETRIEVAL] = new_weighted
    updated.total = int(clamp(original.total - old_weighted + new_weighted, 0, 100))

    # Keep the first-pass baseline when merging again
    previous = old_breakdown.earned
    if original.enhancement is not None and original.enhancement.enhanced:
        previous = original.enhancement.previous_retrieval

    updated.enhancement = EnhancementData(
        enhanced=True,
        data_source=data_source,
        improvement=retrieval.earned - previous,
        field_metrics=copy.deepcopy(field_metrics),
        previous_retrieval=previous,
        new_retrieval=retrieval.earned,
        message=message,
    )
    return updated


async def enhance_retrieval(
    original: ScoringResult,
    url: str,
    field_client,
) -> Tuple[ScoringResult, EnhancementData]:
    """
    Fetch field data and merge a re-scored TTFB into ``original``.

    The field client only needs ``await fetch_field_data(url)`` returning an
    object with ``has_data``, ``metrics`` and ``error``.

    On no data or any failure the original object is returned unchanged
    with ``EnhancementData(enhanced=False)``.
    """
    try:
        field = await field_client.fetch_field_data(url)
        metrics = field.metrics if field.has_data else None

        if metrics is None or metrics.ttfb is None:
            message = field.error or NO_DATA_MESSAGE
            logger.info(f"No enhancement for {url}: {message}")
            return original, EnhancementData(
                enhanced=False,
                data_source=DataSourceType.SYNTHETIC,
                message=message,
            )

        rating = getattr(metrics.ttfb_rating, "value", metrics.ttfb_rating)
        checks = dict(original.breakdown[Pillar.RETRIEVAL].checks)
        checks["ttfb"] = score_field_ttfb(metrics.ttfb, rating)
        retrieval = PillarResult(pillar=Pillar.RETRIEVAL, checks=checks)

        updated = merge_enhancement(
            original,
            retrieval,
            data_source=DataSourceType.FIELD,
            field_metrics=metrics.to_dict(),
        )
        logger.info(
            f"Enhanced {url}: RETRIEVAL {updated.enhancement.previous_retrieval} -> "
            f"{retrieval.earned}, total {original.total} -> {updated.total}"
        )
        return updated, updated.enhancement

    except Exception as e:
        logger.warning(f"Enhancement failed for {url}: {e}")
        return original, EnhancementData(enhanced=False, message=f"Enhancement failed: {e}")
