"""
AI Search Readiness - Data Models

Shared data models used across the audit, scoring and enhancement layers.

Pillar maxima (before dynamic weighting):
- RETRIEVAL:    25 points
- FACT_DENSITY: 20 points
- STRUCTURE:    30 points
- TRUST:        15 points
- RECENCY:      10 points
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# PILLARS AND METRICS
# =============================================================================


class Pillar(str, Enum):
    """Scoring pillar. Declaration order is the tie-break order."""
    RETRIEVAL = "RETRIEVAL"
    FACT_DENSITY = "FACT_DENSITY"
    STRUCTURE = "STRUCTURE"
    TRUST = "TRUST"
    RECENCY = "RECENCY"


PILLAR_MAX_POINTS: Dict[Pillar, int] = {
    Pillar.RETRIEVAL: 25,
    Pillar.FACT_DENSITY: 20,
    Pillar.STRUCTURE: 30,
    Pillar.TRUST: 15,
    Pillar.RECENCY: 10,
}

# Ordered per pillar. FACT_DENSITY and STRUCTURE declare more sub-points than
# their module max; PillarResult.earned caps at the module max.
METRIC_MAX_POINTS: Dict[Pillar, Dict[str, int]] = {
    Pillar.RETRIEVAL: {
        "ttfb": 5,
        "paywall": 5,
        "main_content": 5,
        "html_size": 5,
        "llms_txt_file": 5,
    },
    Pillar.FACT_DENSITY: {
        "unique_facts": 5,
        "data_markup": 5,
        "citations": 5,
        "deduplication": 5,
        "direct_answers": 5,
    },
    Pillar.STRUCTURE: {
        "heading_frequency": 5,
        "heading_depth": 5,
        "structured_data": 5,
        "feed_presence": 5,
        "listicle_format": 10,
        "comparison_tables": 5,
        "semantic_url": 5,
    },
    Pillar.TRUST: {
        "author_bio": 5,
        "nap_consistency": 5,
        "license": 5,
    },
    Pillar.RECENCY: {
        "last_modified": 5,
        "stable_canonical": 5,
    },
}


def metric_max(pillar: Pillar, metric: str) -> int:
    """Declared max points for a metric."""
    return METRIC_MAX_POINTS[pillar][metric]


@dataclass
class PillarResult:
    """
    Output of one audit module.

    Sub-scores are clamped into [0, declared max] on construction and
    undeclared metrics are rejected. Missing metrics score 0.
    """
    pillar: Pillar
    checks: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        declared = METRIC_MAX_POINTS[self.pillar]
        unknown = set(self.checks) - set(declared)
        if unknown:
            raise ValueError(f"Unknown metrics for {self.pillar.value}: {sorted(unknown)}")

        clamped = {}
        for metric, max_points in declared.items():
            value = int(self.checks.get(metric, 0) or 0)
            clamped[metric] = max(0, min(max_points, value))
        self.checks = clamped

    @property
    def max_points(self) -> int:
        return PILLAR_MAX_POINTS[self.pillar]

    @property
    def earned(self) -> int:
        return min(sum(self.checks.values()), self.max_points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pillar": self.pillar.value,
            "earned": self.earned,
            "max": self.max_points,
            "checks": dict(self.checks),
        }


# =============================================================================
# DIAGNOSTICS
# =============================================================================


class DataSourceType(str, Enum):
    """Where a measurement came from."""
    SYNTHETIC = "synthetic"  # Measured by us during the analysis
    FIELD = "field"  # Real-user data (Chrome UX Report)
    EDGE = "edge"  # CDN/edge timing


@dataclass
class DataSource:
    """Traceability record for a measured value. Never affects scoring."""
    type: DataSourceType
    metric: str
    success: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "metric": self.metric,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
            "details": dict(self.details),
        }


@dataclass
class SignalMiss:
    """A check that failed on malformed input and scored 0."""
    pillar: Pillar
    metric: str
    error: str


@dataclass
class DiagnosticContext:
    """
    Raw measurements for a single analysis.

    Created per analyze() call and threaded through every audit, so
    concurrent analyses never share diagnostics.
    """
    url: str
    domain: str = ""
    page_type: Optional[str] = None

    # Retrieval measurements
    ttfb_ms: Optional[float] = None
    ttfb_source: Optional[DataSourceType] = None
    field_rating: Optional[str] = None
    field_metrics: Optional[Any] = None
    html_size_bytes: int = 0
    main_content_ratio: float = 0.0
    main_content_selector: Optional[str] = None
    paywall_detected: bool = False
    has_llms_txt: bool = False
    robots_mentions_ai: bool = False

    # Content hints used to personalize recommendations
    page_title: str = ""
    first_paragraph: str = ""
    comparison_headings: List[str] = field(default_factory=list)
    unanswered_headings: List[str] = field(default_factory=list)

    data_sources: List[DataSource] = field(default_factory=list)
    signal_misses: List[SignalMiss] = field(default_factory=list)

    def add_data_source(
        self,
        source_type: DataSourceType,
        metric: str,
        success: bool = True,
        **details,
    ) -> DataSource:
        source = DataSource(type=source_type, metric=metric, success=success, details=details)
        self.data_sources.append(source)
        return source

    def record_miss(self, pillar: Pillar, metric: str, error: Exception) -> None:
        logger.warning(f"{pillar.value}.{metric} check failed for {self.url}: {error}")
        self.signal_misses.append(SignalMiss(pillar=pillar, metric=metric, error=str(error)))

    def record_ttfb(self, ttfb_ms: Optional[float], source: DataSourceType) -> None:
        self.ttfb_ms = ttfb_ms
        self.ttfb_source = source

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "domain": self.domain,
            "page_type": self.page_type,
            "ttfb_ms": self.ttfb_ms,
            "ttfb_source": self.ttfb_source.value if self.ttfb_source else None,
            "field_rating": self.field_rating,
            "html_size_bytes": self.html_size_bytes,
            "main_content_ratio": round(self.main_content_ratio, 3),
            "main_content_selector": self.main_content_selector,
            "paywall_detected": self.paywall_detected,
            "has_llms_txt": self.has_llms_txt,
            "robots_mentions_ai": self.robots_mentions_ai,
            "data_sources": [s.to_dict() for s in self.data_sources],
            "signal_misses": [
                {"pillar": m.pillar.value, "metric": m.metric, "error": m.error}
                for m in self.signal_misses
            ],
        }


# =============================================================================
# SCORING OUTPUT
# =============================================================================


@dataclass
class Recommendation:
    """One actionable fix for a sub-metric below its max."""
    metric: str
    pillar: Pillar
    why: str
    fix: str
    gain: int
    example: Optional[Dict[str, str]] = None  # {"before": ..., "after": ...}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "metric": self.metric,
            "pillar": self.pillar.value,
            "why": self.why,
            "fix": self.fix,
            "gain": self.gain,
        }
        if self.example:
            data["example"] = dict(self.example)
        return data


@dataclass
class PillarBreakdown:
    """Per-pillar detail inside a ScoringResult."""
    earned: int  # raw, before weighting
    max: int  # module max
    weighted_earned: int
    weighted_max: int
    checks: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "earned": self.earned,
            "max": self.max,
            "weighted_earned": self.weighted_earned,
            "weighted_max": self.weighted_max,
            "checks": dict(self.checks),
        }


@dataclass
class DynamicScoring:
    """How the page type reshaped the pillar maxima."""
    applied_weights: bool
    page_type: Optional[str]
    weights: Dict[Pillar, int]
    raw_scores: Dict[Pillar, int]
    weighted_scores: Dict[Pillar, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied_weights": self.applied_weights,
            "page_type": self.page_type,
            "weights": {p.value: v for p, v in self.weights.items()},
            "raw_scores": {p.value: v for p, v in self.raw_scores.items()},
            "weighted_scores": {p.value: v for p, v in self.weighted_scores.items()},
        }


@dataclass
class EnhancementData:
    """Outcome of a background enhancement attempt."""
    enhanced: bool
    data_source: Optional[DataSourceType] = None
    improvement: int = 0
    field_metrics: Optional[Dict[str, Any]] = None
    previous_retrieval: Optional[int] = None
    new_retrieval: Optional[int] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enhanced": self.enhanced,
            "data_source": self.data_source.value if self.data_source else None,
            "improvement": self.improvement,
            "field_metrics": self.field_metrics,
            "previous_retrieval": self.previous_retrieval,
            "new_retrieval": self.new_retrieval,
            "message": self.message,
        }


@dataclass
class ScoringResult:
    """Final weighted score with breakdown and ranked recommendations."""
    total: int
    pillar_scores: Dict[Pillar, int]
    breakdown: Dict[Pillar, PillarBreakdown]
    recommendations: List[Recommendation]
    dynamic_scoring: DynamicScoring
    enhancement: Optional[EnhancementData] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "pillar_scores": {p.value: v for p, v in self.pillar_scores.items()},
            "breakdown": {p.value: b.to_dict() for p, b in self.breakdown.items()},
            "recommendations": [r.to_dict() for r in self.recommendations],
            "dynamic_scoring": self.dynamic_scoring.to_dict(),
            "enhancement": self.enhancement.to_dict() if self.enhancement else None,
        }


__all__ = [
    "Pillar",
    "PILLAR_MAX_POINTS",
    "METRIC_MAX_POINTS",
    "metric_max",
    "PillarResult",
    "DataSourceType",
    "DataSource",
    "SignalMiss",
    "DiagnosticContext",
    "Recommendation",
    "PillarBreakdown",
    "DynamicScoring",
    "EnhancementData",
    "ScoringResult",
]
