"""
External Data Integrations

- Chrome UX Report: real-user p75 performance metrics (field data)
"""

from .crux import (
    ChromeUXError,
    ChromeUXReportClient,
    FieldDataResult,
    FieldMetrics,
    Rating,
    WEB_VITALS_THRESHOLDS,
    calculate_field_score,
    rate_metric,
)

__all__ = [
    "ChromeUXError",
    "ChromeUXReportClient",
    "FieldDataResult",
    "FieldMetrics",
    "Rating",
    "WEB_VITALS_THRESHOLDS",
    "calculate_field_score",
    "rate_metric",
]
