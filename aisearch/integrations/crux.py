"""
Chrome UX Report API Client

Real-user (field) performance data from Google's Chrome User Experience
Report. Used to score TTFB with what visitors actually experience instead
of a single synthetic probe.

API: https://developer.chrome.com/docs/crux/api
Quota: 150 queries/minute per key (free)

Every lookup goes through the process-wide field data cache: positive and
"no record" answers are kept for 24h.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from aisearch.cache import FieldDataCache, get_cache_config, get_field_data_cache
from aisearch.scoring.helpers import round_half_up
from aisearch.utils.config import get_settings

logger = logging.getLogger(__name__)


class ChromeUXError(Exception):
    """Custom exception for Chrome UX Report API errors."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


# =============================================================================
# RATINGS
# =============================================================================


class Rating(str, Enum):
    """Core Web Vitals rating bucket."""
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


# (good upper bound, needs-improvement upper bound)
WEB_VITALS_THRESHOLDS = {
    "lcp": (2500, 4000),  # Largest Contentful Paint (ms)
    "fid": (100, 300),  # First Input Delay (ms)
    "cls": (0.1, 0.25),  # Cumulative Layout Shift (unitless)
    "ttfb": (800, 1800),  # Time to First Byte (ms)
    "fcp": (1800, 3000),  # First Contentful Paint (ms)
}

# CrUX metric keys per short name; the API answers in snake_case
CRUX_METRIC_KEYS = {
    "lcp": ("largest_contentful_paint", "largestContentfulPaint"),
    "fid": ("first_input_delay", "firstInputDelay"),
    "cls": ("cumulative_layout_shift", "cumulativeLayoutShift"),
    "ttfb": ("experimental_time_to_first_byte", "time_to_first_byte", "timeToFirstByte"),
    "fcp": ("first_contentful_paint", "firstContentfulPaint"),
}

FIELD_SCORE_WEIGHTS = {
    "ttfb": 0.40,  # Most important for crawlers
    "lcp": 0.30,
    "fid": 0.15,
    "cls": 0.15,
}

RATING_VALUES = {
    Rating.GOOD: 1.0,
    Rating.NEEDS_IMPROVEMENT: 0.5,
    Rating.POOR: 0.0,
}


def rate_metric(metric: str, value: Optional[float]) -> Optional[Rating]:
    """Map a p75 value onto its rating. None when the metric is absent."""
    if value is None:
        return None
    good, needs_improvement = WEB_VITALS_THRESHOLDS[metric]
    if value <= good:
        return Rating.GOOD
    if value <= needs_improvement:
        return Rating.NEEDS_IMPROVEMENT
    return Rating.POOR


@dataclass
class FieldMetrics:
    """p75 values and ratings for one URL."""
    lcp: Optional[float] = None
    fid: Optional[float] = None
    cls: Optional[float] = None
    ttfb: Optional[float] = None
    fcp: Optional[float] = None
    ratings: Dict[str, Rating] = field(default_factory=dict)

    @classmethod
    def from_values(klass, **values: Optional[float]) -> "FieldMetrics":
        # "cls" is a metric field
        metrics = klass(**values)
        for name in WEB_VITALS_THRESHOLDS:
            rating = rate_metric(name, getattr(metrics, name))
            if rating is not None:
                metrics.ratings[name] = rating
        return metrics

    @property
    def ttfb_rating(self) -> Optional[Rating]:
        return self.ratings.get("ttfb")

    @property
    def lcp_rating(self) -> Optional[Rating]:
        return self.ratings.get("lcp")

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in WEB_VITALS_THRESHOLDS}
        data["ratings"] = {name: rating.value for name, rating in self.ratings.items()}
        return data


@dataclass
class FieldDataResult:
    """Outcome of a field data lookup. ``has_data=False`` covers every failure."""
    url: str
    has_data: bool
    metrics: Optional[FieldMetrics] = None
    error: Optional[str] = None
    not_found: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "has_data": self.has_data,
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "error": self.error,
        }


def calculate_field_score(metrics: Optional[FieldMetrics], max_points: int) -> int:
    """
    Convert field ratings into points out of max_points.

    Ratings score good=1, needs-improvement=0.5, poor=0 and are weighted
    TTFB 40%, LCP 30%, FID 15%, CLS 15%, normalized over the ratings that
    are present.
    """
    if metrics is None:
        return 0

    score = 0.0
    factors = 0.0
    for name, weight in FIELD_SCORE_WEIGHTS.items():
        rating = metrics.ratings.get(name)
        if rating is None:
            continue
        score += RATING_VALUES[rating] * weight
        factors += weight

    if factors == 0:
        return 0
    return round_half_up(score / factors * max_points)


def _p75(metric_data: Any) -> Optional[float]:
    if not isinstance(metric_data, dict):
        return None
    value = (metric_data.get("percentiles") or {}).get("p75")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_record(payload: Dict[str, Any]) -> FieldMetrics:
    """
    Extract p75 metrics from a queryRecord response.

    Raises:
        ChromeUXError: If the payload carries no usable metrics
    """
    record = payload.get("record") if isinstance(payload, dict) else None
    raw_metrics = record.get("metrics") if isinstance(record, dict) else None
    if not isinstance(raw_metrics, dict):
        raise ChromeUXError("Response contained no record metrics", response=payload)

    values = {}
    for name, keys in CRUX_METRIC_KEYS.items():
        values[name] = next(
            (p for p in (_p75(raw_metrics.get(key)) for key in keys) if p is not None),
            None,
        )

    if all(v is None for v in values.values()):
        raise ChromeUXError("Response contained no p75 values", response=payload)
    return FieldMetrics.from_values(**values)


# =============================================================================
# CLIENT
# =============================================================================


class ChromeUXReportClient:
    """
    Async client for the Chrome UX Report API.

    Usage:
        client = ChromeUXReportClient(api_key="your_api_key")

        result = await client.fetch_field_data("https://example.com/page")
        if result.has_data:
            print(result.metrics.ttfb, result.metrics.ttfb_rating)

        await client.close()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        form_factor: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[FieldDataCache] = None,
        cache_errors: Optional[bool] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the CrUX client.

        Args:
            api_key: CrUX API key (defaults to CHROME_UX_API_KEY)
            api_url: queryRecord endpoint
            form_factor: PHONE, DESKTOP or TABLET
            timeout: Request timeout in seconds
            cache: Field data cache (defaults to the process-wide cache)
            cache_errors: Also cache failed lookups for the TTL window
            http_client: Pre-built httpx client (tests inject a MockTransport)
        """
        settings = get_settings()
        config = get_cache_config()

        self.api_key = api_key if api_key is not None else settings.CHROME_UX_API_KEY
        self.api_url = api_url or settings.CRUX_API_URL
        self.form_factor = form_factor or settings.CRUX_FORM_FACTOR
        self.timeout = timeout or settings.TIMEOUT_FIELD_DATA
        self.cache_errors = config.cache_errors if cache_errors is None else cache_errors

        if cache is not None:
            self.cache = cache
        else:
            self.cache = get_field_data_cache() if config.enabled else None

        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_field_data(self, url: str) -> FieldDataResult:
        """
        Fetch p75 field metrics for a URL.

        Never raises: missing key, no record and provider failures all come
        back as ``has_data=False`` with a message.
        """
        if not self.configured:
            logger.debug("Chrome UX Report API key not configured, skipping field data")
            return FieldDataResult(url=url, has_data=False, error="Chrome UX Report API key not configured")

        if self.cache is None:
            return await self._query(url)

        return await self.cache.get_or_load(url, lambda: self._query(url), should_cache=self._should_cache)

    def _should_cache(self, result: FieldDataResult) -> bool:
        return result.has_data or result.not_found or self.cache_errors

    async def _query(self, url: str) -> FieldDataResult:
        logger.info(f"Querying Chrome UX Report for {url}")
        try:
            response = await self._get_client().post(
                self.api_url,
                params={"key": self.api_key},
                json={"url": url, "formFactor": self.form_factor},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Chrome UX Report request failed for {url}: {type(e).__name__}: {e}")
            return FieldDataResult(url=url, has_data=False, error="Failed to fetch performance data")

        if response.status_code == 404:
            logger.info(f"No Chrome UX Report record for {url}")
            return FieldDataResult(
                url=url,
                has_data=False,
                not_found=True,
                error="No Chrome UX Report data available for this URL",
            )

        try:
            if response.status_code >= 400:
                raise ChromeUXError(
                    f"API error: {response.status_code}",
                    status_code=response.status_code,
                    response={"text": response.text[:500]},
                )
            metrics = parse_record(response.json())
        except (ChromeUXError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Chrome UX Report error for {url}: {e}")
            return FieldDataResult(url=url, has_data=False, error=f"Failed to fetch performance data: {e}")

        logger.info(
            f"Chrome UX Report data for {url}: ttfb={metrics.ttfb} "
            f"({metrics.ttfb_rating.value if metrics.ttfb_rating else 'n/a'})"
        )
        return FieldDataResult(url=url, has_data=True, metrics=metrics)

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
