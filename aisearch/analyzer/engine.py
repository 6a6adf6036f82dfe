"""
Analysis Engine - Orchestrates a single AI search readiness analysis.

This engine coordinates:
1. URL validation and page fetch
2. Content profiling (page type, content type)
3. The five pillar audits, run concurrently
4. Dynamic scoring and recommendations
5. Optional background enhancement with field data
"""

import asyncio
import dataclasses
import inspect
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

from aisearch.audit import fact_density, recency, retrieval, structure, trust
from aisearch.collector import FetchResult, PageFetcher, ProbeClient
from aisearch.context import ContentExtractor, ContentProfile
from aisearch.integrations import ChromeUXReportClient
from aisearch.models import DiagnosticContext, EnhancementData, ScoringResult
from aisearch.scoring import enhance_retrieval, score
from aisearch.utils.config import Settings, get_settings
from aisearch.utils.urls import extract_domain, validate_and_normalize_url

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Complete result of one analysis."""

    # Metadata
    url: str
    final_url: str
    status: int
    timestamp: datetime
    duration_seconds: float

    # Outputs
    profile: ContentProfile
    scoring: ScoringResult
    context: DiagnosticContext

    @property
    def total(self) -> int:
        return self.scoring.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "final_url": self.final_url,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "profile": self.profile.to_dict(),
            "scoring": self.scoring.to_dict(),
            "diagnostics": self.context.to_dict(),
        }


EnhancementCallback = Callable[[AnalysisResult, EnhancementData], Union[None, Awaitable[None]]]


class AiSearchAnalyzer:
    """
    Main engine for AI search readiness analysis.

    Usage:
        async with AiSearchAnalyzer() as analyzer:
            result = await analyzer.analyze("https://example.com/blog/post")
            print(result.total)

            task = analyzer.start_enhancement(result, callback=on_enhanced)
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        probes: Optional[ProbeClient] = None,
        field_client: Optional[ChromeUXReportClient] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            fetcher: Page fetcher (default: PageFetcher)
            probes: TTFB / llms.txt / robots.txt probes (default: ProbeClient)
            field_client: Field data client (default: ChromeUXReportClient)
            settings: Settings override
        """
        self.settings = settings or get_settings()
        self._owned = []

        if fetcher is None:
            fetcher = PageFetcher()
            self._owned.append(fetcher)
        if probes is None:
            probes = ProbeClient()
            self._owned.append(probes)
        if field_client is None:
            field_client = ChromeUXReportClient()
            self._owned.append(field_client)

        self.fetcher = fetcher
        self.probes = probes
        self.field_client = field_client
        self._tasks = set()

    async def analyze(
        self,
        url: str,
        dynamic: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> AnalysisResult:
        """
        Run a complete analysis.

        Args:
            url: Page URL (scheme optional)
            dynamic: Override ENABLE_DYNAMIC_SCORING
            now: Reference time for freshness checks

        Returns:
            AnalysisResult

        Raises:
            InputError: Malformed or internal URL
            FetchError: Page could not be fetched
        """
        started = time.perf_counter()
        timestamp = datetime.now(timezone.utc)

        url = validate_and_normalize_url(url)
        logger.info(f"Starting analysis for {url}")

        page = await self.fetcher.fetch(url)
        if page.status >= 400:
            logger.warning(f"{url} answered {page.status}, analyzing the returned document")

        return await self.analyze_page(page, dynamic=dynamic, now=now, started=started, timestamp=timestamp)

    async def analyze_page(
        self,
        page: FetchResult,
        dynamic: Optional[bool] = None,
        now: Optional[datetime] = None,
        started: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisResult:
        """Profile, audit and score an already fetched page."""
        started = started or time.perf_counter()
        timestamp = timestamp or datetime.now(timezone.utc)
        if dynamic is None:
            dynamic = self.settings.ENABLE_DYNAMIC_SCORING
        page_url = page.final_url or page.url

        ctx = DiagnosticContext(url=page_url, domain=extract_domain(page_url))

        profile = await asyncio.to_thread(ContentExtractor(page.html, page_url).extract)
        ctx.page_type = profile.page_type.value
        logger.info(f"Profiled {page_url}: page type {profile.page_type.value}, {profile.word_count} words")

        # ================================================================
        # PILLAR AUDITS
        # ================================================================
        pillar_results = await asyncio.gather(
            retrieval.run(page.html, page_url, ctx, self.probes, self.field_client),
            asyncio.to_thread(fact_density.run, page.html, ctx, page_url),
            asyncio.to_thread(structure.run, page.html, ctx, page_url),
            asyncio.to_thread(trust.run, page.html, ctx),
            asyncio.to_thread(recency.run, page.html, page.headers, ctx, now),
        )

        # ================================================================
        # SCORING
        # ================================================================
        scoring = score(pillar_results, page_type=profile.page_type, dynamic=dynamic, context=ctx)

        duration = time.perf_counter() - started
        if ctx.signal_misses:
            logger.info(f"{len(ctx.signal_misses)} checks scored 0 on unreadable input for {page_url}")
        logger.info(f"Analysis complete for {page_url} in {duration:.1f}s: {scoring.total}/100")

        return AnalysisResult(
            url=page.url,
            final_url=page_url,
            status=page.status,
            timestamp=timestamp,
            duration_seconds=duration,
            profile=profile,
            scoring=scoring,
            context=ctx,
        )

    # ====================================================================
    # PROGRESSIVE ENHANCEMENT
    # ====================================================================

    async def enhance(self, result: AnalysisResult) -> Tuple[AnalysisResult, EnhancementData]:
        """
        Re-score RETRIEVAL with field data.

        Returns ``result`` itself (unchanged) alongside the failure data when
        no field data could be merged.
        """
        scoring, enhancement = await enhance_retrieval(result.scoring, result.final_url, self.field_client)
        if scoring is result.scoring:
            return result, enhancement
        return dataclasses.replace(result, scoring=scoring), enhancement

    def start_enhancement(
        self,
        result: AnalysisResult,
        callback: Optional[EnhancementCallback] = None,
    ) -> Optional[asyncio.Task]:
        """
        Schedule enhancement in the background.

        The first-pass result is never blocked on. ``callback`` (sync or
        async) receives the enhanced result, or the unchanged one on failure,
        plus the EnhancementData.

        Returns:
            The scheduled task, or None when progressive enhancement is disabled
        """
        if not self.settings.ENABLE_PROGRESSIVE_ENHANCEMENT:
            logger.debug("Progressive enhancement disabled")
            return None

        task = asyncio.get_running_loop().create_task(self._run_enhancement(result, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_enhancement(
        self,
        result: AnalysisResult,
        callback: Optional[EnhancementCallback],
    ) -> AnalysisResult:
        enhanced, data = await self.enhance(result)
        if callback is not None:
            try:
                outcome = callback(enhanced, data)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"Enhancement callback failed for {result.final_url}: {e}")
        return enhanced

    async def close(self):
        """Cancel pending enhancements and close owned clients."""
        for task in list(self._tasks):
            task.cancel()
        for client in self._owned:
            await client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
