"""
Tests for progressive enhancement.

These tests verify:
- Field TTFB re-scoring of the RETRIEVAL pillar
- Only RETRIEVAL and the total change
- The original result is never modified
- Merging the same data twice gives the same result
- No data and failures return the original result untouched
"""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from aisearch.models import DataSourceType, Pillar, PillarResult
from aisearch.scoring import enhance_retrieval, merge_enhancement, score

from conftest import ARTICLE_URL, FakeFieldClient, field_result


def base_result():
    """Blog page scored with a slow synthetic TTFB (1 point) and no llms.txt."""
    results = [
        PillarResult(Pillar.RETRIEVAL, {"ttfb": 1, "paywall": 5, "main_content": 5, "html_size": 5}),
        PillarResult(Pillar.FACT_DENSITY, {"unique_facts": 5, "data_markup": 5}),
        PillarResult(Pillar.STRUCTURE, {"heading_frequency": 5, "heading_depth": 5, "structured_data": 5}),
        PillarResult(Pillar.TRUST, {"author_bio": 5}),
        PillarResult(Pillar.RECENCY, {"stable_canonical": 5}),
    ]
    return score(results, page_type="blog", dynamic=True)


def improved_retrieval():
    return PillarResult(
        Pillar.RETRIEVAL, {"ttfb": 5, "paywall": 5, "main_content": 5, "html_size": 5},
    )


# =============================================================================
# MERGE
# =============================================================================

class TestMergeEnhancement:
    """Test the pure merge."""

    def test_merge_updates_retrieval_and_total(self):
        original = base_result()
        assert original.pillar_scores[Pillar.RETRIEVAL] == 16

        enhanced = merge_enhancement(original, improved_retrieval())

        assert enhanced.pillar_scores[Pillar.RETRIEVAL] == 20
        assert enhanced.total == original.total + 4
        assert enhanced.breakdown[Pillar.RETRIEVAL].checks["ttfb"] == 5
        assert enhanced.dynamic_scoring.raw_scores[Pillar.RETRIEVAL] == 20
        assert enhanced.dynamic_scoring.weighted_scores[Pillar.RETRIEVAL] == 20
        assert enhanced.enhancement.enhanced is True
        assert enhanced.enhancement.improvement == 4
        assert enhanced.enhancement.previous_retrieval == 16
        assert enhanced.enhancement.new_retrieval == 20

    def test_other_pillars_unchanged(self):
        original = base_result()
        enhanced = merge_enhancement(original, improved_retrieval())

        for pillar in Pillar:
            if pillar is Pillar.RETRIEVAL:
                continue
            assert enhanced.pillar_scores[pillar] == original.pillar_scores[pillar]
            assert enhanced.breakdown[pillar] == original.breakdown[pillar]
        assert enhanced.recommendations == original.recommendations

    def test_original_is_not_modified(self):
        original = base_result()
        snapshot = copy.deepcopy(original)

        merge_enhancement(original, improved_retrieval())

        assert original == snapshot
        assert original.enhancement is None

    def test_merge_is_idempotent(self):
        original = base_result()
        once = merge_enhancement(original, improved_retrieval())
        twice = merge_enhancement(once, improved_retrieval())
        assert twice == once

    def test_rejects_other_pillars(self):
        with pytest.raises(ValueError):
            merge_enhancement(base_result(), PillarResult(Pillar.TRUST, {"author_bio": 5}))

    def test_rescales_under_dynamic_max(self):
        results = [
            PillarResult(Pillar.RETRIEVAL, {"ttfb": 0, "paywall": 5, "main_content": 5, "html_size": 5}),
        ]
        original = score(results, page_type="search", dynamic=True)
        enhanced = merge_enhancement(original, improved_retrieval())
        # 15/25*40 = 24, 20/25*40 = 32
        assert original.pillar_scores[Pillar.RETRIEVAL] == 24
        assert enhanced.pillar_scores[Pillar.RETRIEVAL] == 32
        assert enhanced.total == original.total + 8


# =============================================================================
# FIELD DATA
# =============================================================================

class TestEnhanceRetrieval:
    """Test field-data driven enhancement."""

    @pytest.mark.asyncio
    async def test_good_field_ttfb(self):
        original = base_result()
        client = FakeFieldClient(field_result(ttfb=450, lcp=2000))

        enhanced, data = await enhance_retrieval(original, ARTICLE_URL, client)

        assert data.enhanced is True
        assert data.data_source == DataSourceType.FIELD
        assert data.improvement == 4
        assert data.field_metrics["ttfb"] == 450
        assert data.field_metrics["ratings"]["ttfb"] == "good"
        assert enhanced.total == original.total + 4
        assert enhanced.enhancement is data

    @pytest.mark.asyncio
    async def test_poor_field_ttfb_can_lower_the_score(self):
        results = [
            PillarResult(Pillar.RETRIEVAL, {"ttfb": 4, "paywall": 5, "main_content": 5, "html_size": 5}),
        ]
        original = score(results, dynamic=False)
        client = FakeFieldClient(field_result(ttfb=3500))

        enhanced, data = await enhance_retrieval(original, ARTICLE_URL, client)

        assert enhanced.breakdown[Pillar.RETRIEVAL].checks["ttfb"] == 0
        assert data.improvement == -4
        assert enhanced.total == original.total - 4

    @pytest.mark.asyncio
    async def test_no_data_returns_original(self):
        original = base_result()

        enhanced, data = await enhance_retrieval(original, ARTICLE_URL, FakeFieldClient())

        assert enhanced is original
        assert data.enhanced is False
        assert data.data_source == DataSourceType.SYNTHETIC
        assert data.message == "No data"

    @pytest.mark.asyncio
    async def test_metrics_without_ttfb_return_original(self):
        original = base_result()
        client = FakeFieldClient(field_result(lcp=2000))

        enhanced, data = await enhance_retrieval(original, ARTICLE_URL, client)

        assert enhanced is original
        assert data.enhanced is False

    @pytest.mark.asyncio
    async def test_client_failure_returns_original(self):
        original = base_result()
        client = FakeFieldClient(error=RuntimeError("quota exceeded"))

        enhanced, data = await enhance_retrieval(original, ARTICLE_URL, client)

        assert enhanced is original
        assert data.enhanced is False
        assert "quota exceeded" in data.message

    @pytest.mark.asyncio
    async def test_client_is_queried_with_the_url(self):
        client = MagicMock()
        client.fetch_field_data = AsyncMock(return_value=field_result(ttfb=450))

        await enhance_retrieval(base_result(), ARTICLE_URL, client)

        client.fetch_field_data.assert_awaited_once_with(ARTICLE_URL)
