"""
Analyzer

Runs one analysis end to end: validate, fetch, profile, audit, score.

Usage:
    from aisearch.analyzer import AiSearchAnalyzer

    async with AiSearchAnalyzer() as analyzer:
        result = await analyzer.analyze("example.com/blog/post")
"""

from .engine import AiSearchAnalyzer, AnalysisResult, EnhancementCallback

__all__ = [
    "AiSearchAnalyzer",
    "AnalysisResult",
    "EnhancementCallback",
]
