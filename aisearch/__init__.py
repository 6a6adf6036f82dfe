"""
AI Search Readiness Engine

Scores how well a web page can be fetched, understood and cited by AI
search engines, on a 0-100 scale across five pillars, with ranked
recommendations.
"""

__version__ = "0.1.0"
