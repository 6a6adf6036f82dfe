"""
Page Collection

- PageFetcher: downloads the page under analysis
- ProbeClient: short-timeout TTFB, llms.txt and robots.txt probes
"""

from .client import (
    DNSResolutionError,
    FetchError,
    FetchResult,
    FetchTimeoutError,
    NetworkError,
    PageFetcher,
    RetryConfig,
)
from .probes import ProbeClient

__all__ = [
    "DNSResolutionError",
    "FetchError",
    "FetchResult",
    "FetchTimeoutError",
    "NetworkError",
    "PageFetcher",
    "RetryConfig",
    "ProbeClient",
]
