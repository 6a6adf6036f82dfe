"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Chrome UX Report (Optional - field data falls back to synthetic probes)
    CHROME_UX_API_KEY: Optional[str] = None
    CRUX_API_URL: str = "https://chromeuxreport.googleapis.com/v1/records:queryRecord"
    CRUX_FORM_FACTOR: str = "PHONE"

    # Field data cache
    FIELD_DATA_CACHE_TTL_HOURS: int = 24
    FIELD_DATA_CACHE_ERRORS: bool = True  # Failed lookups also count against the 24h window

    # Logging
    LOG_LEVEL: str = "INFO"

    # Scoring
    ENABLE_DYNAMIC_SCORING: bool = True
    ENABLE_PROGRESSIVE_ENHANCEMENT: bool = True

    # Fetching
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    MAX_REDIRECTS: int = 5

    # Timeouts (seconds)
    TIMEOUT_PAGE_FETCH: float = 30.0
    TIMEOUT_TTFB_PROBE: float = 5.0
    TIMEOUT_LLMS_TXT: float = 3.0
    TIMEOUT_ROBOTS_TXT: float = 3.0
    TIMEOUT_FIELD_DATA: float = 5.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
