"""Shared utilities: configuration and URL handling."""

from .config import Settings, get_settings
from .urls import InputError, validate_and_normalize_url, extract_domain

__all__ = [
    "Settings",
    "get_settings",
    "InputError",
    "validate_and_normalize_url",
    "extract_domain",
]
