"""
URL Validation

Normalizes user-supplied URLs before any network call is made.
Rejects unsupported schemes and local/internal hosts.
"""

import ipaddress
import logging
import re
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

_HOSTNAME_CHARS = re.compile(r"^[a-z0-9.-]+$", re.IGNORECASE)


class InputError(ValueError):
    """Raised when a URL is malformed, unsupported or points at an internal host."""

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


def _is_internal_host(hostname: str) -> bool:
    if hostname in ("localhost", "0.0.0.0") or hostname.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
    )


def validate_and_normalize_url(raw: str) -> str:
    """
    Validate and normalize a URL.

    Bare domains get an https:// scheme and the host is lower-cased. The
    path and query are kept as given; only the fragment is dropped.

    Args:
        raw: URL as entered by the user

    Returns:
        Normalized absolute URL

    Raises:
        InputError: If the URL cannot be analyzed
    """
    if raw is None or not str(raw).strip():
        raise InputError("URL is required", url=raw)

    candidate = str(raw).strip()
    if " " in candidate:
        raise InputError("URL cannot contain spaces", url=raw)

    if "://" in candidate:
        scheme = candidate.split("://", 1)[0].lower()
        if scheme not in ("http", "https"):
            raise InputError("Only HTTP and HTTPS protocols are supported", url=raw)
    else:
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = (parts.hostname or "").lower()
        port = parts.port
    except ValueError as e:
        raise InputError(f"Please enter a valid URL: {e}", url=raw) from e

    if _is_internal_host(hostname):
        logger.warning(f"Rejected internal URL: {raw}")
        raise InputError("Local/internal URLs are not allowed", url=raw)

    if len(hostname) < 3 or hostname.startswith("."):
        raise InputError("Invalid domain name", url=raw)

    if "." not in hostname or hostname.endswith("."):
        raise InputError(
            "Invalid domain format. Please include a valid domain extension (e.g., .com, .org)",
            url=raw,
        )

    if not _HOSTNAME_CHARS.match(hostname):
        raise InputError("Domain contains invalid characters", url=raw)

    netloc = hostname if port is None else f"{hostname}:{port}"
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), netloc, path, parts.query, ""))


def extract_domain(url: str) -> str:
    """Return the host of a URL without a leading www."""
    hostname = (urlsplit(url).hostname or "").lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname
