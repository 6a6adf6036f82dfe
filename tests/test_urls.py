"""
Tests for URL validation and normalization.
"""

import pytest

from aisearch.utils.urls import InputError, extract_domain, validate_and_normalize_url


class TestValidateAndNormalizeUrl:
    """Test accepted URLs and their normalized form."""

    @pytest.mark.parametrize("raw,expected", [
        ("example.com", "https://example.com/"),
        ("  Example.COM/Blog/Post/  ", "https://example.com/Blog/Post/"),
        ("http://example.com/a?b=1", "http://example.com/a?b=1"),
        ("https://example.com:8443/docs/", "https://example.com:8443/docs/"),
        ("HTTPS://Example.com/blog/", "https://example.com/blog/"),
        ("https://example.com/blog", "https://example.com/blog"),
        ("https://example.com/page#section", "https://example.com/page"),
    ])
    def test_normalizes(self, raw, expected):
        assert validate_and_normalize_url(raw) == expected


class TestRejectedUrls:
    """Test URLs that must never reach the network."""

    @pytest.mark.parametrize("raw", [
        "",
        "   ",
        None,
        "ftp://example.com/file",
        "javascript://alert(1)",
        "http://localhost:8000/admin",
        "http://app.localhost/",
        "http://127.0.0.1/",
        "http://192.168.1.10/router",
        "http://10.0.0.5/",
        "http://[::1]/",
        "https://intranet/",
        "https://example .com/",
        "https://exa_mple.com/",
    ])
    def test_rejects(self, raw):
        with pytest.raises(InputError):
            validate_and_normalize_url(raw)

    def test_error_keeps_the_input(self):
        with pytest.raises(InputError) as exc_info:
            validate_and_normalize_url("ftp://example.com")
        assert exc_info.value.url == "ftp://example.com"
        assert "HTTP" in str(exc_info.value)


class TestExtractDomain:
    """Test domain extraction."""

    def test_strips_www(self):
        assert extract_domain("https://www.Example.com/a") == "example.com"

    def test_keeps_subdomains(self):
        assert extract_domain("https://blog.example.com/a") == "blog.example.com"
