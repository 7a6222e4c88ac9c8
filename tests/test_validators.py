"""Tests for URL and slug validation."""

import pytest

from shortlinks.errors import ValidationError
from shortlinks.common.validators import (
    MAX_URL_LENGTH,
    has_scheme,
    is_fqdn,
    is_reserved_slug,
    is_safe_url,
    is_valid_custom_slug,
    is_valid_url,
    normalize_url,
    validate_url,
)


class TestIsValidUrl:
    """Test absolute URL validation."""

    def test_valid_urls(self):
        valid, _ = is_valid_url("https://example.com")
        assert valid

        valid, _ = is_valid_url("http://example.com/path")
        assert valid

        valid, _ = is_valid_url("https://sub.example.com:8080/path?query=value")
        assert valid

        valid, _ = is_valid_url("http://203.0.113.7/status")
        assert valid

    def test_invalid_urls(self):
        valid, error = is_valid_url("")
        assert not valid
        assert "required" in error.lower()

        valid, error = is_valid_url("ftp://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, error = is_valid_url("https://nodot")
        assert not valid
        assert "domain" in error.lower()

    def test_blocked_hosts(self):
        for url in ("http://localhost/x", "http://127.0.0.1:8000", "http://printer.local/"):
            valid, error = is_valid_url(url)
            assert not valid, url
            assert "not allowed" in error

    def test_bad_port(self):
        valid, error = is_valid_url("https://example.com:99999/")
        assert not valid
        assert "Invalid URL format" in error


class TestIsFqdn:

    def test_fqdn(self):
        assert is_fqdn("example.com")
        assert is_fqdn("a.b.example.co")
        assert is_fqdn("xn--bcher-kva.de")

    def test_not_fqdn(self):
        assert not is_fqdn("example")
        assert not is_fqdn("example.com.")
        assert not is_fqdn("-bad.example.com")
        assert not is_fqdn("example.c")
        assert not is_fqdn("example.123")


class TestIsSafeUrl:

    def test_disallowed_prefixes(self):
        assert not is_safe_url("javascript:alert(1)")
        assert not is_safe_url("JavaScript:alert(1)")
        assert not is_safe_url("data:text/html,hi")
        assert not is_safe_url("vbscript:msgbox")
        assert not is_safe_url("file:///etc/passwd")

    def test_obfuscated_prefixes(self):
        assert not is_safe_url("  javascript:alert(1)")
        assert not is_safe_url("java\tscript:alert(1)")
        assert not is_safe_url("\x01javascript:alert(1)")

    def test_regular_urls(self):
        assert is_safe_url("https://example.com")
        assert is_safe_url("example.com/javascript:ok")


class TestHasScheme:

    def test_schemes(self):
        assert has_scheme("https://example.com")
        assert has_scheme("mailto:someone@example.com")
        assert has_scheme("urn:isbn:0451450523")

    def test_host_port_is_not_a_scheme(self):
        assert not has_scheme("example.com:8080")
        assert not has_scheme("example.com:8080/path?q=1")
        assert not has_scheme("example.com/path")


class TestNormalizeUrl:

    def test_prepends_https(self):
        assert normalize_url("example.com/x") == "https://example.com/x"

    def test_lowercases_scheme_and_host(self):
        assert normalize_url("HTTPS://Example.COM/Path") == "https://example.com/Path"

    def test_empty_path_becomes_slash(self):
        assert normalize_url("https://example.com") == "https://example.com/"

    def test_drops_default_port(self):
        assert normalize_url("http://example.com:80/a") == "http://example.com/a"
        assert normalize_url("https://example.com:443/a") == "https://example.com/a"
        assert normalize_url("https://example.com:8443/a") == "https://example.com:8443/a"

    def test_percent_encoding(self):
        assert normalize_url("https://example.com/a%7eb") == "https://example.com/a~b"
        assert normalize_url("https://example.com/a b") == "https://example.com/a%20b"
        assert normalize_url("https://example.com/%e2%82%ac") == "https://example.com/%E2%82%AC"

    def test_idna_host(self):
        assert normalize_url("https://bücher.de/") == "https://xn--bcher-kva.de/"

    def test_keeps_query_and_fragment(self):
        assert normalize_url("https://example.com/p?q=1&r=a/b#top") == "https://example.com/p?q=1&r=a/b#top"

    @pytest.mark.parametrize("url", [
        "example.com/x",
        "HTTP://Example.com:80",
        "https://example.com/a b?c=d e#f g",
        "https://example.com/%7e%2F%zz",
        "https://bücher.de/straße",
    ])
    def test_idempotent(self, url):
        once = normalize_url(url)
        assert normalize_url(once) == once


class TestValidateUrl:
    """Test the full submit-time URL check."""

    def test_returns_normalized(self):
        assert validate_url("example.com/x") == "https://example.com/x"
        assert validate_url("  https://Example.com  ") == "https://example.com/"

    def test_empty(self):
        with pytest.raises(ValidationError, match="required"):
            validate_url("")
        with pytest.raises(ValidationError, match="required"):
            validate_url("   ")
        with pytest.raises(ValidationError, match="required"):
            validate_url(None)

    def test_too_long(self):
        url = "https://example.com/" + "a" * MAX_URL_LENGTH
        with pytest.raises(ValidationError, match="too long"):
            validate_url(url)

    def test_unsafe(self):
        with pytest.raises(ValidationError, match="unsafe"):
            validate_url("javascript:alert(1)")
        with pytest.raises(ValidationError, match="unsafe"):
            validate_url("ftp://example.com/file")

    def test_other_scheme(self):
        with pytest.raises(ValidationError, match="http or https"):
            validate_url("gopher://example.com")

    @pytest.mark.parametrize("url", [
        "mailto:someone@example.com",
        "news:someone@example.com",
        "urn:isbn:0451450523",
        "tel:+15555550100",
    ])
    def test_other_scheme_without_slashes(self, url):
        with pytest.raises(ValidationError, match="http or https"):
            validate_url(url)

    def test_host_and_port_without_scheme(self):
        assert validate_url("example.com:8080/path") == "https://example.com:8080/path"
        assert validate_url("Example.com:8443") == "https://example.com:8443/"

    def test_blocked_host(self):
        with pytest.raises(ValidationError, match="not allowed"):
            validate_url("http://localhost:8080/admin")

    def test_not_a_domain(self):
        with pytest.raises(ValidationError):
            validate_url("not a url")


class TestCustomSlug:

    def test_valid_slugs(self):
        for slug in ("abc", "my-link", "My_Link_2024", "a" * 20):
            valid, _ = is_valid_custom_slug(slug)
            assert valid, slug

    def test_invalid_slugs(self):
        for slug in ("ab", "a" * 21, "my link", "my.link", "My Slug!!", "", None, 123):
            valid, error = is_valid_custom_slug(slug)
            assert not valid, slug
            assert error

    def test_reserved(self):
        assert is_reserved_slug("api")
        assert is_reserved_slug("Health")
        assert not is_reserved_slug("my-api")
