"""Validation utilities for the short link service."""

import ipaddress
import re
from typing import Tuple
from urllib.parse import urlsplit, urlunsplit, quote

from ..errors import ValidationError


MAX_URL_LENGTH = 2048

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}

BLOCKED_HOSTS = {"localhost", "127.0.0.1"}
BLOCKED_HOST_SUFFIXES = (".local",)

# Checked against the submitted text, before any parsing
DISALLOWED_SCHEME_PREFIXES = ("javascript:", "data:", "vbscript:", "file:", "ftp:")

CUSTOM_SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")
RESERVED_SLUGS = {
    "api", "health", "admin", "static", "assets", "favicon",
    "robots", "sitemap", "docs", "redoc",
}

_HTTP_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_SCHEME_PREFIX_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")
_PORT_START_RE = re.compile(r"^[0-9]+(?:[/?#]|$)")
_IGNORED_WHITESPACE_RE = re.compile(r"[\t\r\n]")
_LEADING_CONTROL_RE = re.compile(r"^[\x00-\x20]+")
_PERCENT_ESCAPE_RE = re.compile(r"%([0-9A-Fa-f]{2})")

_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_TLD_RE = re.compile(r"^(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})$")

_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
)
_USERINFO_SAFE = "!$&'()*+,;="
_PATH_SAFE = "/:@!$&'()*+,;="
_QUERY_SAFE = _PATH_SAFE + "?"


def is_safe_url(url: str) -> bool:
    """Check the raw text for a disallowed scheme prefix.

    Tabs and newlines are dropped and leading control characters stripped
    first, since browsers ignore them when parsing a URL.
    """
    probe = _IGNORED_WHITESPACE_RE.sub("", url)
    probe = _LEADING_CONTROL_RE.sub("", probe).lower()
    return not probe.startswith(DISALLOWED_SCHEME_PREFIXES)


def has_scheme(url: str) -> bool:
    """Check whether the text starts with a URI scheme, with or without ``//``.

    A ``host:port`` prefix is not a scheme.
    """
    match = _SCHEME_PREFIX_RE.match(url)
    return bool(match) and not _PORT_START_RE.match(url[match.end():])


def is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def is_fqdn(host: str) -> bool:
    """Check that ``host`` is a fully-qualified ASCII domain name with a TLD."""
    if not host or len(host) > 253 or host.endswith("."):
        return False

    labels = host.split(".")
    if len(labels) < 2:
        return False

    if not all(_LABEL_RE.match(label) for label in labels):
        return False

    return bool(_TLD_RE.match(labels[-1]))


def _ascii_host(host: str) -> str:
    """Lowercase the host and IDNA-encode internationalized names."""
    host = host.lower()
    if is_ip_literal(host) or host.isascii():
        return host
    return host.encode("idna").decode("ascii")


def is_blocked_host(host: str) -> bool:
    return host in BLOCKED_HOSTS or host.endswith(BLOCKED_HOST_SUFFIXES)


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate an absolute http(s) URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlsplit(url)

        if result.scheme.lower() not in ALLOWED_SCHEMES:
            return False, "URL must use http or https protocol"

        if not result.hostname:
            return False, "URL must have a valid domain"

        # Raises ValueError on a non-numeric or out of range port
        result.port

        host = _ascii_host(result.hostname)

    except (ValueError, UnicodeError) as e:
        return False, f"Invalid URL format: {str(e)}"

    if is_blocked_host(host):
        return False, "URL host is not allowed"

    if not (is_ip_literal(host) or is_fqdn(host)):
        return False, "URL must have a valid domain"

    return True, ""


def _canonical_component(value: str, safe: str) -> str:
    """Percent-encode a URL component into one canonical form.

    Valid escapes of unreserved characters are decoded, other valid escapes
    are upper-cased and everything outside ``safe`` is encoded, so applying
    this twice changes nothing.
    """
    out = []
    pos = 0
    for match in _PERCENT_ESCAPE_RE.finditer(value):
        out.append(quote(value[pos:match.start()], safe=safe))
        char = chr(int(match.group(1), 16))
        out.append(char if char in _UNRESERVED else "%" + match.group(1).upper())
        pos = match.end()
    out.append(quote(value[pos:], safe=safe))
    return "".join(out)


def normalize_url(url: str) -> str:
    """Re-serialize a URL into its canonical stored form.

    Prepends ``https://`` when no http(s) scheme is present, lowercases the
    scheme and host, drops the scheme's default port, defaults an empty path
    to ``/`` and canonicalizes percent-encoding. Idempotent.
    """
    url = url.strip()
    if not _HTTP_SCHEME_RE.match(url):
        url = "https://" + url

    parts = urlsplit(url)
    scheme = parts.scheme.lower()

    host = _ascii_host(parts.hostname or "")
    netloc = f"[{host}]" if ":" in host else host

    port = parts.port
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"

    if parts.username is not None:
        userinfo = _canonical_component(parts.username, _USERINFO_SAFE)
        if parts.password is not None:
            userinfo += ":" + _canonical_component(parts.password, _USERINFO_SAFE)
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((
        scheme,
        netloc,
        _canonical_component(parts.path or "/", _PATH_SAFE),
        _canonical_component(parts.query, _QUERY_SAFE),
        _canonical_component(parts.fragment, _QUERY_SAFE),
    ))


def validate_url(raw) -> str:
    """Validate a submitted URL and return its normalized form.

    Args:
        raw: The URL as submitted by the caller

    Returns:
        Canonical absolute http(s) URL

    Raises:
        ValidationError: If the input is empty, unsafe or not a valid public URL
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("URL is required")

    if len(raw) > MAX_URL_LENGTH:
        raise ValidationError(f"URL is too long (max {MAX_URL_LENGTH} characters)")

    if not is_safe_url(raw):
        raise ValidationError("URL appears to be malicious or unsafe")

    candidate = raw.strip()
    if not _HTTP_SCHEME_RE.match(candidate):
        if has_scheme(candidate):
            raise ValidationError("URL must use http or https protocol")
        candidate = "https://" + candidate

    is_valid, error = is_valid_url(candidate)
    if not is_valid:
        raise ValidationError(f"Invalid URL: {error}")

    normalized = normalize_url(candidate)

    is_valid, error = is_valid_url(normalized)
    if not is_valid:
        raise ValidationError(f"Invalid URL: {error}")

    return normalized


def is_valid_custom_slug(slug) -> Tuple[bool, str]:
    """Validate the raw format of a requested custom slug.

    Args:
        slug: The slug as submitted

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not slug or not isinstance(slug, str):
        return False, "Slug is required"

    if not CUSTOM_SLUG_PATTERN.match(slug):
        return False, (
            "Invalid custom slug format. Use 3-20 alphanumeric characters, "
            "hyphens, or underscores."
        )

    return True, ""


def is_reserved_slug(slug: str) -> bool:
    return slug.lower() in RESERVED_SLUGS
