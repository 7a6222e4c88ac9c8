"""Common utilities for the short link service."""

from .validators import validate_url, normalize_url, is_valid_url, is_safe_url, is_valid_custom_slug
from .headers import (
    extract_forwarded_headers,
    build_base_url,
    get_forwarded_path_prefix,
    extract_visitor_info,
)
from .url_builder import build_short_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "validate_url",
    "normalize_url",
    "is_valid_url",
    "is_safe_url",
    "is_valid_custom_slug",
    "extract_forwarded_headers",
    "build_base_url",
    "get_forwarded_path_prefix",
    "extract_visitor_info",
    "build_short_url",
    "setup_logging",
    "get_logger",
]
