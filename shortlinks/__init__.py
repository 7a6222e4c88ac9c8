"""Core business logic for the short link service."""

from .shortcode import ShortCodeGenerator
from .allocator import CodeAllocator, sanitize_slug
from .resolver import RedirectResolver
from .analytics import AnalyticsAggregator, classify_browser, summarize_visits
from .service import ShortLinkService

__all__ = [
    "ShortCodeGenerator",
    "CodeAllocator",
    "sanitize_slug",
    "RedirectResolver",
    "AnalyticsAggregator",
    "classify_browser",
    "summarize_visits",
    "ShortLinkService",
]
