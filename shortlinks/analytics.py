"""Visit analytics aggregation.

Pure computation over visit records the caller is already allowed to read.
Rankings are ordered by count descending, then by key ascending, so equal
counts always come out in the same order.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from .database.base import LinkRepository
from .models import (
    AnalyticsSnapshot,
    BrowserCount,
    DailyVisits,
    ReferrerCount,
    VisitRecord,
)


DEFAULT_WINDOW_DAYS = 30
DEFAULT_TOP_REFERRERS = 10

OTHER_BROWSER = "Other"


def classify_browser(user_agent: str) -> str:
    """Classify a user agent string into a browser family.

    Chrome user agents also carry a Safari token, so Safari only matches when
    no Chrome token is present. Chromium-based Edge and Opera report Chrome.
    """
    if "Chrome/" in user_agent:
        return "Chrome"
    if "Safari/" in user_agent:
        return "Safari"
    if "Firefox/" in user_agent:
        return "Firefox"
    if "Edge/" in user_agent:
        return "Edge"
    if "Opera/" in user_agent:
        return "Opera"
    return OTHER_BROWSER


def _ranked(counts: Counter) -> List[Tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class VisitTally:
    """Running counters for one link's visits, fed one record at a time."""

    def __init__(
        self,
        now: datetime,
        window_days: int = DEFAULT_WINDOW_DAYS,
        top_referrers: int = DEFAULT_TOP_REFERRERS,
    ):
        self.now = _as_utc(now)
        self.window_start = self.now - timedelta(days=window_days)
        self.top_referrers = top_referrers
        self.total = 0
        self.daily: Counter = Counter()
        self.referrers: Counter = Counter()
        self.browsers: Counter = Counter()

    def add(self, visit: VisitRecord) -> None:
        self.total += 1

        visited_at = _as_utc(visit.visited_at)
        if self.window_start <= visited_at <= self.now:
            self.daily[visited_at.date().isoformat()] += 1

        if visit.referer is not None:
            self.referrers[visit.referer] += 1

        if visit.user_agent is not None:
            self.browsers[classify_browser(visit.user_agent)] += 1

    def snapshot(self) -> AnalyticsSnapshot:
        return AnalyticsSnapshot(
            total_visits=self.total,
            daily_visits=[DailyVisits(date=d, count=c) for d, c in sorted(self.daily.items())],
            top_referrers=[
                ReferrerCount(referer=r, count=c)
                for r, c in _ranked(self.referrers)[:self.top_referrers]
            ],
            browsers=[BrowserCount(browser=b, count=c) for b, c in _ranked(self.browsers)],
        )


def summarize_visits(
    visits: Iterable[VisitRecord],
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    top_referrers: int = DEFAULT_TOP_REFERRERS,
) -> AnalyticsSnapshot:
    """Aggregate visit records into an analytics snapshot.

    Args:
        visits: All visit records of one link
        now: Reference time for the trailing daily window
        window_days: Length of the daily window in days (inclusive of both ends)
        top_referrers: Number of referrers to keep

    Returns:
        Snapshot with totals, sparse daily buckets, top referrers and browsers
    """
    tally = VisitTally(now, window_days=window_days, top_referrers=top_referrers)
    for visit in visits:
        tally.add(visit)
    return tally.snapshot()


class AnalyticsAggregator:
    """Stream a link's visits from the repository and summarize them."""

    def __init__(
        self,
        repository: LinkRepository,
        window_days: int = DEFAULT_WINDOW_DAYS,
        top_referrers: int = DEFAULT_TOP_REFERRERS,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.window_days = window_days
        self.top_referrers = top_referrers
        self.logger = logger or logging.getLogger(__name__)

    async def aggregate(self, link_id: str, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        """Compute the analytics snapshot for a link.

        Ownership must already have been checked by the caller.
        """
        tally = VisitTally(
            now or datetime.now(timezone.utc),
            window_days=self.window_days,
            top_referrers=self.top_referrers,
        )
        async for visit in self.repository.fetch_visits(link_id):
            tally.add(visit)

        self.logger.debug(f"Aggregated {tally.total} visits for link {link_id}")
        return tally.snapshot()
