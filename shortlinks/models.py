"""Data models for the short link service."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class ShortLink:
    """One mapping from a short code to an original URL."""

    id: str
    original_url: str
    short_code: str
    created_at: datetime
    updated_at: datetime
    owner_id: Optional[str] = None
    visit_count: int = 0
    is_active: bool = True
    is_custom_slug: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "original_url": self.original_url,
            "short_code": self.short_code,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "visit_count": self.visit_count,
            "is_active": self.is_active,
            "is_custom_slug": self.is_custom_slug,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShortLink":
        """Create from dictionary (or a database row mapping)."""
        return cls(
            id=str(data["id"]),
            original_url=data["original_url"],
            short_code=data["short_code"],
            created_at=_as_datetime(data["created_at"]),
            updated_at=_as_datetime(data["updated_at"]),
            owner_id=data.get("owner_id"),
            visit_count=data.get("visit_count", 0),
            is_active=data.get("is_active", True),
            is_custom_slug=data.get("is_custom_slug", False),
        )


@dataclass
class VisitorInfo:
    """Visitor fields captured on redirect. Every field may be absent."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None


@dataclass
class VisitRecord:
    """Append-only redirect event against a link."""

    id: str
    link_id: str
    visited_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "VisitRecord":
        """Create from dictionary (or a database row mapping)."""
        return cls(
            id=str(data["id"]),
            link_id=str(data["link_id"]),
            visited_at=_as_datetime(data["visited_at"]),
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            referer=data.get("referer"),
        )


@dataclass(frozen=True)
class Identity:
    """Caller identity supplied by the external token service."""

    id: str
    email: str = ""


@dataclass(frozen=True)
class RequestContext:
    """Per-request caller context, passed explicitly into service calls."""

    identity: Optional[Identity] = None
    access_token: Optional[str] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.id if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @classmethod
    def anonymous(cls) -> "RequestContext":
        return cls()

    @classmethod
    def for_user(cls, user_id: str, email: str = "") -> "RequestContext":
        return cls(identity=Identity(id=user_id, email=email))


@dataclass
class DailyVisits:
    date: str
    count: int


@dataclass
class ReferrerCount:
    referer: str
    count: int


@dataclass
class BrowserCount:
    browser: str
    count: int


@dataclass
class AnalyticsSnapshot:
    """Aggregated visit statistics for one link."""

    total_visits: int = 0
    daily_visits: List[DailyVisits] = field(default_factory=list)
    top_referrers: List[ReferrerCount] = field(default_factory=list)
    browsers: List[BrowserCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_visits": self.total_visits,
            "daily_visits": [{"date": d.date, "count": d.count} for d in self.daily_visits],
            "top_referrers": [{"referer": r.referer, "count": r.count} for r in self.top_referrers],
            "browsers": [{"browser": b.browser, "count": b.count} for b in self.browsers],
        }
