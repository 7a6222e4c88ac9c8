"""Pydantic schemas for API requests and responses."""

from pydantic import AliasChoices, BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime

from shortlinks.models import ShortLink


class ApiResponse(BaseModel):
    """Envelope shared by every JSON response."""

    success: bool = Field(..., description="Whether the request succeeded")
    data: Optional[Any] = Field(None, description="Response payload")
    error: Optional[str] = Field(None, description="Error summary")
    message: Optional[str] = Field(None, description="Human readable detail")


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    original_url: Optional[str] = Field(
        None,
        description="The URL to shorten; https:// is assumed when no scheme is given",
        validation_alias=AliasChoices("original_url", "originalUrl", "url"),
    )
    custom_slug: Optional[str] = Field(
        None,
        description="Optional custom slug (3-20 letters, digits, '-' or '_')",
        validation_alias=AliasChoices("custom_slug", "customSlug"),
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "original_url": "https://example.com/very/long/path/to/resource",
                    "custom_slug": None
                },
                {
                    "original_url": "github.com/user/repo",
                    "custom_slug": "myrepo"
                }
            ]
        }
    }


class UpdateSlugRequest(BaseModel):
    """Request to replace a link's short code with a custom slug."""

    slug: Optional[str] = Field(None, description="New custom slug")


class SetActiveRequest(BaseModel):
    """Request to activate or deactivate a link."""

    is_active: bool = Field(
        ...,
        description="False hides the link from redirects; True restores it",
        validation_alias=AliasChoices("is_active", "isActive"),
    )


class CreatedLink(BaseModel):
    """Payload returned after shortening a URL."""

    id: str
    original_url: str
    short_code: str
    short_url: str
    visit_count: int
    created_at: datetime


class LinkOut(BaseModel):
    """Full view of a stored link."""

    id: str
    original_url: str
    short_code: str
    short_url: str
    owner_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    visit_count: int
    is_active: bool
    is_custom_slug: bool

    @classmethod
    def from_link(cls, link: ShortLink, short_url: str) -> "LinkOut":
        return cls(short_url=short_url, **link.to_dict())


class DailyVisitsOut(BaseModel):
    date: str
    count: int


class ReferrerOut(BaseModel):
    referer: str
    count: int


class BrowserOut(BaseModel):
    browser: str
    count: int


class AnalyticsOut(BaseModel):
    """Aggregated visit statistics of one link."""

    total_visits: int
    daily_visits: List[DailyVisitsOut]
    top_referrers: List[ReferrerOut]
    browsers: List[BrowserOut]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")
