"""API routes implementation."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from datetime import datetime, timezone

from .schemas import (
    ApiResponse,
    ShortenRequest,
    UpdateSlugRequest,
    SetActiveRequest,
    CreatedLink,
    LinkOut,
    AnalyticsOut,
    HealthResponse,
)
from .dependencies import get_service, get_config, optional_context, required_context
from ..responses import error_response
from shortlinks.errors import NotFoundError
from shortlinks.models import RequestContext, ShortLink
from shortlinks.service import ShortLinkService
from shortlinks.common.url_builder import build_short_url
from shortlinks.common.headers import build_base_url, get_forwarded_path_prefix

router = APIRouter()


def _short_url(request: Request, config, short_code: str) -> str:
    """Absolute short URL for a code, honouring proxy headers and the configured prefix."""
    headers = dict(request.headers)
    base_url = build_base_url(
        headers=headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    path_prefix = get_forwarded_path_prefix(headers) or config.path_prefix
    return build_short_url(short_code=short_code, base_url=base_url, path_prefix=path_prefix)


def _link_out(request: Request, config, link: ShortLink) -> dict:
    return LinkOut.from_link(link, _short_url(request, config, link.short_code)).model_dump(mode="json")


@router.post(
    "/shorten",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ApiResponse, "description": "Invalid URL or slug, or slug taken"},
        503: {"model": ApiResponse, "description": "No free short code found, retry"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom slug.",
)
async def shorten_url(
    request: Request,
    body: ShortenRequest,
    ctx: RequestContext = Depends(optional_context),
    service: ShortLinkService = Depends(get_service),
    config=Depends(get_config),
):
    """Create a shortened URL; authenticated callers own the new link."""
    if not body.original_url:
        return error_response(status.HTTP_400_BAD_REQUEST, "Original URL is required")

    link = await service.create_link(ctx, body.original_url, custom_slug=body.custom_slug)

    data = CreatedLink(
        id=link.id,
        original_url=link.original_url,
        short_code=link.short_code,
        short_url=_short_url(request, config, link.short_code),
        visit_count=link.visit_count,
        created_at=link.created_at,
    )
    return ApiResponse(
        success=True,
        data=data.model_dump(mode="json"),
        message="URL shortened successfully",
    )


@router.get(
    "/urls",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="List URLs",
    description="The caller's links when authenticated, otherwise public links.",
)
async def list_urls(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, description="Cap for the public listing"),
    ctx: RequestContext = Depends(optional_context),
    service: ShortLinkService = Depends(get_service),
    config=Depends(get_config),
):
    """List links visible to the caller."""
    links = await service.list_links(ctx, limit=limit)
    return ApiResponse(success=True, data=[_link_out(request, config, link) for link in links])


@router.put(
    "/urls/{link_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ApiResponse, "description": "Invalid or taken slug"},
        401: {"model": ApiResponse, "description": "Missing or invalid token"},
        404: {"model": ApiResponse, "description": "Link not found"},
    },
    summary="Update URL slug",
)
async def update_url_slug(
    request: Request,
    link_id: str,
    body: UpdateSlugRequest,
    ctx: RequestContext = Depends(required_context),
    service: ShortLinkService = Depends(get_service),
    config=Depends(get_config),
):
    """Replace the short code of one of the caller's links."""
    if not body.slug:
        return error_response(status.HTTP_400_BAD_REQUEST, "New slug is required")

    link = await service.update_slug(ctx, link_id, body.slug)
    return ApiResponse(
        success=True,
        data=_link_out(request, config, link),
        message="URL updated successfully",
    )


@router.patch(
    "/urls/{link_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    responses={
        401: {"model": ApiResponse, "description": "Missing or invalid token"},
        404: {"model": ApiResponse, "description": "Link not found"},
    },
    summary="Activate or deactivate URL",
)
async def set_url_active(
    request: Request,
    link_id: str,
    body: SetActiveRequest,
    ctx: RequestContext = Depends(required_context),
    service: ShortLinkService = Depends(get_service),
    config=Depends(get_config),
):
    """Deactivated links stop redirecting but stay listed for their owner."""
    link = await service.set_active(ctx, link_id, body.is_active)
    return ApiResponse(
        success=True,
        data=_link_out(request, config, link),
        message="URL activated" if body.is_active else "URL deactivated",
    )


@router.delete(
    "/urls/{link_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    responses={
        401: {"model": ApiResponse, "description": "Missing or invalid token"},
        404: {"model": ApiResponse, "description": "Link not found"},
    },
    summary="Delete URL",
)
async def delete_url(
    link_id: str,
    ctx: RequestContext = Depends(required_context),
    service: ShortLinkService = Depends(get_service),
):
    """Delete one of the caller's links and its visit history."""
    await service.delete_link(ctx, link_id)
    return ApiResponse(success=True, message="URL deleted successfully")


@router.get(
    "/analytics/{slug}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ApiResponse, "description": "Link not found or not owned by the caller"},
    },
    summary="Get URL analytics",
)
async def get_url_analytics(
    slug: str,
    ctx: RequestContext = Depends(optional_context),
    service: ShortLinkService = Depends(get_service),
):
    """Visit totals, daily buckets, top referrers and browsers of a link."""
    try:
        snapshot = await service.get_analytics(ctx, slug)
    except NotFoundError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, e.message)

    data = AnalyticsOut.model_validate(snapshot.to_dict())
    return ApiResponse(success=True, data=data.model_dump(mode="json"))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(service: ShortLinkService = Depends(get_service)):
    """Health check endpoint for load balancers and monitoring."""
    health = await service.health_check()

    response = HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        content=response.model_dump(mode="json"),
        status_code=status.HTTP_200_OK if health["overall"] else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
