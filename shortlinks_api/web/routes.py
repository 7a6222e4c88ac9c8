"""Public routes: health probe and short code redirects."""

from fastapi import APIRouter, Depends, Request, HTTPException, status
from fastapi.responses import RedirectResponse

from ..api.dependencies import get_service
from ..responses import error_response
from shortlinks.errors import NotFoundError
from shortlinks.service import ShortLinkService
from shortlinks.common.headers import extract_visitor_info

router = APIRouter()


@router.get("/health", include_in_schema=False)
async def health_check_web(service: ShortLinkService = Depends(get_service)):
    """Health check endpoint (simple version for load balancers)."""
    health = await service.health_check()

    if health["overall"]:
        return {"status": "healthy"}
    else:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy",
        )


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(
    request: Request,
    short_code: str,
    service: ShortLinkService = Depends(get_service),
):
    """Redirect to the original URL; the visit is recorded in the background."""
    visitor = extract_visitor_info(
        dict(request.headers),
        client_host=request.client.host if request.client else None,
    )

    try:
        original_url = await service.resolve(short_code, visitor)
    except NotFoundError as e:
        return error_response(status.HTTP_404_NOT_FOUND, "Short URL not found", e.message)

    return RedirectResponse(url=original_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
