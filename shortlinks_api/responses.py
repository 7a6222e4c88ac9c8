"""Response envelope helpers and exception handlers."""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortlinks.errors import ShortLinkError, StorageError
from shortlinks.common.logging_config import get_logger


logger = get_logger("web")

INTERNAL_ERROR = "Internal server error"


def error_response(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    """Build a ``{success: false, error, message?}`` JSON response."""
    content = {"success": False, "error": error}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def _validation_summary(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Render every error in the response envelope.

    Expected errors carry their own message and status. Storage and
    unexpected errors are logged in full and reported generically, with the
    detail attached only in debug mode.
    """

    @app.exception_handler(ShortLinkError)
    async def handle_short_link_error(request: Request, exc: ShortLinkError):
        if isinstance(exc, StorageError):
            logger.error(f"Storage error on {request.method} {request.url.path}: {exc.message}")
            return error_response(exc.status_code, INTERNAL_ERROR, exc.message if debug else None)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            _validation_summary(exc),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return error_response(exc.status_code, "Endpoint not found")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            INTERNAL_ERROR,
            repr(exc) if debug else None,
        )
