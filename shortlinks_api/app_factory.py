"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .web import web_router
from .middleware.logging import LoggingMiddleware
from .responses import register_exception_handlers
from shortlinks.auth import TokenVerifier, AnonymousVerifier


def create_app(
    service_instance,
    config,
    verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: Short link service (may be None until the lifespan sets it)
        config: Configuration instance
        verifier: Token verifier (every caller is anonymous if not specified)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Short Links",
        description="URL shortening service with visit analytics",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Store instances in app state for access in routes
    app.state.service = service_instance
    app.state.config = config
    app.state.verifier = verifier or AnonymousVerifier()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app, debug=config.debug)

    app.include_router(api_router, prefix="/api", tags=["API"])
    # Catch-all redirect route goes last
    app.include_router(web_router, tags=["Redirect"])

    return app
