"""Request dependencies: service access and caller context."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shortlinks.auth import TokenVerifier
from shortlinks.errors import AuthenticationError
from shortlinks.models import RequestContext
from shortlinks.service import ShortLinkService


bearer_scheme = HTTPBearer(auto_error=False)


def get_service(request: Request) -> ShortLinkService:
    return request.app.state.service


def get_config(request: Request):
    return request.app.state.config


def _verifier(request: Request) -> TokenVerifier:
    return request.app.state.verifier


async def optional_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> RequestContext:
    """Caller context for routes where authentication is optional.

    A missing, invalid or unverifiable token yields an anonymous context.
    """
    if credentials is None:
        return RequestContext.anonymous()

    identity = await _verifier(request).verify(credentials.credentials)
    if identity is None:
        return RequestContext.anonymous()
    return RequestContext(identity=identity, access_token=credentials.credentials)


async def required_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> RequestContext:
    """Caller context for routes that need an authenticated caller."""
    if credentials is None:
        raise AuthenticationError("Access token required")

    identity = await _verifier(request).verify(credentials.credentials)
    if identity is None:
        raise AuthenticationError("Invalid or expired token")
    return RequestContext(identity=identity, access_token=credentials.credentials)
