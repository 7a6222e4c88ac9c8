"""Caller identity verification against an external token service."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from .models import Identity


class TokenVerifier(ABC):
    """Turns a bearer token into a caller identity."""

    @abstractmethod
    async def verify(self, token: str) -> Optional[Identity]:
        """Return the identity behind ``token``, or None if it is not valid."""
        pass

    async def close(self) -> None:
        pass


class AnonymousVerifier(TokenVerifier):
    """Verifier used when no token service is configured: nobody is authenticated."""

    async def verify(self, token: str) -> Optional[Identity]:
        return None


class HTTPTokenVerifier(TokenVerifier):
    """Verify tokens by asking the token service who they belong to.

    Sends ``GET <auth_url>`` with the bearer token and expects a JSON user
    object with at least an ``id``. Any non-200 answer or transport failure
    means "not authenticated".
    """

    def __init__(
        self,
        auth_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.auth_url = auth_url
        self.api_key = api_key
        self.logger = logger or logging.getLogger(__name__)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def verify(self, token: str) -> Optional[Identity]:
        if not token:
            return None

        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            response = await self.client.get(self.auth_url, headers=headers)
        except httpx.HTTPError as e:
            self.logger.error(f"Token verification request failed: {e}")
            return None

        if response.status_code != 200:
            self.logger.warning(f"Token rejected by auth service (status {response.status_code})")
            return None

        try:
            user = response.json()
        except ValueError:
            self.logger.error("Auth service returned a non-JSON body")
            return None

        if not isinstance(user, dict) or not user.get("id"):
            self.logger.warning("Auth service response carries no user id")
            return None

        return Identity(id=str(user["id"]), email=user.get("email") or "")

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def create_verifier(
    auth_url: Optional[str],
    api_key: Optional[str] = None,
    timeout_seconds: float = 5.0,
    logger: Optional[logging.Logger] = None,
) -> TokenVerifier:
    if not auth_url:
        return AnonymousVerifier()
    return HTTPTokenVerifier(
        auth_url,
        api_key=api_key,
        timeout_seconds=timeout_seconds,
        logger=logger,
    )
