"""Redirect resolution with best-effort visit recording."""

import asyncio
import logging
from typing import Optional, Set, Tuple

from .database.base import LinkRepository
from .database.cache import RedisCache
from .errors import NotFoundError
from .models import VisitorInfo


NOT_FOUND_MESSAGE = "The requested short URL does not exist or has been deactivated"


class RedirectResolver:
    """Resolve short codes to their original URL.

    Visits are recorded in a background task per redirect. A failed recording
    is logged and dropped; it never fails the redirect.
    """

    def __init__(
        self,
        repository: LinkRepository,
        cache: Optional[RedisCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self._pending: Set[asyncio.Task] = set()

    async def resolve(self, short_code: str, visitor: Optional[VisitorInfo] = None) -> str:
        """Get the original URL for an active short code and log the visit.

        Args:
            short_code: The code from the request path
            visitor: Optional visitor details for analytics

        Returns:
            The stored original URL

        Raises:
            NotFoundError: If the code is unknown or the link is inactive
        """
        target = await self._lookup(short_code)
        if target is None:
            self.logger.warning(f"Short code not found: {short_code}")
            raise NotFoundError(NOT_FOUND_MESSAGE)

        link_id, original_url = target
        self._schedule_visit(link_id, visitor or VisitorInfo())

        self.logger.debug(f"Resolved {short_code} -> {original_url}")
        return original_url

    async def _lookup(self, short_code: str) -> Optional[Tuple[str, str]]:
        if not short_code:
            return None

        if self.cache:
            cached = await self.cache.get_link(short_code)
            if cached:
                self.logger.debug(f"Cache hit for {short_code}")
                return cached["id"], cached["original_url"]

        link = await self.repository.find_by_code(short_code)
        if link is None:
            return None

        if self.cache:
            await self.cache.set_link(short_code, link.id, link.original_url)
            await self._drop_if_stale(short_code, link.id)

        return link.id, link.original_url

    async def _drop_if_stale(self, short_code: str, link_id: str) -> None:
        """Undo a cache fill that raced with a deactivate, rename or delete.

        Mutations evict after committing, so a fill written after that eviction
        is caught by reading the link again once the entry is in place.
        """
        current = await self.repository.find_by_code(short_code)
        if current is None or current.id != link_id:
            self.logger.debug(f"Dropping stale cache entry for {short_code}")
            await self.cache.invalidate(short_code)

    def _schedule_visit(self, link_id: str, visitor: VisitorInfo) -> None:
        task = asyncio.create_task(self._record_visit(link_id, visitor))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_visit(self, link_id: str, visitor: VisitorInfo) -> None:
        try:
            await self.repository.record_visit(link_id, visitor)
            self.logger.debug(f"Recorded visit for link {link_id}")
        except Exception as e:
            self.logger.error(f"Failed to record visit for link {link_id}: {e}")

    @property
    def pending_visits(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight visit recording to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
