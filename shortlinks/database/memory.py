"""In-process implementation of the link repository.

Backs the test suite and ``memory://`` local runs. State lives in plain dicts
guarded by one asyncio lock, so every operation is atomic within the event
loop; nothing is shared between processes.
"""

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, List, Dict, AsyncIterator

from .base import LinkRepository
from ..errors import ConflictError, NotFoundError
from ..models import ShortLink, VisitRecord, VisitorInfo


class InMemoryLinkRepository(LinkRepository):
    """Dictionary-backed link repository."""

    def __init__(self, db_config: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, ShortLink] = {}
        self._codes: Dict[str, str] = {}
        self._visits: Dict[str, List[VisitRecord]] = {}
        self._lock = asyncio.Lock()

    def _owned(self, link_id: str, required_owner_id: Optional[str]) -> ShortLink:
        link = self._links.get(link_id)
        if link is None or (required_owner_id is not None and link.owner_id != required_owner_id):
            raise NotFoundError("URL not found or access denied")
        return link

    async def insert(self, link: ShortLink) -> ShortLink:
        async with self._lock:
            if link.short_code in self._codes:
                raise ConflictError(f"Short code '{link.short_code}' already exists")
            stored = replace(link)
            self._links[stored.id] = stored
            self._codes[stored.short_code] = stored.id
            self._visits[stored.id] = []
            return replace(stored)

    async def code_exists(self, short_code: str) -> bool:
        return short_code in self._codes

    async def find_by_code(
        self,
        short_code: str,
        include_inactive: bool = False,
    ) -> Optional[ShortLink]:
        link_id = self._codes.get(short_code)
        if link_id is None:
            return None
        link = self._links[link_id]
        if not link.is_active and not include_inactive:
            return None
        return replace(link)

    async def find_by_id(self, link_id: str) -> Optional[ShortLink]:
        link = self._links.get(link_id)
        return replace(link) if link else None

    async def find_by_owner(self, owner_id: str) -> List[ShortLink]:
        links = [link for link in self._links.values() if link.owner_id == owner_id]
        links.sort(key=lambda link: link.created_at, reverse=True)
        return [replace(link) for link in links]

    async def list_public(self, limit: int = 100) -> List[ShortLink]:
        links = [
            link for link in self._links.values()
            if link.owner_id is None and link.is_active
        ]
        links.sort(key=lambda link: link.created_at, reverse=True)
        return [replace(link) for link in links[:limit]]

    async def update_slug(
        self,
        link_id: str,
        new_code: str,
        required_owner_id: Optional[str] = None,
    ) -> ShortLink:
        async with self._lock:
            link = self._owned(link_id, required_owner_id)
            holder = self._codes.get(new_code)
            if holder is not None and holder != link_id:
                raise ConflictError("Slug is already taken")

            del self._codes[link.short_code]
            link.short_code = new_code
            link.is_custom_slug = True
            link.updated_at = datetime.now(timezone.utc)
            self._codes[new_code] = link_id
            return replace(link)

    async def set_active(
        self,
        link_id: str,
        is_active: bool,
        required_owner_id: Optional[str] = None,
    ) -> ShortLink:
        async with self._lock:
            link = self._owned(link_id, required_owner_id)
            link.is_active = is_active
            link.updated_at = datetime.now(timezone.utc)
            return replace(link)

    async def delete(self, link_id: str, required_owner_id: Optional[str] = None) -> None:
        async with self._lock:
            link = self._owned(link_id, required_owner_id)
            del self._codes[link.short_code]
            del self._links[link_id]
            self._visits.pop(link_id, None)

    async def record_visit(
        self,
        link_id: str,
        visit: VisitorInfo,
        visited_at: Optional[datetime] = None,
    ) -> VisitRecord:
        async with self._lock:
            link = self._links.get(link_id)
            if link is None:
                raise NotFoundError(f"Link {link_id} no longer exists")

            record = VisitRecord(
                id=str(uuid.uuid4()),
                link_id=link_id,
                visited_at=visited_at or datetime.now(timezone.utc),
                ip_address=visit.ip_address,
                user_agent=visit.user_agent,
                referer=visit.referer,
            )
            self._visits[link_id].append(record)
            link.visit_count += 1
            link.updated_at = datetime.now(timezone.utc)
            return replace(record)

    async def fetch_visits(
        self,
        link_id: str,
        since: Optional[datetime] = None,
    ) -> AsyncIterator[VisitRecord]:
        async with self._lock:
            visits = sorted(self._visits.get(link_id, []), key=lambda v: v.visited_at)

        for visit in visits:
            if since is None or visit.visited_at >= since:
                yield replace(visit)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.logger.debug("In-memory repository closed")
