"""Abstract base class for short link repository implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, AsyncIterator
from datetime import datetime

from ..models import ShortLink, VisitRecord, VisitorInfo


class LinkRepository(ABC):
    """Persistence operations the short link core depends on.

    Implementations must enforce short code uniqueness themselves: a violated
    uniqueness constraint is reported as ``ConflictError``, never as a generic
    ``StorageError``. Owner-scoped mutations report a link that exists but is
    owned by someone else exactly like a missing one (``NotFoundError``).
    """

    def __init__(self, db_config: str):
        """Initialize repository.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def insert(self, link: ShortLink) -> ShortLink:
        """Persist a new link.

        Args:
            link: Fully populated link (id and timestamps already assigned)

        Returns:
            The stored link

        Raises:
            ConflictError: If the short code is already taken
            StorageError: On store failure
        """
        pass

    @abstractmethod
    async def code_exists(self, short_code: str) -> bool:
        """Check if a short code is taken by any link, active or not."""
        pass

    @abstractmethod
    async def find_by_code(
        self,
        short_code: str,
        include_inactive: bool = False,
    ) -> Optional[ShortLink]:
        """Look up a link by short code.

        Args:
            short_code: The code to look up
            include_inactive: Also return deactivated links (owner-scoped reads)

        Returns:
            The link, or None
        """
        pass

    @abstractmethod
    async def find_by_id(self, link_id: str) -> Optional[ShortLink]:
        """Look up a link by id, regardless of state."""
        pass

    @abstractmethod
    async def find_by_owner(self, owner_id: str) -> List[ShortLink]:
        """List an owner's links, newest first."""
        pass

    @abstractmethod
    async def list_public(self, limit: int = 100) -> List[ShortLink]:
        """List active ownerless links, newest first."""
        pass

    @abstractmethod
    async def update_slug(
        self,
        link_id: str,
        new_code: str,
        required_owner_id: Optional[str] = None,
    ) -> ShortLink:
        """Replace a link's short code and mark it as a custom slug.

        Raises:
            NotFoundError: If the link is missing or not owned by required_owner_id
            ConflictError: If new_code is taken by another link
        """
        pass

    @abstractmethod
    async def set_active(
        self,
        link_id: str,
        is_active: bool,
        required_owner_id: Optional[str] = None,
    ) -> ShortLink:
        """Activate or deactivate a link.

        Raises:
            NotFoundError: If the link is missing or not owned by required_owner_id
        """
        pass

    @abstractmethod
    async def delete(self, link_id: str, required_owner_id: Optional[str] = None) -> None:
        """Delete a link and, with it, all of its visit records.

        Raises:
            NotFoundError: If the link is missing or not owned by required_owner_id
        """
        pass

    @abstractmethod
    async def record_visit(
        self,
        link_id: str,
        visit: VisitorInfo,
        visited_at: Optional[datetime] = None,
    ) -> VisitRecord:
        """Append a visit record and increment the link's visit counter.

        Both writes happen atomically; concurrent calls must not lose increments.

        Raises:
            NotFoundError: If the link no longer exists
        """
        pass

    @abstractmethod
    def fetch_visits(
        self,
        link_id: str,
        since: Optional[datetime] = None,
    ) -> AsyncIterator[VisitRecord]:
        """Stream a link's visit records, oldest first.

        Args:
            link_id: The link whose visits to read
            since: Optional lower bound (inclusive) on visited_at
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass
