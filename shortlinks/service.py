"""Business logic service for the short link service."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict

from .allocator import CodeAllocator
from .analytics import AnalyticsAggregator
from .database.base import LinkRepository
from .database.cache import RedisCache
from .errors import AuthenticationError, ConflictError, ExhaustedError, NotFoundError
from .models import AnalyticsSnapshot, RequestContext, ShortLink, VisitorInfo
from .resolver import RedirectResolver
from .shortcode import ShortCodeGenerator
from .common.validators import validate_url


ACCESS_DENIED_MESSAGE = "URL not found or access denied"


class ShortLinkService:
    """Service layer for short link business logic.

    Holds no per-request state: the caller identity arrives as an explicit
    ``RequestContext`` on every call.
    """

    def __init__(
        self,
        repository: LinkRepository,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        max_allocation_attempts: int = 10,
        public_list_limit: int = 100,
        analytics_window_days: int = 30,
        top_referrers_limit: int = 10,
    ):
        """Initialize short link service.

        Args:
            repository: Link repository
            cache: Optional redirect cache
            short_code_generator: Optional short code generator
            logger: Optional logger
            max_allocation_attempts: Attempt budget for random code allocation
            public_list_limit: Cap for anonymous link listings
            analytics_window_days: Length of the daily visits window
            top_referrers_limit: Number of referrers reported by analytics
        """
        self.repository = repository
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self.public_list_limit = public_list_limit

        self.allocator = CodeAllocator(
            repository,
            generator=short_code_generator,
            max_attempts=max_allocation_attempts,
            logger=self.logger,
        )
        self.resolver = RedirectResolver(repository, cache=cache, logger=self.logger)
        self.aggregator = AnalyticsAggregator(
            repository,
            window_days=analytics_window_days,
            top_referrers=top_referrers_limit,
            logger=self.logger,
        )

    @staticmethod
    def _new_link(
        original_url: str,
        short_code: str,
        owner_id: Optional[str],
        is_custom_slug: bool,
    ) -> ShortLink:
        now = datetime.now(timezone.utc)
        return ShortLink(
            id=str(uuid.uuid4()),
            original_url=original_url,
            short_code=short_code,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            is_custom_slug=is_custom_slug,
        )

    async def create_link(
        self,
        ctx: RequestContext,
        original_url,
        custom_slug: Optional[str] = None,
    ) -> ShortLink:
        """Create a new short link.

        Args:
            ctx: Caller context; authenticated callers become the owner
            original_url: The URL to shorten (scheme optional)
            custom_slug: Optional custom slug

        Returns:
            The stored link

        Raises:
            ValidationError: If the URL or slug is invalid
            ConflictError: If the custom slug is taken
            ExhaustedError: If no free random code could be found
        """
        normalized = validate_url(original_url)

        if custom_slug:
            code = await self.allocator.resolve_custom(custom_slug)
            try:
                link = await self.repository.insert(
                    self._new_link(normalized, code, ctx.user_id, is_custom_slug=True)
                )
            except ConflictError as e:
                raise ConflictError("Custom slug is already taken") from e
        else:
            link = await self._insert_with_random_code(normalized, ctx.user_id)

        self.logger.info(f"Created short URL: {link.short_code} -> {link.original_url}")
        return link

    async def _insert_with_random_code(self, original_url: str, owner_id: Optional[str]) -> ShortLink:
        """Insert with a fresh random code, retrying when the store reports a collision."""
        attempts = self.allocator.max_attempts

        for attempt in range(attempts):
            code = await self.allocator.allocate()
            try:
                return await self.repository.insert(
                    self._new_link(original_url, code, owner_id, is_custom_slug=False)
                )
            except ConflictError:
                self.logger.warning(f"Code {code} taken at insert (attempt {attempt + 1}), retrying")

        raise ExhaustedError(f"Unable to store a unique short code after {attempts} attempts")

    async def resolve(self, short_code: str, visitor: Optional[VisitorInfo] = None) -> str:
        """Get the redirect target for a code; the visit is recorded in the background."""
        return await self.resolver.resolve(short_code, visitor)

    async def list_links(self, ctx: RequestContext, limit: Optional[int] = None) -> List[ShortLink]:
        """List the caller's links, or public links for anonymous callers.

        Args:
            ctx: Caller context
            limit: Optional cap for the public listing (never above the configured one)

        Returns:
            Links ordered newest first
        """
        if ctx.is_authenticated:
            return await self.repository.find_by_owner(ctx.user_id)

        cap = self.public_list_limit
        if limit is not None:
            cap = max(0, min(limit, cap))
        return await self.repository.list_public(cap)

    def _require_identity(self, ctx: RequestContext) -> str:
        if not ctx.is_authenticated:
            raise AuthenticationError("Access token required")
        return ctx.user_id

    async def _evict(self, short_code: Optional[str]) -> None:
        if self.cache and short_code:
            await self.cache.invalidate(short_code)

    async def _cached_code(self, link_id: str) -> Optional[str]:
        """Current code of a link, needed only to evict it from the cache."""
        if not self.cache:
            return None
        link = await self.repository.find_by_id(link_id)
        return link.short_code if link else None

    async def update_slug(self, ctx: RequestContext, link_id: str, slug) -> ShortLink:
        """Replace the short code of one of the caller's links with a custom slug.

        Raises:
            AuthenticationError: If the caller is anonymous
            ValidationError: If the slug format is invalid
            ConflictError: If the slug is taken by another link
            NotFoundError: If the link is missing or owned by someone else
        """
        owner_id = self._require_identity(ctx)
        code = self.allocator.canonical_slug(slug)

        holder = await self.repository.find_by_code(code, include_inactive=True)
        if holder is not None and holder.id != link_id:
            raise ConflictError("Slug is already taken")

        old_code = await self._cached_code(link_id)
        link = await self.repository.update_slug(link_id, code, required_owner_id=owner_id)
        await self._evict(old_code)

        self.logger.info(f"Updated slug for link {link_id}: {old_code or '?'} -> {code}")
        return link

    async def set_active(self, ctx: RequestContext, link_id: str, is_active: bool) -> ShortLink:
        """Deactivate or reactivate one of the caller's links."""
        owner_id = self._require_identity(ctx)

        link = await self.repository.set_active(link_id, is_active, required_owner_id=owner_id)
        await self._evict(link.short_code)

        self.logger.info(f"Link {link_id} {'activated' if is_active else 'deactivated'}")
        return link

    async def delete_link(self, ctx: RequestContext, link_id: str) -> None:
        """Delete one of the caller's links together with its visit records."""
        owner_id = self._require_identity(ctx)

        old_code = await self._cached_code(link_id)
        await self.repository.delete(link_id, required_owner_id=owner_id)
        await self._evict(old_code)

        self.logger.info(f"Deleted link {link_id}")

    async def get_analytics(
        self,
        ctx: RequestContext,
        short_code: str,
        now: Optional[datetime] = None,
    ) -> AnalyticsSnapshot:
        """Aggregate visits of a link the caller owns (or an ownerless one).

        Raises:
            NotFoundError: If the link is missing or owned by someone else
        """
        link = await self.repository.find_by_code(short_code, include_inactive=True)
        if link is None or (link.owner_id is not None and link.owner_id != ctx.user_id):
            raise NotFoundError(ACCESS_DENIED_MESSAGE)

        return await self.aggregator.aggregate(link.id, now)

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.repository.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def close(self) -> None:
        """Finish pending visit writes and close connections."""
        await self.resolver.drain()
        await self.repository.close()
        if self.cache:
            await self.cache.close()
