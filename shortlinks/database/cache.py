"""Redis cache for redirect lookups."""

import json
import logging
from typing import Optional, Dict

import redis.asyncio as redis


class RedisCache:
    """Redis cache mapping active short codes to their redirect target.

    Every failure is logged and degrades to a cache miss; the repository stays
    the source of truth.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    @staticmethod
    def get_cache_key(short_code: str) -> str:
        """Generate cache key for short code."""
        return f"shortlinks:code:{short_code}"

    async def get_link(self, short_code: str) -> Optional[Dict[str, str]]:
        """Get the cached ``{"id", "original_url"}`` entry for a code.

        Returns:
            Cached entry or None
        """
        if not self.enabled or not self.client:
            return None

        try:
            raw = await self.client.get(self.get_cache_key(short_code))
            return json.loads(raw) if raw else None
        except Exception as e:
            self.logger.error(f"Cache get error: {e}")
            return None

    async def set_link(
        self,
        short_code: str,
        link_id: str,
        original_url: str,
        ttl: Optional[int] = None,
    ) -> bool:
        """Cache the redirect target for an active code.

        Returns:
            True if successful
        """
        if not self.enabled or not self.client:
            return False

        try:
            value = json.dumps({"id": link_id, "original_url": original_url})
            await self.client.setex(self.get_cache_key(short_code), ttl or self.ttl_seconds, value)
            return True
        except Exception as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def invalidate(self, short_code: str) -> bool:
        """Drop a code from the cache.

        Returns:
            True if a key was deleted
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(self.get_cache_key(short_code))
            return result > 0
        except Exception as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        if not self.enabled or not self.client:
            return False
        try:
            return bool(await self.client.ping())
        except Exception as e:
            self.logger.error(f"Cache ping error: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")
