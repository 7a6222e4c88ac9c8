#!/usr/bin/env python3
"""
Main entry point for the short link service.

Concurrency: requests are served with async I/O (FastAPI + asyncpg connection
pool + redis.asyncio). Set WORKERS > 1 for multi-process scaling; short code
uniqueness is enforced by the database, so workers share nothing in-process.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - postgresql://... DSN, or memory:// for an in-process store
    DATABASE_CREATE_TABLES - Set to true to create tables at startup
    REDIS_URL - Redis connection URL (optional)
    AUTH_URL - Token verification endpoint (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import Config, load_config
from shortlinks.auth import create_verifier
from shortlinks.database import create_repository
from shortlinks.database.cache import RedisCache
from shortlinks.service import ShortLinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging
from shortlinks_api import create_app


async def build_service(config: Config, logger) -> ShortLinkService:
    """Construct the repository, cache and service described by ``config``."""
    logger.info(f"Using link store {config.database_url.split('@')[-1]}")
    repository = create_repository(
        config.database_url,
        pool_max_size=config.database_pool_max_size,
        connection_timeout_seconds=config.database_timeout_seconds,
        create_tables=config.database_create_tables,
        logger=logger,
    )

    cache = None
    if config.redis_url:
        logger.info(f"Connecting to Redis at {config.redis_url}")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")

    return ShortLinkService(
        repository=repository,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        logger=logger,
        max_allocation_attempts=config.max_allocation_attempts,
        public_list_limit=config.public_list_limit,
        analytics_window_days=config.analytics_window_days,
        top_referrers_limit=config.top_referrers_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short link service...")

    service = await build_service(config, logger)
    verifier = create_verifier(
        config.auth_url,
        api_key=config.auth_api_key,
        timeout_seconds=config.auth_timeout_seconds,
        logger=logger,
    )
    if not config.auth_url:
        logger.warning("AUTH_URL not set - every caller is anonymous")

    app.state.service = service
    app.state.verifier = verifier

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down short link service...")
    await service.close()
    await verifier.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short Link Service")
    logger.debug(f"Configuration: {config.model_dump(exclude={'auth_api_key'})}")

    # Service and verifier are created in the lifespan
    app = create_app(service_instance=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
