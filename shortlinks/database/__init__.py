"""Storage layer for the short link service."""

from .base import LinkRepository
from .memory import InMemoryLinkRepository
from .postgres import PostgresLinkRepository
from .cache import RedisCache

__all__ = [
    "LinkRepository",
    "InMemoryLinkRepository",
    "PostgresLinkRepository",
    "RedisCache",
    "create_repository",
]


def create_repository(db_config: str, **kwargs) -> LinkRepository:
    """Build the repository implementation selected by the URL scheme.

    Args:
        db_config: ``memory://`` or a ``postgresql://`` / ``postgres://`` DSN
        **kwargs: Passed to the implementation (logger, pool settings, ...)
    """
    scheme = db_config.split("://", 1)[0].lower()
    if scheme == "memory":
        return InMemoryLinkRepository(db_config, logger=kwargs.get("logger"))
    if scheme in ("postgres", "postgresql"):
        return PostgresLinkRepository(db_config, **kwargs)
    raise ValueError(f"Unsupported database URL scheme: {scheme!r}")
