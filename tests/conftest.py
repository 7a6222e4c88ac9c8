"""Pytest configuration and fixtures."""

from typing import Dict, Optional

import pytest
from httpx import AsyncClient, ASGITransport

from config import Config
from shortlinks.auth import TokenVerifier
from shortlinks.database.memory import InMemoryLinkRepository
from shortlinks.models import Identity, RequestContext
from shortlinks.service import ShortLinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging
from shortlinks_api import create_app


ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"


class StaticTokenVerifier(TokenVerifier):
    """Verifier backed by a fixed token -> identity table."""

    def __init__(self, identities: Dict[str, Identity]):
        self.identities = identities

    async def verify(self, token: str) -> Optional[Identity]:
        return self.identities.get(token)


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
async def repository(logger):
    """Create in-memory repository."""
    repo = InMemoryLinkRepository(logger=logger)
    yield repo
    await repo.close()


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6)


@pytest.fixture
async def service(repository, short_code_generator, logger):
    """Create service instance."""
    svc = ShortLinkService(
        repository=repository,
        cache=None,  # No cache for tests
        short_code_generator=short_code_generator,
        logger=logger,
    )
    yield svc
    await svc.resolver.drain()


@pytest.fixture
def alice():
    return RequestContext.for_user("user-alice", "alice@example.com")


@pytest.fixture
def bob():
    return RequestContext.for_user("user-bob", "bob@example.com")


@pytest.fixture
def anonymous():
    return RequestContext.anonymous()


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def config():
    """Test configuration."""
    return Config(
        database_url="memory://",
        base_url="http://testserver",
    )


@pytest.fixture
def verifier():
    return StaticTokenVerifier({
        ALICE_TOKEN: Identity(id="user-alice", email="alice@example.com"),
        BOB_TOKEN: Identity(id="user-bob", email="bob@example.com"),
    })


@pytest.fixture
def app(service, config, verifier):
    """Create test FastAPI app."""
    return create_app(service_instance=service, config=config, verifier=verifier)


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def alice_headers():
    return {"Authorization": f"Bearer {ALICE_TOKEN}"}


@pytest.fixture
def bob_headers():
    return {"Authorization": f"Bearer {BOB_TOKEN}"}
