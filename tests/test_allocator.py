"""Tests for short code allocation."""

import pytest

from shortlinks.allocator import CodeAllocator, sanitize_slug
from shortlinks.database.memory import InMemoryLinkRepository
from shortlinks.errors import ConflictError, ExhaustedError, ValidationError
from shortlinks.shortcode import ShortCodeGenerator


class FullRepository(InMemoryLinkRepository):
    """Repository in which every code is already taken."""

    def __init__(self):
        super().__init__()
        self.exists_calls = 0

    async def code_exists(self, short_code: str) -> bool:
        self.exists_calls += 1
        return True


class ScriptedGenerator(ShortCodeGenerator):
    """Generator returning a fixed sequence of codes."""

    def __init__(self, codes):
        super().__init__(default_length=6)
        self.codes = list(codes)

    def generate_random(self, length=None) -> str:
        return self.codes.pop(0)


class TestSanitizeSlug:

    def test_lowercases(self):
        assert sanitize_slug("My-Link") == "my-link"

    def test_replaces_and_collapses(self):
        assert sanitize_slug("My Slug!!") == "my-slug"
        assert sanitize_slug("a..b") == "a-b"
        assert sanitize_slug("--abc--") == "abc"

    def test_keeps_underscores(self):
        assert sanitize_slug("snake_case") == "snake_case"

    def test_truncates(self):
        assert sanitize_slug("x" * 30) == "x" * 20


class TestCodeAllocator:
    """Test random and custom code allocation."""

    @pytest.mark.asyncio
    async def test_allocate_free_code(self, repository):
        allocator = CodeAllocator(repository)

        code = await allocator.allocate()
        assert len(code) == 6
        assert set(code) <= set(ShortCodeGenerator.ALPHABET)

    @pytest.mark.asyncio
    async def test_allocate_skips_taken_codes(self, repository, service, anonymous):
        link = await service.create_link(anonymous, "https://example.com", "taken1")
        allocator = CodeAllocator(repository, generator=ScriptedGenerator(["taken1", "free22"]))

        assert link.short_code == "taken1"
        assert await allocator.allocate() == "free22"

    @pytest.mark.asyncio
    async def test_allocate_exhausted_after_exact_attempts(self):
        repository = FullRepository()
        allocator = CodeAllocator(repository, max_attempts=10)

        with pytest.raises(ExhaustedError):
            await allocator.allocate()

        assert repository.exists_calls == 10

    @pytest.mark.asyncio
    async def test_allocate_attempt_override(self):
        repository = FullRepository()
        allocator = CodeAllocator(repository, max_attempts=10)

        with pytest.raises(ExhaustedError):
            await allocator.allocate(max_attempts=3)

        assert repository.exists_calls == 3

    @pytest.mark.asyncio
    async def test_allocate_zero_attempts_rejected(self):
        repository = FullRepository()
        allocator = CodeAllocator(repository, max_attempts=10)

        with pytest.raises(ValueError):
            await allocator.allocate(max_attempts=0)

        assert repository.exists_calls == 0

    def test_canonical_slug(self):
        assert CodeAllocator.canonical_slug("My-Link_1") == "my-link_1"

    def test_canonical_slug_invalid_format(self):
        with pytest.raises(ValidationError, match="Invalid custom slug format"):
            CodeAllocator.canonical_slug("My Slug!!")
        with pytest.raises(ValidationError):
            CodeAllocator.canonical_slug("ab")

    def test_canonical_slug_too_short_after_sanitizing(self):
        with pytest.raises(ValidationError, match="at least 3"):
            CodeAllocator.canonical_slug("-a-")

    def test_canonical_slug_reserved(self):
        with pytest.raises(ValidationError, match="reserved"):
            CodeAllocator.canonical_slug("API")

    @pytest.mark.asyncio
    async def test_resolve_custom(self, repository):
        allocator = CodeAllocator(repository)
        assert await allocator.resolve_custom("Promo_2024") == "promo_2024"

    @pytest.mark.asyncio
    async def test_resolve_custom_conflict_after_sanitizing(self, service, repository, anonymous):
        await service.create_link(anonymous, "https://example.com", "My-Slug")
        allocator = CodeAllocator(repository)

        with pytest.raises(ConflictError, match="already taken"):
            await allocator.resolve_custom("my-slug")
