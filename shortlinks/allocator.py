"""Short code allocation: random codes and custom slugs."""

import logging
import re
from typing import Optional

from .shortcode import ShortCodeGenerator
from .database.base import LinkRepository
from .errors import ValidationError, ConflictError, ExhaustedError
from .common.validators import is_valid_custom_slug, is_reserved_slug


MAX_SLUG_LENGTH = 20

_SLUG_INVALID_CHARS_RE = re.compile(r"[^a-z0-9_-]")
_SLUG_DASH_RUN_RE = re.compile(r"-+")


def sanitize_slug(slug: str) -> str:
    """Produce the canonical stored code for a custom slug.

    Lowercases, replaces characters outside ``[a-z0-9_-]`` with ``-``,
    collapses dash runs, trims edge dashes and truncates to 20 characters.
    """
    slug = _SLUG_INVALID_CHARS_RE.sub("-", slug.lower())
    slug = _SLUG_DASH_RUN_RE.sub("-", slug).strip("-")
    return slug[:MAX_SLUG_LENGTH]


class CodeAllocator:
    """Allocate short codes against a repository's uniqueness space.

    The existence checks here only skip obvious collisions early. The
    repository's uniqueness constraint decides; callers must treat a
    ``ConflictError`` from ``insert`` as a collision.
    """

    def __init__(
        self,
        repository: LinkRepository,
        generator: Optional[ShortCodeGenerator] = None,
        max_attempts: int = 10,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.generator = generator or ShortCodeGenerator()
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger(__name__)

    async def allocate(self, max_attempts: Optional[int] = None) -> str:
        """Draw random codes until one is not taken.

        Args:
            max_attempts: Attempt budget (uses the allocator default if not specified)

        Returns:
            A code not currently present in the repository

        Raises:
            ExhaustedError: If every attempt collided
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError(f"Attempt budget must be positive (given value: {attempts})")

        for attempt in range(attempts):
            code = self.generator.generate_random()
            if not await self.repository.code_exists(code):
                self.logger.debug(f"Allocated code after {attempt + 1} attempts: {code}")
                return code
            self.logger.debug(f"Code collision on attempt {attempt + 1}: {code}")

        self.logger.error(f"Unable to allocate a short code after {attempts} attempts")
        raise ExhaustedError(
            f"Unable to generate unique short code after {attempts} attempts"
        )

    @staticmethod
    def canonical_slug(slug) -> str:
        """Validate a raw custom slug and return its sanitized form.

        Raises:
            ValidationError: If the raw format is invalid or the slug is reserved
        """
        is_valid, error = is_valid_custom_slug(slug)
        if not is_valid:
            raise ValidationError(error)

        code = sanitize_slug(slug)
        if len(code) < 3:
            raise ValidationError("Custom slug must contain at least 3 usable characters")

        if is_reserved_slug(code):
            raise ValidationError(f"'{code}' is a reserved word and cannot be used")

        return code

    async def resolve_custom(self, slug) -> str:
        """Turn a requested custom slug into a free stored code.

        Returns:
            The sanitized code

        Raises:
            ValidationError: If the slug format is invalid
            ConflictError: If the sanitized code is already taken
        """
        code = self.canonical_slug(slug)

        if await self.repository.code_exists(code):
            raise ConflictError("Custom slug is already taken")

        return code
