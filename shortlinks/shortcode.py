"""Short code generation utilities."""

import secrets
from typing import Optional


class ShortCodeGenerator:
    """Generate random short codes for links."""

    # Digits and letters minus the visually ambiguous 0/O/o and 1/I/l
    ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz"

    def __init__(self, default_length: int = 6):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
        """
        if default_length < 1:
            raise ValueError(f"Code length must be positive (given value: {default_length})")
        self.default_length = default_length

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return "".join(secrets.choice(self.ALPHABET) for _ in range(length))
