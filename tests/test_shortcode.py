"""Tests for short code generation."""

import pytest
from shortlinks.shortcode import ShortCodeGenerator


class TestShortCodeGenerator:
    """Test short code generation."""

    def test_generate_random(self):
        """Test random code generation."""
        generator = ShortCodeGenerator(default_length=6)

        code = generator.generate_random()
        assert len(code) == 6
        assert set(code) <= set(ShortCodeGenerator.ALPHABET)

    def test_generate_random_custom_length(self):
        """Test random code with custom length."""
        generator = ShortCodeGenerator(default_length=6)

        code = generator.generate_random(length=10)
        assert len(code) == 10
        assert set(code) <= set(ShortCodeGenerator.ALPHABET)

    def test_alphabet_has_no_ambiguous_characters(self):
        alphabet = ShortCodeGenerator.ALPHABET

        assert len(alphabet) == 56
        assert len(set(alphabet)) == len(alphabet)
        for ambiguous in "0Oo1Il":
            assert ambiguous not in alphabet

    def test_codes_only_use_alphabet(self):
        generator = ShortCodeGenerator(default_length=8)

        for _ in range(200):
            code = generator.generate_random()
            assert set(code) <= set(ShortCodeGenerator.ALPHABET)

    def test_codes_are_mostly_unique(self):
        """Random codes should practically never repeat at this sample size."""
        generator = ShortCodeGenerator(default_length=6)

        codes = {generator.generate_random() for _ in range(1000)}
        assert len(codes) > 990

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            ShortCodeGenerator(default_length=0)
