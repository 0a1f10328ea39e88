"""Unit tests for codec configuration."""

from __future__ import annotations

import dataclasses

import pytest

from bsonwire import DEFAULT_CONFIG, CodecConfig


class TestCodecConfig:
    """Test CodecConfig validation."""

    def test_defaults(self) -> None:
        """Test default values."""
        assert DEFAULT_CONFIG == CodecConfig(max_depth=100, tz_aware=True, unicode_errors="strict")

    def test_frozen(self) -> None:
        """Test configs cannot be modified."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.max_depth = 5  # type: ignore[misc]

    @pytest.mark.parametrize("depth", [0, -1])
    def test_invalid_max_depth(self, depth: int) -> None:
        """Test max_depth must be positive."""
        with pytest.raises(ValueError, match="max_depth must be >= 1"):
            CodecConfig(max_depth=depth)

    def test_invalid_error_handler(self) -> None:
        """Test unknown unicode error handlers are rejected."""
        with pytest.raises(ValueError, match="unknown unicode_errors handler"):
            CodecConfig(unicode_errors="no-such-handler")

    @pytest.mark.parametrize("handler", ["strict", "replace", "ignore", "backslashreplace"])
    def test_valid_error_handler(self, handler: str) -> None:
        """Test registered handlers are accepted."""
        assert CodecConfig(unicode_errors=handler).unicode_errors == handler
