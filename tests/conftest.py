"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Callable

import pytest


@pytest.fixture
def empty_document() -> bytes:
    """Encoded empty document."""
    return b"\x05\x00\x00\x00\x00"


@pytest.fixture
def hello_document() -> bytes:
    """Encoded ``{"hello": "world"}``."""
    return b"\x16\x00\x00\x00\x02hello\x00\x06\x00\x00\x00world\x00\x00"


@pytest.fixture
def int32_document() -> bytes:
    """Encoded ``{"test": Int32(10)}``."""
    return b"\x0f\x00\x00\x00\x10test\x00\x0a\x00\x00\x00\x00"


@pytest.fixture
def build_document() -> Callable[..., bytes]:
    """Factory wrapping raw element bytes in a length prefix and terminator."""

    def build(*elements: bytes) -> bytes:
        body = b"".join(elements)
        return (len(body) + 5).to_bytes(4, "little") + body + b"\x00"

    return build
