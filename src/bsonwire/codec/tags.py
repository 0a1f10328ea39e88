"""Wire type tags and the extension capability.

Every element in a document starts with one tag byte. ``ElementType`` is the
closed vocabulary of tags this codec understands; ``WireValue`` is the
contract a value implements to write its own ``(tag, body)`` pair instead of
going through the encoder's default dispatch.
"""

from __future__ import annotations

import enum
from typing import Protocol, runtime_checkable


class ElementType(enum.IntEnum):
    """Element type tags."""

    FLOAT = 0x01
    STRING = 0x02
    DOCUMENT = 0x03
    ARRAY = 0x04
    BINARY = 0x05
    OBJECT_ID = 0x07
    BOOLEAN = 0x08
    DATETIME = 0x09
    NULL = 0x0A
    REGEX = 0x0B
    CODE = 0x0D
    SYMBOL = 0x0E
    CODE_WITH_SCOPE = 0x0F
    INT32 = 0x10
    TIMESTAMP = 0x11
    INT64 = 0x12
    MAX_KEY = 0x7F
    MIN_KEY = 0xFF


DOCUMENT_TERMINATOR = 0x00


@runtime_checkable
class WireValue(Protocol):
    """A value that supplies its own wire representation.

    ``wire_form`` returns the element tag and the exact body bytes that
    follow the element key. The encoder writes them verbatim, so the body
    must already carry any length prefix or terminator its tag requires.

    Example:
        >>> class Flag:
        ...     def __init__(self, on: bool) -> None:
        ...         self.on = on
        ...     def wire_form(self) -> tuple[int, bytes]:
        ...         return ElementType.BOOLEAN, b"\\x01" if self.on else b"\\x00"
    """

    def wire_form(self) -> tuple[int, bytes]:
        ...


def tag_name(tag: int) -> str:
    """Return a readable name for a tag byte, known or not."""
    try:
        return ElementType(tag).name.lower()
    except ValueError:
        return f"0x{tag:02X}"
