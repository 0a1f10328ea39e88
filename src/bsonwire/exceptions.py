"""Exception hierarchy for bsonwire.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from BsonWireError for easy catching of any bsonwire-specific error.

A failed call never rolls back what it already wrote into a decode target:
fields bound before the failing element keep their new values.
"""

from __future__ import annotations

from typing import Any


class BsonWireError(Exception):
    """Base exception for all bsonwire errors."""

    pass


class SchemaError(BsonWireError):
    """Raised when a record definition cannot be mapped to a document.

    Examples:
        - Two fields share the same wire name
        - A field has no usable type annotation
    """

    pass


class EncodeError(BsonWireError):
    """Raised when encoding a value fails."""

    pass


class UnsupportedTypeError(EncodeError):
    """Raised when a value has no wire representation."""

    def __init__(self, value_type: type) -> None:
        super().__init__(f"unsupported type: {value_type.__module__}.{value_type.__qualname__}")
        self.value_type = value_type


class InvalidTopLevelTypeError(EncodeError):
    """Raised when the root value is not a mapping or a record."""

    def __init__(self, value_type: type) -> None:
        super().__init__(
            f"top-level value must be a mapping or a record, got {value_type.__qualname__}"
        )
        self.value_type = value_type


class InvalidKeyError(EncodeError):
    """Raised when a document key cannot be written as a cstring."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"invalid document key {key!r}: keys must be str without NUL bytes")
        self.key = key


class DecodeError(BsonWireError):
    """Raised when decoding binary data fails.

    Examples:
        - Truncated data (insufficient bytes)
        - Unknown element type tag
        - Decoded value does not fit the target field
    """

    pass


class TruncatedError(DecodeError):
    """Raised when fewer bytes remain than an element or document demands."""

    pass


class UnterminatedStringError(DecodeError):
    """Raised when a cstring or a regex pattern/options pair has no NUL terminator."""

    pass


class UnknownTypeError(DecodeError):
    """Raised when an element carries a type tag outside the vocabulary.

    Unknown tags are always fatal: the element length cannot be derived,
    so every following element would be misread.
    """

    def __init__(self, tag: int, key: str | None = None) -> None:
        where = f" for key {key!r}" if key is not None else ""
        super().__init__(f"unknown element type 0x{tag:02X}{where}")
        self.tag = tag
        self.key = key


class TypeMismatchError(DecodeError):
    """Raised when a decoded value cannot be bound to the declared target type."""

    def __init__(self, expected: str, actual: str, where: str | None = None) -> None:
        prefix = f"{where}: " if where else ""
        super().__init__(f"{prefix}cannot bind {actual} to {expected}")
        self.expected = expected
        self.actual = actual


class InvalidTargetError(DecodeError):
    """Raised when the decode target is not a mutable mapping or a record."""

    pass


class NumericOverflowError(EncodeError, DecodeError):
    """Raised when a number does not fit the integer or float width it is bound to.

    Raised by the encoder for integers wider than 64 bits and by the decoder
    when narrowing a wire number into a smaller declared type.
    """

    pass


class MaxDepthError(EncodeError, DecodeError):
    """Raised when documents nest deeper than ``CodecConfig.max_depth``."""

    pass
