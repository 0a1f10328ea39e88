"""Document encoder.

This module provides the marshal() function that converts a mapping or a
record into a document, recursing through nested mappings, records and
sequences.
"""

from __future__ import annotations

import enum
import logging
import struct
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import (
    EncodeError,
    InvalidKeyError,
    InvalidTopLevelTypeError,
    MaxDepthError,
    NumericOverflowError,
    UnsupportedTypeError,
)
from ..models.fields import FixedWidthInt
from ..models.values import CodeWithScope
from .buffer import ByteWriter
from .schema import RecordSchema, is_record
from .tags import DOCUMENT_TERMINATOR, ElementType, WireValue

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_INT64_MIN = -(1 << 63)
_UINT64_MAX = (1 << 64) - 1


def marshal(value: Any, config: CodecConfig | None = None) -> bytes:
    """Encode a mapping or record as a document.

    Args:
        value: A mapping with ``str`` keys, a Pydantic model instance or a
            dataclass instance
        config: Codec configuration (default: ``DEFAULT_CONFIG``)

    Returns:
        The complete document, length prefix and terminator included

    Raises:
        InvalidTopLevelTypeError: If value is not a mapping or a record, or has
            its own wire form
        InvalidKeyError: If a key contains a NUL byte
        UnsupportedTypeError: If a key is not a ``str`` or a nested value has
            no wire representation
        NumericOverflowError: If an integer needs more than 64 bits
        MaxDepthError: If nesting exceeds ``config.max_depth``

    Examples:
        ```python
        from bsonwire import Int32, marshal

        marshal({})                      # b"\\x05\\x00\\x00\\x00\\x00"
        marshal({"test": Int32(10)})     # b"\\x0f\\x00\\x00\\x00\\x10test\\x00\\n\\x00\\x00\\x00\\x00"
        ```
    """
    encoder = _Encoder(config or DEFAULT_CONFIG)
    items = encoder.document_items(value)
    if items is None:
        raise InvalidTopLevelTypeError(type(value))
    writer = ByteWriter()
    encoder.write_document(writer, items, depth=1)
    data = writer.to_bytes()
    logger.debug("encoded %s as %d-byte document", type(value).__name__, len(data))
    return data


encode = marshal


def classify(value: Any, config: CodecConfig | None = None) -> tuple[int, bytes]:
    """Return the ``(tag, body)`` pair a single value encodes as.

    This is the element-level half of ``marshal``: the same dispatch the
    encoder applies to every value below the top-level document.

    Raises:
        UnsupportedTypeError: If value has no wire representation
    """
    encoder = _Encoder(config or DEFAULT_CONFIG)
    return encoder.element(value, depth=1)


class _Encoder:
    """Per-call encoder state: only the configuration."""

    def __init__(self, config: CodecConfig) -> None:
        self.config = config

    def document_items(self, value: Any) -> Iterable[tuple[Any, Any]] | None:
        """Return the key/value pairs of a document-shaped value, or None."""
        # Values with a wire form are elements, never documents
        if isinstance(value, WireValue):
            return None
        if isinstance(value, Mapping):
            return value.items()
        if is_record(value):
            return RecordSchema.from_model(type(value)).iter_items(value)
        return None

    def write_document(
        self, writer: ByteWriter, items: Iterable[tuple[Any, Any]], depth: int
    ) -> None:
        """Write a complete document: length prefix, elements, terminator."""
        if depth > self.config.max_depth:
            raise MaxDepthError(f"document nesting exceeds max_depth={self.config.max_depth}")

        start = writer.reserve_length()
        for key, item in items:
            tag, body = self.element(item, depth)
            writer.write_byte(tag)
            self._write_key(writer, key)
            writer.write_bytes(body)
        writer.write_byte(DOCUMENT_TERMINATOR)
        writer.patch_length(start)

    @staticmethod
    def _write_key(writer: ByteWriter, key: Any) -> None:
        if not isinstance(key, str):
            raise UnsupportedTypeError(type(key))
        try:
            writer.write_cstring(key.encode("utf-8"))
        except (ValueError, UnicodeEncodeError) as err:
            raise InvalidKeyError(key) from err

    def element(self, value: Any, depth: int) -> tuple[int, bytes]:
        """Classify one value into its element tag and body bytes.

        Dispatch order: extension capability, scalars, mappings, sequences,
        records. ``depth`` is the nesting level of the document holding the
        element.
        """
        # Extension capability
        if isinstance(value, CodeWithScope):
            # Scope follows this call's config and nesting
            return ElementType.CODE_WITH_SCOPE, value.frame(self._nested(value.scope.items(), depth))

        if isinstance(value, WireValue):
            tag, body = value.wire_form()
            return int(tag), bytes(body)

        # Scalars
        if value is None:
            return ElementType.NULL, b""

        if isinstance(value, enum.Enum):
            # Members are written through their .value
            raise UnsupportedTypeError(type(value))

        if isinstance(value, bool):
            return ElementType.BOOLEAN, b"\x01" if value else b"\x00"

        if isinstance(value, FixedWidthInt):
            tag = value.element_type()
            fmt = "<i" if tag == ElementType.INT32 else "<q"
            return tag, struct.pack(fmt, value.wire_value())

        if isinstance(value, int):
            return ElementType.INT64, struct.pack("<q", self._platform_int(value))

        if isinstance(value, float):
            return ElementType.FLOAT, struct.pack("<d", value)

        if isinstance(value, str):
            try:
                payload = value.encode("utf-8")
            except UnicodeEncodeError as err:
                raise EncodeError(f"string is not encodable as UTF-8: {value!r}") from err
            writer = ByteWriter()
            writer.write_string(payload)
            return ElementType.STRING, writer.to_bytes()

        if isinstance(value, (bytes, bytearray, memoryview)):
            payload = bytes(value)
            return ElementType.BINARY, struct.pack("<iB", len(payload), 0) + payload

        if isinstance(value, datetime):
            return ElementType.DATETIME, struct.pack("<q", datetime_to_millis(value))

        # Containers
        if isinstance(value, Mapping):
            return ElementType.DOCUMENT, self._nested(value.items(), depth)

        if isinstance(value, (list, tuple)):
            indexed = ((str(index), item) for index, item in enumerate(value))
            return ElementType.ARRAY, self._nested(indexed, depth)

        if is_record(value):
            items = RecordSchema.from_model(type(value)).iter_items(value)
            return ElementType.DOCUMENT, self._nested(items, depth)

        raise UnsupportedTypeError(type(value))

    def _nested(self, items: Iterable[tuple[Any, Any]], depth: int) -> bytes:
        # Built in its own buffer so the length prefix is known before the parent writes it
        writer = ByteWriter()
        self.write_document(writer, items, depth + 1)
        return writer.to_bytes()

    @staticmethod
    def _platform_int(value: int) -> int:
        if _INT64_MIN <= value <= _UINT64_MAX:
            # Values past the signed range keep their 64-bit pattern
            return value - (1 << 64) if value >= 1 << 63 else value
        raise NumericOverflowError(f"integer {value} does not fit in 64 bits")


def datetime_to_millis(value: datetime) -> int:
    """Convert a datetime to milliseconds since the Unix epoch.

    Naive datetimes are taken to be in UTC.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000
