"""Document size and inspection utilities.

This module provides functions that report how large a value encodes, how
its bytes split across top-level elements, and whether a buffer holds a
well-formed document.
"""

from __future__ import annotations

from typing import Any, Union

from ..codec.buffer import INT32, ByteReader
from ..codec.elements import document_bounds, iter_elements
from ..codec.encoder import marshal
from ..codec.tags import ElementType
from ..config import DEFAULT_CONFIG
from ..exceptions import DecodeError, MaxDepthError, TruncatedError

Buffer = Union[bytes, bytearray, memoryview]


def encoded_size(value: Any) -> int:
    """Calculate the encoded size of a mapping or record in bytes.

    Args:
        value: Mapping or record to measure

    Returns:
        Size in bytes, length prefix and terminator included

    Raises:
        EncodeError: If value cannot be encoded

    Example:
        >>> encoded_size({})
        5
        >>> encoded_size({"test": Int32(10)})
        15
    """
    return len(marshal(value))


def field_sizes(value_or_data: Any) -> dict[str, int]:
    """Get the size in bytes of each top-level element of a document.

    Each size covers the whole element: tag byte, key and body.

    Args:
        value_or_data: Encoded document, or a mapping or record to encode first

    Returns:
        Dictionary mapping document keys to element sizes, in document order

    Raises:
        EncodeError: If a value is passed that cannot be encoded
        DecodeError: If an encoded document is malformed

    Example:
        >>> field_sizes({"test": Int32(10)})
        {'test': 10}
    """
    if isinstance(value_or_data, (bytes, bytearray, memoryview)):
        data = bytes(value_or_data)
    else:
        data = marshal(value_or_data)

    sizes: dict[str, int] = {}
    position = 4
    for element in iter_elements(data):
        sizes[element.key] = element.offset - position
        position = element.offset
    return sizes


def document_length(data: Buffer) -> int:
    """Read the declared length of the document at the start of ``data``.

    Raises:
        TruncatedError: If data is shorter than a length prefix
    """
    if len(data) < INT32.size:
        raise TruncatedError(f"need {INT32.size} bytes for a length prefix, got {len(data)}")
    return INT32.unpack_from(data, 0)[0]


def is_valid(data: Buffer) -> bool:
    """Return True if ``data`` starts with a well-framed document.

    Every element, nested documents included, is walked; element bodies
    are not interpreted.
    """
    try:
        _walk(bytes(data), 0, None)
    except DecodeError:
        return False
    return True


def _walk(data: bytes, offset: int, limit: int | None, depth: int = 1) -> None:
    if depth > DEFAULT_CONFIG.max_depth:
        raise MaxDepthError(f"document nesting exceeds max_depth={DEFAULT_CONFIG.max_depth}")
    for element in iter_elements(data, offset, limit):
        end = element.body_start + len(element.body)
        if element.tag in (ElementType.DOCUMENT, ElementType.ARRAY):
            _walk(data, element.body_start, end, depth + 1)
        elif element.tag == ElementType.CODE_WITH_SCOPE:
            _walk(data, _scope_offset(data, element.body_start, end), end, depth + 1)


def _scope_offset(data: bytes, start: int, end: int) -> int:
    reader = ByteReader(data, start, end)
    reader.read_int32()  # total
    length = reader.read_int32()
    if length < 1:
        raise TruncatedError(f"invalid string length {length} at offset {start + 4}")
    reader.read_bytes(length)
    scope = reader.position
    _, terminator = document_bounds(data, scope, end)
    if terminator + 1 != end:
        raise TruncatedError(f"code-with-scope at offset {start} has bytes after its scope")
    return scope
