"""Element framing.

This module splits a document into its elements without interpreting any
element body. Each body's length comes from the length rule table, so an
element can be skipped (or handed on for interpretation) knowing only its
tag.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple, Union

from ..exceptions import DecodeError, TruncatedError, UnknownTypeError
from .buffer import ByteReader
from .lengths import LengthRule, RuleKind, length_rule
from .tags import DOCUMENT_TERMINATOR

Buffer = Union[bytes, bytearray, memoryview]

MIN_DOCUMENT_SIZE = 5


class Element(NamedTuple):
    """One ``(tag, key, body)`` triple read from a document.

    Attributes:
        tag: Element type tag
        key: Element key
        body: Body bytes, borrowing the input buffer (see ``RuleKind`` for
            what each rule keeps in the body)
        body_start: Offset of ``body`` within the input buffer
        offset: Offset of the next element
    """

    tag: int
    key: str
    body: memoryview
    body_start: int
    offset: int


def document_bounds(data: Buffer, offset: int = 0, limit: int | None = None) -> tuple[int, int]:
    """Check a document header and locate its elements.

    Args:
        data: Input buffer
        offset: Offset of the document's length prefix
        limit: Offset the document must not extend past (default: end of data)

    Returns:
        ``(first_element_offset, terminator_offset)``

    Raises:
        TruncatedError: If the prefix is unreadable, smaller than an empty
            document, runs past ``limit``, or does not end on a 0x00 terminator
    """
    limit = len(data) if limit is None else limit
    reader = ByteReader(data, offset, limit)
    length = reader.read_int32()
    if length < MIN_DOCUMENT_SIZE:
        raise TruncatedError(f"document length {length} at offset {offset} is below the minimum")
    end = offset + length
    if end > limit:
        raise TruncatedError(
            f"document at offset {offset} declares {length} bytes, only {limit - offset} available"
        )
    if data[end - 1] != DOCUMENT_TERMINATOR:
        raise TruncatedError(f"document at offset {offset} is not terminated by 0x00")
    return offset + 4, end - 1


def next_element(
    data: Buffer, offset: int, end: int, unicode_errors: str = "strict"
) -> Element | None:
    """Read the element starting at ``offset``.

    Args:
        data: Input buffer
        offset: Offset of the element's tag byte
        end: Offset of the enclosing document's terminator; no element may
            extend into it
        unicode_errors: Error handler for decoding the key

    Returns:
        The element, or None when the byte at ``offset`` is the terminator

    Raises:
        TruncatedError: If the body runs past ``end``
        UnterminatedStringError: If the key or a regex part has no NUL
        UnknownTypeError: If the tag is not in the vocabulary
    """
    tag = ByteReader(data, offset, end + 1).read_byte()
    if tag == DOCUMENT_TERMINATOR:
        return None

    rule = length_rule(tag)
    if rule is None:
        raise UnknownTypeError(tag)

    reader = ByteReader(data, offset + 1, end)
    raw_key = reader.read_cstring()
    try:
        key = bytes(raw_key).decode("utf-8", unicode_errors)
    except UnicodeDecodeError as err:
        raise DecodeError(f"element key at offset {offset + 1} is not valid UTF-8") from err
    body_start, body = _read_body(reader, rule)
    return Element(tag, key, body, body_start, reader.position)


def _read_body(reader: ByteReader, rule: LengthRule) -> tuple[int, memoryview]:
    start = reader.position

    if rule.kind is RuleKind.FIXED:
        return start, reader.read_bytes(rule.size)

    if rule.kind is RuleKind.CSTRING_PAIR:
        reader.skip_cstring()
        reader.skip_cstring()
        return start, reader.window(start, reader.position)

    length = reader.read_int32()

    if rule.kind is RuleKind.LENGTH_PREFIXED:
        if length < 1:
            raise TruncatedError(f"invalid string length {length} at offset {start}")
        return reader.position, reader.read_bytes(length)

    if rule.kind is RuleKind.CONTAINER:
        if length < MIN_DOCUMENT_SIZE:
            raise TruncatedError(f"invalid embedded length {length} at offset {start}")
        # The length counts its own four bytes, which stay in the body
        reader.read_bytes(length - 4)
        return start, reader.window(start, start + length)

    # RuleKind.BINARY: length excludes the subtype byte, which stays in the body
    if length < 0:
        raise TruncatedError(f"invalid binary length {length} at offset {start}")
    return reader.position, reader.read_bytes(length + 1)


def iter_elements(
    data: Buffer, offset: int = 0, limit: int | None = None, unicode_errors: str = "strict"
) -> Iterator[Element]:
    """Yield every element of the document at ``offset``.

    The walk must land exactly on the document's terminator; a document whose
    elements stop short of it, or overrun it, is rejected.

    Raises:
        TruncatedError: If the document is malformed or cut short
        UnterminatedStringError: If a key or regex part has no NUL
        UnknownTypeError: If an element tag is not in the vocabulary
    """
    if isinstance(data, memoryview):
        data = data.tobytes()
    position, end = document_bounds(data, offset, limit)
    while True:
        element = next_element(data, position, end, unicode_errors)
        if element is None:
            break
        yield element
        position = element.offset
    if position != end:
        raise TruncatedError(
            f"document at offset {offset} ends at {position}, its length prefix says {end + 1}"
        )
