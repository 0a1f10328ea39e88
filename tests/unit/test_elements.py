"""Unit tests for element framing."""

from __future__ import annotations

import struct
from typing import Callable

import pytest

from bsonwire import (
    CodeWithScope,
    ElementType,
    Int32,
    Regex,
    TruncatedError,
    UnknownTypeError,
    UnterminatedStringError,
    iter_elements,
    marshal,
)
from bsonwire.codec.elements import document_bounds, next_element
from bsonwire.codec.lengths import LENGTH_RULES, RuleKind, length_rule


class TestDocumentBounds:
    """Test document header checks."""

    def test_empty_document(self, empty_document: bytes) -> None:
        """Test the empty document has no elements."""
        assert document_bounds(empty_document) == (4, 4)
        assert list(iter_elements(empty_document)) == []

    def test_offset_and_limit(self, empty_document: bytes) -> None:
        """Test documents embedded at an offset."""
        data = b"\xaa\xbb" + empty_document + b"\xcc"
        assert document_bounds(data, 2, 7) == (6, 6)

    def test_exceeds_limit(self, empty_document: bytes) -> None:
        """Test a document may not run past the limit."""
        with pytest.raises(TruncatedError, match="only 4 available"):
            document_bounds(empty_document, 0, 4)

    def test_missing_terminator(self) -> None:
        """Test the last byte must be 0x00."""
        with pytest.raises(TruncatedError, match="not terminated"):
            document_bounds(b"\x05\x00\x00\x00\x01")

    def test_short_prefix(self) -> None:
        """Test fewer than four bytes cannot hold the length."""
        with pytest.raises(TruncatedError):
            document_bounds(b"\x05\x00")


class TestElementWalk:
    """Test splitting documents into elements."""

    def test_keys_and_tags(self) -> None:
        """Test elements are yielded in document order."""
        data = marshal({"a": Int32(1), "b": "x", "c": None, "d": [True]})
        elements = list(iter_elements(data))
        assert [element.key for element in elements] == ["a", "b", "c", "d"]
        assert [element.tag for element in elements] == [
            ElementType.INT32,
            ElementType.STRING,
            ElementType.NULL,
            ElementType.ARRAY,
        ]

    def test_fixed_body(self, int32_document: bytes) -> None:
        """Test fixed-size bodies."""
        (element,) = iter_elements(int32_document)
        assert bytes(element.body) == b"\x0a\x00\x00\x00"
        assert element.body_start == 10
        assert element.offset == 14

    def test_string_body_excludes_length(self, hello_document: bytes) -> None:
        """Test string bodies start after the length field and keep the NUL."""
        (element,) = iter_elements(hello_document)
        assert bytes(element.body) == b"world\x00"

    def test_container_body_includes_length(self) -> None:
        """Test document bodies keep their own length prefix."""
        inner = marshal({"x": True})
        (element,) = iter_elements(marshal({"d": {"x": True}}))
        assert bytes(element.body) == inner
        nested = list(iter_elements(element.body))
        assert nested[0].key == "x"

    def test_binary_body_starts_with_subtype(self) -> None:
        """Test binary bodies hold the subtype then the payload."""
        (element,) = iter_elements(marshal({"b": b"\x01\x02"}))
        assert bytes(element.body) == b"\x00\x01\x02"

    def test_regex_body(self) -> None:
        """Test regex bodies cover both cstrings."""
        (element,) = iter_elements(marshal({"r": Regex("a+", "i")}))
        assert bytes(element.body) == b"a+\x00i\x00"

    def test_code_with_scope_skipped_whole(self) -> None:
        """Test code-with-scope is framed by its total length."""
        data = marshal({"w": CodeWithScope("f()", {"v": 1}), "after": True})
        assert [element.key for element in iter_elements(data)] == ["w", "after"]

    def test_zero_width_elements(self, build_document: Callable[..., bytes]) -> None:
        """Test null, max-key and min-key have empty bodies."""
        data = build_document(b"\x0an\x00", b"\x7fM\x00", b"\xffm\x00")
        assert [bytes(element.body) for element in iter_elements(data)] == [b"", b"", b""]

    def test_next_element_terminator(self, empty_document: bytes) -> None:
        """Test next_element returns None at the terminator."""
        assert next_element(empty_document, 4, 4) is None


class TestFramingErrors:
    """Test malformed element framing."""

    def test_unknown_tag(self, build_document: Callable[..., bytes]) -> None:
        """Test tags outside the vocabulary are rejected with the tag attached."""
        with pytest.raises(UnknownTypeError) as exc_info:
            list(iter_elements(build_document(b"\x13k\x00")))
        assert exc_info.value.tag == 0x13

    def test_cut_inside_key(self) -> None:
        """Test a document cut inside a key fails framing."""
        data = b"\x08\x00\x00\x00\x10abc"
        with pytest.raises(TruncatedError):
            list(iter_elements(data))

    def test_key_without_nul(self, build_document: Callable[..., bytes]) -> None:
        """Test a key with no NUL before the terminator."""
        data = build_document(b"\x10key")
        with pytest.raises(UnterminatedStringError):
            list(iter_elements(data))

    def test_unterminated_regex(self, build_document: Callable[..., bytes]) -> None:
        """Test a regex whose option string never ends."""
        data = build_document(b"\x0br\x00a\x00ims")
        with pytest.raises(UnterminatedStringError):
            list(iter_elements(data))

    def test_negative_binary_length(self, build_document: Callable[..., bytes]) -> None:
        """Test negative binary lengths are rejected."""
        data = build_document(b"\x05b\x00" + struct.pack("<i", -1) + b"\x00")
        with pytest.raises(TruncatedError, match="binary length"):
            list(iter_elements(data))

    def test_body_overruns_document(self, build_document: Callable[..., bytes]) -> None:
        """Test a body may not extend into the terminator."""
        data = build_document(b"\x10k\x00\x01\x00\x00")
        with pytest.raises(TruncatedError):
            list(iter_elements(data))

    def test_embedded_length_too_small(self, build_document: Callable[..., bytes]) -> None:
        """Test embedded documents shorter than five bytes are rejected."""
        data = build_document(b"\x03d\x00" + struct.pack("<i", 4))
        with pytest.raises(TruncatedError, match="embedded length"):
            list(iter_elements(data))

    def test_elements_stop_short(self) -> None:
        """Test a document whose elements end before its declared terminator."""
        data = b"\x07\x00\x00\x00\x00\x00\x00"
        with pytest.raises(TruncatedError, match="length prefix says"):
            list(iter_elements(data))


class TestLengthRules:
    """Test the length rule table."""

    def test_every_element_type_has_a_rule(self) -> None:
        """Test the table covers the whole vocabulary."""
        assert set(LENGTH_RULES) == set(ElementType)

    @pytest.mark.parametrize(
        ("tag", "kind", "size"),
        [
            (ElementType.FLOAT, RuleKind.FIXED, 8),
            (ElementType.OBJECT_ID, RuleKind.FIXED, 12),
            (ElementType.BOOLEAN, RuleKind.FIXED, 1),
            (ElementType.NULL, RuleKind.FIXED, 0),
            (ElementType.STRING, RuleKind.LENGTH_PREFIXED, 0),
            (ElementType.CODE_WITH_SCOPE, RuleKind.CONTAINER, 0),
            (ElementType.BINARY, RuleKind.BINARY, 0),
            (ElementType.REGEX, RuleKind.CSTRING_PAIR, 0),
        ],
    )
    def test_rule(self, tag: int, kind: RuleKind, size: int) -> None:
        """Test individual rules."""
        rule = length_rule(tag)
        assert rule is not None
        assert rule.kind is kind
        assert rule.size == size

    def test_unknown_tag_has_no_rule(self) -> None:
        """Test undefined tags have no rule."""
        assert length_rule(0x06) is None
