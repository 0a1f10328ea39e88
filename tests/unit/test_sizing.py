"""Unit tests for size and inspection helpers."""

from __future__ import annotations

import pytest

from bsonwire import (
    CodeWithScope,
    Document,
    EncodeError,
    Int32,
    TruncatedError,
    document_length,
    encoded_size,
    field_sizes,
    is_valid,
    marshal,
)


class Status(Document):
    """Small record."""

    vehicle_id: Int32 = Int32(0)
    active: bool = False


class TestEncodedSize:
    """Test encoded_size."""

    def test_empty(self) -> None:
        """Test the empty document is five bytes."""
        assert encoded_size({}) == 5

    def test_record(self) -> None:
        """Test record sizes match the encoded length."""
        msg = Status(vehicle_id=42, active=True)
        assert encoded_size(msg) == len(marshal(msg))
        # prefix + (tag, "vehicle_id\0", int32) + (tag, "active\0", byte) + terminator
        assert encoded_size(msg) == 4 + (1 + 11 + 4) + (1 + 7 + 1) + 1

    def test_not_encodable(self) -> None:
        """Test values that cannot be encoded raise EncodeError."""
        with pytest.raises(EncodeError):
            encoded_size([1])


class TestFieldSizes:
    """Test field_sizes."""

    def test_from_value(self) -> None:
        """Test element sizes for a mapping."""
        assert field_sizes({"test": Int32(10)}) == {"test": 10}

    def test_from_bytes(self, hello_document: bytes) -> None:
        """Test element sizes for an encoded document."""
        assert field_sizes(hello_document) == {"hello": 17}

    def test_sum_matches_length(self) -> None:
        """Test element sizes plus framing equal the document length."""
        msg = Status(vehicle_id=1, active=False)
        assert sum(field_sizes(msg).values()) + 5 == encoded_size(msg)


class TestInspection:
    """Test document_length and is_valid."""

    def test_document_length(self, hello_document: bytes) -> None:
        """Test the prefix is read without validating the rest."""
        assert document_length(hello_document) == 22
        assert document_length(hello_document[:4]) == 22

    def test_document_length_short(self) -> None:
        """Test fewer than four bytes cannot hold a length."""
        with pytest.raises(TruncatedError):
            document_length(b"\x05\x00")

    def test_valid(self, hello_document: bytes) -> None:
        """Test a well-formed document is valid."""
        assert is_valid(hello_document)
        assert is_valid(marshal({"a": {"b": [1, 2]}}))

    def test_truncated_invalid(self, hello_document: bytes) -> None:
        """Test a cut document is invalid."""
        assert not is_valid(hello_document[:-1])

    def test_nested_invalid(self) -> None:
        """Test malformed nested documents are found."""
        data = bytearray(marshal({"a": {}}))
        data[11] = 0x01
        assert not is_valid(bytes(data))

    def test_unknown_tag_invalid(self) -> None:
        """Test unknown tags make a document invalid."""
        assert not is_valid(b"\x08\x00\x00\x00\x06a\x00\x00")

    def test_code_with_scope_valid(self) -> None:
        """Test a well-formed code-with-scope element passes."""
        assert is_valid(marshal({"w": CodeWithScope("f", {"a": Int32(1)})}))

    def test_code_with_scope_scope_invalid(self) -> None:
        """Test malformed elements inside a code-with-scope scope are found."""
        data = bytearray(marshal({"w": CodeWithScope("f", {"a": Int32(1)})}))
        # prefix, tag, "w\0", total, string length, "f\0", scope length
        assert data[21] == 0x10
        data[21] = 0x06
        assert not is_valid(bytes(data))
