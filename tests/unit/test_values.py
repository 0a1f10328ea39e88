"""Unit tests for value types and fixed-width integer kinds."""

from __future__ import annotations

import pickle
import re
import struct
from datetime import datetime, timezone

import pytest

from bsonwire import (
    Binary,
    Code,
    Int8,
    Int32,
    Int64,
    MaxKey,
    MinKey,
    ObjectId,
    Regex,
    Symbol,
    Timestamp,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    marshal,
)
from bsonwire.codec.tags import ElementType, WireValue


class TestFixedWidthInt:
    """Test fixed-width integer kinds."""

    @pytest.mark.parametrize(
        ("kind", "low", "high"),
        [
            (Int8, -128, 127),
            (Int32, -(2**31), 2**31 - 1),
            (Int64, -(2**63), 2**63 - 1),
            (UInt8, 0, 255),
            (UInt16, 0, 65535),
            (UInt64, 0, 2**64 - 1),
        ],
    )
    def test_range(self, kind: type, low: int, high: int) -> None:
        """Test construction accepts exactly the declared range."""
        assert kind(low) == low
        assert kind(high) == high
        with pytest.raises(ValueError, match="out of range"):
            kind(low - 1)
        with pytest.raises(ValueError, match="out of range"):
            kind(high + 1)

    @pytest.mark.parametrize(
        ("kind", "tag"),
        [
            (Int8, ElementType.INT32),
            (UInt16, ElementType.INT32),
            (UInt32, ElementType.INT32),
            (Int64, ElementType.INT64),
            (UInt64, ElementType.INT64),
        ],
    )
    def test_element_type(self, kind: type, tag: ElementType) -> None:
        """Test widths up to 32 bits use int32 and wider ones int64."""
        assert kind.element_type() is tag

    def test_wire_value(self) -> None:
        """Test unsigned values past the signed range become negative on the wire."""
        assert UInt32(0xFFFFFFFF).wire_value() == -1
        assert UInt32(5).wire_value() == 5
        assert UInt64(2**63).wire_value() == -(2**63)

    def test_from_wire_same_width(self) -> None:
        """Test reading back a reinterpreted value."""
        assert UInt32.from_wire(-1, 32) == 0xFFFFFFFF
        assert UInt64.from_wire(-1, 64) == 2**64 - 1

    def test_from_wire_other_width(self) -> None:
        """Test negative values of another wire width are not reinterpreted."""
        with pytest.raises(ValueError):
            UInt32.from_wire(-1, 64)

    def test_arithmetic_is_plain_int(self) -> None:
        """Test kinds behave as int in arithmetic."""
        total = Int32(2) + 3
        assert total == 5
        assert type(total) is int

    def test_repr(self) -> None:
        """Test repr names the kind."""
        assert repr(Int32(10)) == "Int32(10)"


class TestObjectId:
    """Test ObjectId."""

    def test_from_hex(self) -> None:
        """Test hex construction and rendering."""
        oid = ObjectId("4c9b8fb4a382aafe17c86e63")
        assert oid.binary == bytes.fromhex("4c9b8fb4a382aafe17c86e63")
        assert str(oid) == "4c9b8fb4a382aafe17c86e63"
        assert repr(oid) == "ObjectId('4c9b8fb4a382aafe17c86e63')"

    def test_equality_and_hash(self) -> None:
        """Test ObjectIds compare by value."""
        raw = bytes(range(12))
        assert ObjectId(raw) == ObjectId(ObjectId(raw))
        assert len({ObjectId(raw), ObjectId(raw)}) == 1
        assert ObjectId(raw) != raw

    def test_generation_time(self) -> None:
        """Test the leading four bytes are big-endian seconds."""
        oid = ObjectId(b"\x00\x00\x00\x3c" + b"\x00" * 8)
        assert oid.generation_time == datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("bad", [b"short", "zz" * 12, "abc"])
    def test_invalid(self, bad: object) -> None:
        """Test malformed input is rejected."""
        with pytest.raises(ValueError):
            ObjectId(bad)  # type: ignore[arg-type]

    def test_wrong_type(self) -> None:
        """Test non-string, non-bytes input is rejected."""
        with pytest.raises(TypeError):
            ObjectId(12)  # type: ignore[arg-type]


class TestRegex:
    """Test Regex."""

    def test_from_native(self) -> None:
        """Test compiled pattern flags become option letters."""
        regex = Regex.from_native(re.compile("a.b", re.IGNORECASE | re.MULTILINE))
        assert regex.pattern == "a.b"
        assert {"i", "m"} <= set(regex.flags)
        assert "s" not in regex.flags

    def test_options_sorted(self) -> None:
        """Test options are written in alphabetical order."""
        assert Regex("x", "smi").wire_form() == (ElementType.REGEX, b"x\x00ims\x00")


class TestBinary:
    """Test Binary equality and subtypes."""

    def test_generic_equals_bytes(self) -> None:
        """Test subtype 0 compares equal to bytes."""
        assert Binary(b"ab") == b"ab"

    def test_subtype_differs_from_bytes(self) -> None:
        """Test other subtypes do not compare equal to bytes."""
        assert Binary(b"ab", subtype=4) != b"ab"
        assert Binary(b"ab", subtype=4) != Binary(b"ab", subtype=5)
        assert Binary(b"ab", subtype=4) == Binary(b"ab", subtype=4)

    def test_invalid_subtype(self) -> None:
        """Test subtypes must fit a byte."""
        with pytest.raises(ValueError, match="subtype"):
            Binary(b"", subtype=256)

    def test_pickle(self) -> None:
        """Test the subtype survives pickling."""
        restored = pickle.loads(pickle.dumps(Binary(b"x", subtype=0x80)))
        assert restored.subtype == 0x80


class TestOtherValues:
    """Test the remaining value types."""

    def test_timestamp_range(self) -> None:
        """Test timestamp parts are unsigned 32-bit."""
        with pytest.raises(ValueError, match="Timestamp.inc"):
            Timestamp(time=0, inc=-1)
        with pytest.raises(ValueError, match="Timestamp.time"):
            Timestamp(time=2**32, inc=0)

    def test_timestamp_ordering(self) -> None:
        """Test timestamps order by time then increment."""
        assert Timestamp(1, 5) < Timestamp(2, 0)
        assert Timestamp(1, 1) < Timestamp(1, 2)

    def test_sentinels(self) -> None:
        """Test MaxKey and MinKey compare by type."""
        assert MaxKey() == MaxKey()
        assert MinKey() == MinKey()
        assert MaxKey() != MinKey()

    def test_code_and_symbol_are_str(self) -> None:
        """Test Code and Symbol behave as strings."""
        assert Code("f()") == "f()"
        assert Symbol("s").upper() == "S"
        assert repr(Code("f()")) == "Code('f()')"

    @pytest.mark.parametrize(
        "value",
        [ObjectId(bytes(12)), Regex("a"), Code("c"), Symbol("s"), Binary(b""), MaxKey(), MinKey()],
    )
    def test_wire_value_protocol(self, value: object) -> None:
        """Test the value types implement the extension capability."""
        assert isinstance(value, WireValue)

    def test_custom_wire_value(self) -> None:
        """Test a user-defined wire_form() controls encoding."""

        class Celsius:
            def __init__(self, degrees: float) -> None:
                self.degrees = degrees

            def wire_form(self) -> tuple[int, bytes]:
                return ElementType.INT32, struct.pack("<i", round(self.degrees))

        assert marshal({"t": Celsius(21.4)}) == marshal({"t": Int32(21)})
