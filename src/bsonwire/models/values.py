"""Extended scalar values.

These are the wire kinds with no native Python counterpart. Each one is an
ordinary class implementing ``wire_form()``; the encoder treats them exactly
like any third-party ``WireValue``.
"""

from __future__ import annotations

import binascii
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..codec.buffer import INT32, UINT32, ByteWriter
from ..codec.tags import ElementType
from ..exceptions import EncodeError

# re module flag -> regex option letter, in the alphabetical order the wire expects
_RE_FLAG_OPTIONS = (
    (re.IGNORECASE, "i"),
    (re.LOCALE, "l"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.UNICODE, "u"),
    (re.VERBOSE, "x"),
)


class ObjectId:
    """A 12-byte document identifier.

    Example:
        >>> oid = ObjectId("4c9b8fb4a382aafe17c86e63")
        >>> oid.binary
        b'L\\x9b\\x8f\\xb4\\xa3\\x82\\xaa\\xfe\\x17\\xc8nc'
    """

    __slots__ = ("_id",)

    def __init__(self, oid: ObjectId | bytes | str) -> None:
        """Create an ObjectId from 12 raw bytes, 24 hex digits, or another ObjectId.

        Raises:
            ValueError: If the input has the wrong length or is not valid hex
        """
        if isinstance(oid, ObjectId):
            raw = oid.binary
        elif isinstance(oid, (bytes, bytearray, memoryview)):
            raw = bytes(oid)
        elif isinstance(oid, str):
            if len(oid) != 24:
                raise ValueError(f"ObjectId hex string must be 24 characters, got {len(oid)}")
            try:
                raw = binascii.unhexlify(oid)
            except binascii.Error as err:
                raise ValueError(f"invalid ObjectId hex string: {oid!r}") from err
        else:
            raise TypeError(f"cannot build ObjectId from {type(oid).__name__}")
        if len(raw) != 12:
            raise ValueError(f"ObjectId must be 12 bytes, got {len(raw)}")
        self._id = raw

    @property
    def binary(self) -> bytes:
        """The 12 raw bytes."""
        return self._id

    @property
    def generation_time(self) -> datetime:
        """Creation time stored in the leading 4 bytes (big-endian seconds)."""
        seconds = int.from_bytes(self._id[:4], "big")
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    def wire_form(self) -> tuple[int, bytes]:
        return ElementType.OBJECT_ID, self._id

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObjectId):
            return self._id == other._id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return self._id.hex()

    def __repr__(self) -> str:
        return f"ObjectId({self._id.hex()!r})"


@dataclass(frozen=True)
class Regex:
    """A regular expression carried as pattern and option letters.

    The codec never compiles or runs the pattern. Options are written in
    alphabetical order as the wire format requires.

    Attributes:
        pattern: Regular expression source
        flags: Option letters: i, l, m, s, u, x
    """

    pattern: str
    flags: str = ""

    @classmethod
    def from_native(cls, compiled: re.Pattern[str]) -> Regex:
        """Build a Regex from a compiled ``re`` pattern, translating its flags."""
        letters = "".join(letter for flag, letter in _RE_FLAG_OPTIONS if compiled.flags & flag)
        return cls(compiled.pattern, letters)

    def wire_form(self) -> tuple[int, bytes]:
        pattern = self.pattern.encode("utf-8")
        options = "".join(sorted(self.flags)).encode("utf-8")
        if b"\x00" in pattern or b"\x00" in options:
            raise EncodeError("regex pattern and options must not contain NUL bytes")
        return ElementType.REGEX, pattern + b"\x00" + options + b"\x00"


class Code(str):
    """JavaScript code."""

    def wire_form(self) -> tuple[int, bytes]:
        writer = ByteWriter()
        writer.write_string(self.encode("utf-8"))
        return ElementType.CODE, writer.to_bytes()

    def __repr__(self) -> str:
        return f"Code({str.__repr__(self)})"


class Symbol(str):
    """A symbol: a string with its own wire tag."""

    def wire_form(self) -> tuple[int, bytes]:
        writer = ByteWriter()
        writer.write_string(self.encode("utf-8"))
        return ElementType.SYMBOL, writer.to_bytes()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


@dataclass
class CodeWithScope:
    """JavaScript code together with the variables it closes over.

    Attributes:
        code: Code source
        scope: Mapping of variable names to values, encoded as a document
    """

    code: str
    scope: dict[str, Any] = field(default_factory=dict)

    def wire_form(self) -> tuple[int, bytes]:
        # Import here to avoid circular dependency
        from ..codec.encoder import marshal

        return ElementType.CODE_WITH_SCOPE, self.frame(marshal(self.scope))

    def frame(self, scope: bytes) -> bytes:
        """Build the element body around an already encoded scope document."""
        writer = ByteWriter()
        start = writer.reserve_length()
        writer.write_string(self.code.encode("utf-8"))
        writer.write_bytes(scope)
        writer.patch_length(start)
        return writer.to_bytes()


class Binary(bytes):
    """Binary data with an explicit subtype byte.

    Plain ``bytes`` encode with subtype 0x00 and decode back to ``bytes``;
    any other subtype decodes to a Binary so the subtype survives a round trip.

    Example:
        >>> Binary(b"\\x01\\x02", subtype=0x80).subtype
        128
    """

    subtype: int

    def __new__(cls, data: bytes | bytearray | memoryview = b"", subtype: int = 0) -> Binary:
        if not 0 <= subtype <= 0xFF:
            raise ValueError(f"binary subtype must be 0-255, got {subtype}")
        instance = super().__new__(cls, data)
        instance.subtype = subtype
        return instance

    def wire_form(self) -> tuple[int, bytes]:
        return ElementType.BINARY, INT32.pack(len(self)) + bytes((self.subtype,)) + bytes(self)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Binary):
            return self.subtype == other.subtype and bytes.__eq__(self, other)
        if isinstance(other, (bytes, bytearray)):
            return self.subtype == 0 and bytes.__eq__(self, bytes(other))
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return bytes.__hash__(self)

    def __reduce__(self) -> tuple[Any, ...]:
        return (Binary, (bytes(self), self.subtype))

    def __repr__(self) -> str:
        return f"Binary({bytes.__repr__(self)}, subtype={self.subtype})"


@dataclass(frozen=True, order=True)
class Timestamp:
    """Internal replication timestamp: seconds plus an ordinal within the second.

    Attributes:
        time: Seconds since the Unix epoch (uint32)
        inc: Increment (uint32)
    """

    time: int
    inc: int

    def __post_init__(self) -> None:
        for name in ("time", "inc"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFFFFFF:
                raise ValueError(f"Timestamp.{name} must fit in 32 unsigned bits, got {value}")

    def wire_form(self) -> tuple[int, bytes]:
        return ElementType.TIMESTAMP, UINT32.pack(self.inc) + UINT32.pack(self.time)


class MaxKey:
    """Sentinel that compares greater than every other wire value."""

    def wire_form(self) -> tuple[int, bytes]:
        return ElementType.MAX_KEY, b""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MaxKey)

    def __hash__(self) -> int:
        return hash(ElementType.MAX_KEY)

    def __repr__(self) -> str:
        return "MaxKey()"


class MinKey:
    """Sentinel that compares less than every other wire value."""

    def wire_form(self) -> tuple[int, bytes]:
        return ElementType.MIN_KEY, b""

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MinKey)

    def __hash__(self) -> int:
        return hash(ElementType.MIN_KEY)

    def __repr__(self) -> str:
        return "MinKey()"
