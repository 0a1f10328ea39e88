"""Field type helpers and utilities.

This module provides the fixed-width integer kinds that select the wire
integer type, and a helper for overriding the wire name of a record field.
"""

from __future__ import annotations

from typing import Any, ClassVar, SupportsInt, cast

from pydantic import Field, GetCoreSchemaHandler
from pydantic.fields import FieldInfo
from pydantic_core import core_schema

from ..codec.tags import ElementType

ALIAS_METADATA_KEY = "alias"
"""Dataclass field metadata key holding a wire-name override."""


class FixedWidthInt(int):
    """Base class for integers with a declared width and signedness.

    Python integers are unbounded, so the encoder cannot tell from a plain
    ``int`` whether it should be an int32 or an int64. Subclasses of this type
    carry that decision: widths up to 32 bits encode as int32, 64-bit widths
    encode as int64, regardless of sign. Unsigned values above the signed
    range are written as their two's complement bit pattern.

    Construction range-checks the value, so an instance always fits its width.

    Example:
        >>> Int32(10)
        Int32(10)
        >>> UInt32(0xFFFFFFFF).wire_value()
        -1
    """

    bits: ClassVar[int] = 64
    signed: ClassVar[bool] = True
    min_value: ClassVar[int] = -(1 << 63)
    max_value: ClassVar[int] = (1 << 63) - 1

    def __init_subclass__(cls, bits: int = 64, signed: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.bits = bits
        cls.signed = signed
        if signed:
            cls.min_value = -(1 << (bits - 1))
            cls.max_value = (1 << (bits - 1)) - 1
        else:
            cls.min_value = 0
            cls.max_value = (1 << bits) - 1

    def __new__(cls, value: SupportsInt = 0) -> FixedWidthInt:
        number = super().__new__(cls, value)
        if not cls.min_value <= number <= cls.max_value:
            raise ValueError(
                f"{int(number)} out of range for {cls.__name__} "
                f"[{cls.min_value}, {cls.max_value}]"
            )
        return number

    @classmethod
    def element_type(cls) -> ElementType:
        """Return the wire integer tag this width encodes as."""
        return ElementType.INT32 if cls.bits <= 32 else ElementType.INT64

    @classmethod
    def wire_bits(cls) -> int:
        """Return the width of the wire integer (32 or 64)."""
        return 32 if cls.bits <= 32 else 64

    def wire_value(self) -> int:
        """Return the signed integer written on the wire."""
        width = self.wire_bits()
        value = int(self)
        if value >= 1 << (width - 1):
            value -= 1 << width
        return value

    @classmethod
    def from_wire(cls, value: int, wire_bits: int) -> FixedWidthInt:
        """Build an instance from a decoded wire integer.

        A negative wire value bound to an unsigned kind of the same wire width
        is read back as its bit pattern, undoing ``wire_value``.

        Raises:
            ValueError: If the value does not fit this kind
        """
        if not cls.signed and value < 0 and cls.wire_bits() == wire_bits:
            value += 1 << wire_bits
        return cls(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.int_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(int),
        )


class Int8(FixedWidthInt, bits=8, signed=True):
    """Signed 8-bit integer, encoded as int32."""


class Int16(FixedWidthInt, bits=16, signed=True):
    """Signed 16-bit integer, encoded as int32."""


class Int32(FixedWidthInt, bits=32, signed=True):
    """Signed 32-bit integer, encoded as int32."""


class Int64(FixedWidthInt, bits=64, signed=True):
    """Signed 64-bit integer, encoded as int64."""


class UInt8(FixedWidthInt, bits=8, signed=False):
    """Unsigned 8-bit integer, encoded as int32."""


class UInt16(FixedWidthInt, bits=16, signed=False):
    """Unsigned 16-bit integer, encoded as int32."""


class UInt32(FixedWidthInt, bits=32, signed=False):
    """Unsigned 32-bit integer, encoded as int32 (bit-reinterpreted)."""


class UInt64(FixedWidthInt, bits=64, signed=False):
    """Unsigned 64-bit integer, encoded as int64 (bit-reinterpreted)."""


def WireName(name: str, **kwargs: Any) -> FieldInfo:
    """Create a field whose document key differs from its attribute name.

    This is a convenience wrapper around Pydantic's Field(alias=...). The
    encoder writes ``name`` as the key, and the decoder matches it before
    trying the attribute name.

    Args:
        name: Key used in the document
        **kwargs: Additional Field() arguments (default, description, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class User(Document):
        ...     user_id: Int64 = WireName("_id")
        ...     display_name: str = WireName("name", default="")
    """
    return cast(FieldInfo, Field(alias=name, **kwargs))
