"""Document decoder.

This module provides unmarshal(), which fills an existing mapping or record
from a document, and decode(), which builds a new value of a given type.
Element bodies are interpreted here; assigning them to typed destinations
is left to the binding layer.
"""

from __future__ import annotations

import dataclasses
import logging
import struct
import types
from collections.abc import MutableMapping
from datetime import timedelta
from typing import Any, TypeVar, Union, get_args, get_origin, overload

from pydantic import BaseModel

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import (
    DecodeError,
    InvalidTargetError,
    MaxDepthError,
    NumericOverflowError,
    TruncatedError,
    UnterminatedStringError,
)
from ..models.fields import Int32, Int64
from ..models.values import Binary, Code, CodeWithScope, MaxKey, MinKey, ObjectId, Regex, Symbol, Timestamp
from .binding import (
    MAX_INDIRECTION,
    Binder,
    check_required,
    mapping_value_type,
    strip_annotation,
    type_name,
)
from .buffer import DOUBLE, INT32, INT64, ByteReader
from .elements import Buffer, Element, document_bounds, iter_elements
from .encoder import EPOCH
from .schema import is_record, is_record_type
from .tags import ElementType

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TIMESTAMP = struct.Struct("<II")


def unmarshal(
    data: Buffer,
    target: Any,
    *,
    value_type: Any = Any,
    config: CodecConfig | None = None,
) -> None:
    """Decode a document into an existing mutable mapping or record instance.

    Mapping targets receive every element under its key, decoded to its
    natural Python value (or to ``value_type`` when given). Record targets
    receive each element in the field its key resolves to; unknown keys are
    skipped.

    Args:
        data: Encoded document; bytes after the document are ignored
        target: A mutable mapping, a Pydantic model instance or a dataclass instance
        value_type: Declared value type for mapping targets
        config: Codec configuration (default: ``DEFAULT_CONFIG``)

    Raises:
        InvalidTargetError: If target is None, a class, a frozen record, or not a
            mapping or record
        TruncatedError: If the document is cut short or its lengths disagree
        UnknownTypeError: If an element tag is not in the vocabulary
        TypeMismatchError: If an element cannot be assigned to its field
        NumericOverflowError: If a number does not fit its destination

    Note:
        Fields assigned before an error keep their decoded values.

    Examples:
        ```python
        from bsonwire import marshal, unmarshal

        result = {}
        unmarshal(marshal({"a": 1}), result)
        ```
    """
    if target is None:
        raise InvalidTargetError("cannot decode into None")
    if isinstance(target, type):
        raise InvalidTargetError(
            f"cannot decode into the class {target.__name__}; pass an instance or use decode()"
        )
    if not (isinstance(target, MutableMapping) or is_record(target)):
        raise InvalidTargetError(
            f"cannot decode into {type(target).__name__}: "
            f"target must be a mutable mapping or a record instance"
        )
    if _is_frozen(target):
        raise InvalidTargetError(f"cannot decode into {type(target).__name__}: record is frozen")

    interpreter = Decoder(data, config)
    interpreter.binder.fill(target, 0, depth=1, value_type=value_type)
    logger.debug("decoded document into %s", type(target).__name__)


@overload
def decode(target_type: type[T], data: Buffer, config: CodecConfig | None = None) -> T:
    ...


@overload
def decode(target_type: Any, data: Buffer, config: CodecConfig | None = None) -> Any:
    ...


def decode(target_type: Any, data: Buffer, config: CodecConfig | None = None) -> Any:
    """Decode a document into a new value of ``target_type``.

    Args:
        target_type: A record class, ``dict`` or ``dict[str, V]``, optionally
            wrapped in ``Optional`` or ``Annotated``
        data: Encoded document
        config: Codec configuration (default: ``DEFAULT_CONFIG``)

    Returns:
        New record or mapping holding the decoded document

    Raises:
        InvalidTargetError: If target_type is not a record class or mapping type
        DecodeError: If data is malformed or does not fit target_type

    Examples:
        ```python
        from bsonwire import Document, Int32, decode, marshal

        class Point(Document):
            x: Int32
            y: Int32

        point = decode(Point, marshal({"x": Int32(1), "y": Int32(2)}))
        ```
    """
    declared = _unwrap_target(target_type)

    interpreter = Decoder(data, config)

    if is_record_type(declared):
        if issubclass(declared, BaseModel):
            record = declared.model_construct()
            interpreter.binder.fill_record(record, 0, depth=1)
            check_required(record)
        else:
            record = interpreter.binder.new_record(declared, 0, depth=1)
        logger.debug("decoded document as new %s", declared.__name__)
        return record

    try:
        value_type = mapping_value_type(declared)
    except DecodeError as err:
        raise InvalidTargetError(f"cannot decode into {type_name(target_type)}") from err
    if value_type is None:
        raise InvalidTargetError(
            f"cannot decode into {type_name(target_type)}: expected a record class or a mapping type"
        )
    result: dict[str, Any] = {}
    interpreter.binder.fill_mapping(result, 0, depth=1, value_type=value_type)
    return result


def _is_frozen(record: Any) -> bool:
    if isinstance(record, BaseModel):
        return bool(type(record).model_config.get("frozen"))
    params = getattr(type(record), "__dataclass_params__", None)
    return dataclasses.is_dataclass(record) and params is not None and params.frozen


def _unwrap_target(target_type: Any) -> Any:
    declared = target_type
    for _ in range(MAX_INDIRECTION):
        try:
            declared = strip_annotation(declared)
        except DecodeError as err:
            raise InvalidTargetError(f"cannot decode into {target_type!r}") from err
        if get_origin(declared) not in (Union, types.UnionType):
            return declared
        arms = [arm for arm in get_args(declared) if arm is not type(None)]
        if len(arms) != 1:
            break
        declared = arms[0]
    raise InvalidTargetError(f"cannot decode into {type_name(target_type)}: ambiguous target type")


class Decoder:
    """Interprets element bodies of one input buffer.

    Attributes:
        data: Input buffer as bytes
        config: Codec configuration in effect
        binder: Binding layer driven by this decoder
    """

    def __init__(self, data: Buffer, config: CodecConfig | None = None) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise DecodeError(f"cannot decode from {type(data).__name__}: expected bytes")
        self.data = bytes(data)
        self.config = config or DEFAULT_CONFIG
        self.binder = Binder(self)

    @property
    def unicode_errors(self) -> str:
        return self.config.unicode_errors

    def check_depth(self, depth: int) -> None:
        """Raise MaxDepthError if ``depth`` is past the configured limit."""
        if depth > self.config.max_depth:
            raise MaxDepthError(f"document nesting exceeds max_depth={self.config.max_depth}")

    def document(self, offset: int, depth: int, limit: int | None = None) -> dict[str, Any]:
        """Decode the document at ``offset`` into a dict of natural values."""
        self.check_depth(depth)
        result: dict[str, Any] = {}
        for element in iter_elements(self.data, offset, limit, self.unicode_errors):
            result[element.key] = self.natural(element, depth)
        return result

    def array(self, offset: int, depth: int, limit: int | None = None) -> list[Any]:
        """Decode the array document at ``offset`` into a list; keys are ignored."""
        self.check_depth(depth)
        return [
            self.natural(element, depth)
            for element in iter_elements(self.data, offset, limit, self.unicode_errors)
        ]

    def natural(self, element: Element, depth: int) -> Any:
        """Return the natural Python value of an element.

        Args:
            element: Element to interpret
            depth: Nesting level of the document holding the element
        """
        tag = element.tag
        body = element.body

        if tag == ElementType.FLOAT:
            return DOUBLE.unpack(body)[0]
        if tag == ElementType.STRING:
            return self._string(body)
        if tag == ElementType.DOCUMENT:
            return self.document(element.body_start, depth + 1, element.body_start + len(body))
        if tag == ElementType.ARRAY:
            return self.array(element.body_start, depth + 1, element.body_start + len(body))
        if tag == ElementType.BINARY:
            subtype, payload = body[0], bytes(body[1:])
            return payload if subtype == 0 else Binary(payload, subtype)
        if tag == ElementType.OBJECT_ID:
            return ObjectId(bytes(body))
        if tag == ElementType.BOOLEAN:
            return body[0] != 0
        if tag == ElementType.DATETIME:
            return self._datetime(INT64.unpack(body)[0])
        if tag == ElementType.NULL:
            return None
        if tag == ElementType.REGEX:
            pattern, flags, _ = bytes(body).split(b"\x00", 2)
            return Regex(self._text(pattern), self._text(flags))
        if tag == ElementType.CODE:
            return Code(self._string(body))
        if tag == ElementType.SYMBOL:
            return Symbol(self._string(body))
        if tag == ElementType.CODE_WITH_SCOPE:
            return self._code_with_scope(element, depth)
        if tag == ElementType.INT32:
            return Int32(INT32.unpack(body)[0])
        if tag == ElementType.TIMESTAMP:
            inc, time = _TIMESTAMP.unpack(body)
            return Timestamp(time, inc)
        if tag == ElementType.INT64:
            return Int64(INT64.unpack(body)[0])
        if tag == ElementType.MAX_KEY:
            return MaxKey()
        if tag == ElementType.MIN_KEY:
            return MinKey()
        # Framing rejects unknown tags before interpretation
        raise DecodeError(f"no interpretation for element type 0x{tag:02X}")

    def _text(self, raw: bytes) -> str:
        try:
            return raw.decode("utf-8", self.unicode_errors)
        except UnicodeDecodeError as err:
            raise DecodeError(f"string is not valid UTF-8: {raw[:32]!r}") from err

    def _string(self, body: memoryview) -> str:
        # Body is the declared length's worth of bytes, NUL included
        if body[-1] != 0:
            raise UnterminatedStringError("string body does not end with a NUL byte")
        return self._text(bytes(body[:-1]))

    def _datetime(self, millis: int) -> Any:
        try:
            value = EPOCH + timedelta(milliseconds=millis)
        except OverflowError as err:
            raise NumericOverflowError(f"datetime {millis} ms is outside the supported range") from err
        return value if self.config.tz_aware else value.replace(tzinfo=None)

    def _code_with_scope(self, element: Element, depth: int) -> CodeWithScope:
        start = element.body_start
        end = start + len(element.body)
        reader = ByteReader(self.data, start, end)
        reader.read_int32()  # total, already checked by framing
        length = reader.read_int32()
        if length < 1:
            raise TruncatedError(f"invalid string length {length} at offset {start + 4}")
        code = self._string(reader.read_bytes(length))
        scope_start = reader.position
        _, terminator = document_bounds(self.data, scope_start, end)
        if terminator + 1 != end:
            raise TruncatedError(f"code-with-scope at offset {start} has bytes after its scope")
        scope = self.document(scope_start, depth + 1, end)
        return CodeWithScope(code, scope)


__all__ = ["Decoder", "decode", "unmarshal"]
