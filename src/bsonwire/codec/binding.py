"""Target binding.

This module assigns decoded elements to a caller-owned mapping or record.
Each element is reconciled with the type declared for it: dynamic targets
(``Any``, ``object``, a plain ``dict``) receive the natural decoded value,
typed targets get a value of the declared kind or an error.

Binding writes into the target as it goes. When an element fails, fields
bound before it keep their new values.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import math
import types
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Annotated, Any, Protocol, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from ..exceptions import (
    InvalidTargetError,
    NumericOverflowError,
    TypeMismatchError,
)
from ..models.fields import FixedWidthInt
from .elements import Element, iter_elements
from .schema import RecordSchema, is_record, is_record_type
from .tags import ElementType, tag_name

logger = logging.getLogger(__name__)

MAX_INDIRECTION = 16
"""Upper bound on nested Annotated/NewType/alias wrappers stripped from a declared type."""

_NONE_TYPE = type(None)
_MISSING = object()
_UNION_ORIGINS = (Union, types.UnionType)
_DYNAMIC = (Any, object)


class Interpreter(Protocol):
    """What the binder needs from the decoder."""

    data: bytes
    unicode_errors: str

    def natural(self, element: Element, depth: int) -> Any:
        ...

    def check_depth(self, depth: int) -> None:
        ...


def strip_annotation(declared: Any) -> Any:
    """Remove ``Annotated``, ``NewType`` and type-alias wrappers from a declared type.

    Raises:
        TypeMismatchError: If the wrappers do not bottom out within MAX_INDIRECTION steps
    """
    for _ in range(MAX_INDIRECTION):
        if get_origin(declared) is Annotated:
            declared = get_args(declared)[0]
        elif hasattr(declared, "__supertype__"):
            declared = declared.__supertype__
        elif type(declared).__name__ == "TypeAliasType":
            declared = declared.__value__
        else:
            return declared
    raise TypeMismatchError("a concrete type", f"{declared!r} (too many wrappers)")


def is_dynamic(declared: Any) -> bool:
    """Return True if a declared type accepts any decoded value unconverted."""
    return declared in _DYNAMIC or isinstance(declared, TypeVar)


def type_name(declared: Any) -> str:
    """Readable name for a declared type."""
    if isinstance(declared, type):
        return declared.__name__
    return repr(declared).replace("typing.", "")


def mapping_value_type(declared: Any) -> Any | None:
    """Return the value type of a mapping type, ``Any`` if unparameterized, or None if not a mapping.

    Raises:
        TypeMismatchError: If the mapping's key type is not ``str``
    """
    origin = get_origin(declared) or declared
    if not (isinstance(origin, type) and issubclass(origin, Mapping)):
        return None
    args = get_args(declared)
    if not args:
        return Any
    key_type = strip_annotation(args[0])
    if key_type is not str and not is_dynamic(key_type):
        raise TypeMismatchError("a mapping with str keys", type_name(declared))
    return args[1]


class Binder:
    """Fills mappings and records from documents in the input buffer."""

    def __init__(self, interpreter: Interpreter) -> None:
        self.interpreter = interpreter

    def _elements(self, offset: int, limit: int | None = None) -> Any:
        return iter_elements(self.interpreter.data, offset, limit, self.interpreter.unicode_errors)

    def fill(self, target: Any, offset: int, depth: int, value_type: Any = Any) -> None:
        """Bind the document at ``offset`` into a mutable mapping or a record instance.

        Raises:
            InvalidTargetError: If target is neither
        """
        if isinstance(target, MutableMapping):
            self.fill_mapping(target, offset, depth, value_type)
        elif is_record(target):
            self.fill_record(target, offset, depth)
        else:
            raise InvalidTargetError(
                f"cannot decode into {type(target).__name__}: "
                f"target must be a mutable mapping or a record instance"
            )

    def fill_mapping(
        self,
        target: MutableMapping[str, Any],
        offset: int,
        depth: int,
        value_type: Any = Any,
        limit: int | None = None,
    ) -> None:
        """Store every element under its key; a repeated key overwrites the earlier value."""
        self.interpreter.check_depth(depth)
        for element in self._elements(offset, limit):
            target[element.key] = self.bind(element, value_type, depth, where=element.key)

    def fill_record(self, target: Any, offset: int, depth: int, limit: int | None = None) -> None:
        """Assign each element to the record field its key resolves to.

        Keys that match no field are skipped.
        """
        self.interpreter.check_depth(depth)
        schema = RecordSchema.from_model(type(target))
        for element in self._elements(offset, limit):
            field_schema = schema.resolve(element.key)
            if field_schema is None:
                logger.debug(
                    "skipping key %r: no matching field on %s", element.key, type(target).__name__
                )
                continue
            where = f"{type(target).__name__}.{field_schema.name}"
            current = getattr(target, field_schema.name, _MISSING)
            value = self.bind(element, field_schema.annotation, depth, current=current, where=where)
            _assign(target, field_schema.name, value, where)

    def record_values(
        self, record_class: type, offset: int, depth: int, limit: int | None = None
    ) -> dict[str, Any]:
        """Bind a document into ``{field name: value}`` for constructing a record."""
        self.interpreter.check_depth(depth)
        schema = RecordSchema.from_model(record_class)
        values: dict[str, Any] = {}
        for element in self._elements(offset, limit):
            field_schema = schema.resolve(element.key)
            if field_schema is None:
                logger.debug(
                    "skipping key %r: no matching field on %s", element.key, record_class.__name__
                )
                continue
            where = f"{record_class.__name__}.{field_schema.name}"
            values[field_schema.name] = self.bind(
                element, field_schema.annotation, depth, where=where
            )
        return values

    def new_record(
        self, record_class: type, offset: int, depth: int, limit: int | None = None
    ) -> Any:
        """Build a fresh record from the document at ``offset``.

        Fields absent from the document take their declared defaults.

        Raises:
            TypeMismatchError: If a field without a default is absent
        """
        values = self.record_values(record_class, offset, depth, limit)
        if issubclass(record_class, BaseModel):
            record = record_class.model_construct(**values)
            check_required(record)
            return record
        init_values = {
            f.name: values[f.name] for f in dataclasses.fields(record_class) if f.init and f.name in values
        }
        try:
            record = record_class(**init_values)
        except TypeError as err:
            raise TypeMismatchError(record_class.__name__, f"document ({err})") from err
        for name, value in values.items():
            if name not in init_values:
                _assign(record, name, value, f"{record_class.__name__}.{name}")
        return record

    def bind(
        self,
        element: Element,
        declared: Any,
        depth: int,
        current: Any = _MISSING,
        where: str | None = None,
    ) -> Any:
        """Turn one element into a value of the declared type.

        Args:
            element: Element to bind
            declared: Declared type of the destination
            depth: Nesting level of the document holding the element
            current: Value the destination holds now, if any; a nested record
                already present is filled in place
            where: Destination description for error messages

        Raises:
            TypeMismatchError: If the element's kind cannot become the declared type
            NumericOverflowError: If a number does not fit the declared type
        """
        declared = strip_annotation(declared)
        if is_dynamic(declared):
            return self.interpreter.natural(element, depth)

        tag = element.tag
        origin = get_origin(declared)

        if origin in _UNION_ORIGINS:
            return self._bind_union(element, declared, depth, current, where)

        if tag == ElementType.NULL:
            if declared is _NONE_TYPE:
                return None
            raise TypeMismatchError(type_name(declared), "null", where)

        limit = element.body_start + len(element.body)

        if tag == ElementType.DOCUMENT:
            if is_record_type(declared):
                if isinstance(current, declared) and not isinstance(current, type):
                    self.fill_record(current, element.body_start, depth + 1, limit)
                    return current
                return self.new_record(declared, element.body_start, depth + 1, limit)
            value_type = mapping_value_type(declared)
            if value_type is not None:
                mapping_class = origin or declared
                result: MutableMapping[str, Any] = (
                    mapping_class()
                    if isinstance(mapping_class, type) and issubclass(mapping_class, MutableMapping)
                    else {}
                )
                self.fill_mapping(result, element.body_start, depth + 1, value_type, limit)
                return result

        if tag == ElementType.ARRAY:
            sequence = self._bind_array(element, declared, depth, where)
            if sequence is not _MISSING:
                return sequence

        value = self.interpreter.natural(element, depth)
        return reconcile(value, declared, tag, where)

    def _bind_union(
        self, element: Element, declared: Any, depth: int, current: Any, where: str | None
    ) -> Any:
        arms = get_args(declared)
        if element.tag == ElementType.NULL and _NONE_TYPE in arms:
            return None
        candidates = [arm for arm in arms if arm is not _NONE_TYPE]
        if len(candidates) == 1:
            return self.bind(element, candidates[0], depth, current, where)
        for arm in candidates:
            try:
                return self.bind(element, arm, depth, current, where)
            except (TypeMismatchError, NumericOverflowError):
                continue
        raise TypeMismatchError(type_name(declared), tag_name(element.tag), where)

    def _bind_array(self, element: Element, declared: Any, depth: int, where: str | None) -> Any:
        origin = get_origin(declared) or declared
        if not isinstance(origin, type) or issubclass(origin, (str, bytes, bytearray)):
            return _MISSING
        if not issubclass(origin, (Sequence, MutableSequence, set, frozenset)):
            return _MISSING

        self.interpreter.check_depth(depth + 1)
        limit = element.body_start + len(element.body)
        items = list(self._elements(element.body_start, limit))
        args = get_args(declared)

        if issubclass(origin, tuple) and args and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(items):
                raise TypeMismatchError(
                    type_name(declared), f"array of {len(items)} elements", where
                )
            return tuple(
                self.bind(item, arm, depth + 1, where=f"{where}[{index}]")
                for index, (item, arm) in enumerate(zip(items, args))
            )

        item_type = args[0] if args else Any
        values = [
            self.bind(item, item_type, depth + 1, where=f"{where}[{index}]")
            for index, item in enumerate(items)
        ]
        if issubclass(origin, tuple):
            return tuple(values)
        if issubclass(origin, frozenset):
            return frozenset(values)
        if issubclass(origin, set):
            return set(values)
        return values


def reconcile(value: Any, declared: Any, tag: int, where: str | None = None) -> Any:
    """Convert a natural decoded value to a declared scalar type.

    Args:
        value: Natural value produced by the decoder
        declared: Declared type, already stripped of wrappers
        tag: Wire tag the value came from (for error messages)
        where: Destination description for error messages

    Raises:
        TypeMismatchError: If the kinds are incompatible
        NumericOverflowError: If a number is not representable in the declared type
    """
    if get_origin(declared) is not None or not isinstance(declared, type):
        raise TypeMismatchError(type_name(declared), tag_name(tag), where)

    if issubclass(declared, FixedWidthInt):
        number = _as_integer(value, declared, tag, where)
        wire_bits = value.wire_bits() if isinstance(value, FixedWidthInt) else 0
        try:
            return declared.from_wire(number, wire_bits)
        except ValueError as err:
            raise NumericOverflowError(f"{where or 'value'}: {err}") from err

    if declared is bool:
        if isinstance(value, bool):
            return value
        raise TypeMismatchError("bool", tag_name(tag), where)

    if issubclass(declared, enum.Enum):
        try:
            return declared(value)
        except ValueError as err:
            raise TypeMismatchError(declared.__name__, repr(value), where) from err

    if declared is int:
        return _as_integer(value, declared, tag, where)

    if declared is float:
        if isinstance(value, float):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            converted = float(value)
            if int(converted) != value:
                raise NumericOverflowError(f"{where or 'value'}: {value} is not exactly representable as float")
            return converted
        raise TypeMismatchError("float", tag_name(tag), where)

    if declared is str and isinstance(value, str):
        return str(value)

    if declared is bytearray and isinstance(value, bytes):
        return bytearray(value)

    if isinstance(value, declared):
        return value

    raise TypeMismatchError(declared.__name__, tag_name(tag), where)


def _as_integer(value: Any, declared: type, tag: int, where: str | None) -> int:
    if isinstance(value, bool):
        raise TypeMismatchError(declared.__name__, tag_name(tag), where)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        raise NumericOverflowError(f"{where or 'value'}: {value} is not representable as {declared.__name__}")
    raise TypeMismatchError(declared.__name__, tag_name(tag), where)


def check_required(record: BaseModel) -> None:
    """Fail if a Pydantic record built without validation lacks a required field.

    Raises:
        TypeMismatchError: If a required field was never set
    """
    record_class = type(record)
    missing = [
        name
        for name, info in record_class.model_fields.items()
        if info.is_required() and name not in record.model_fields_set
    ]
    if missing:
        raise TypeMismatchError(
            record_class.__name__, f"document without required field(s) {', '.join(missing)}"
        )


def _assign(target: Any, name: str, value: Any, where: str) -> None:
    try:
        setattr(target, name, value)
    except dataclasses.FrozenInstanceError as err:
        raise InvalidTargetError(f"{where}: record is frozen") from err
    except ValidationError as err:
        reason = err.errors()[0]["msg"]
        raise TypeMismatchError(f"a value the field accepts ({reason})", repr(value), where) from err


__all__ = [
    "Binder",
    "Interpreter",
    "MAX_INDIRECTION",
    "check_required",
    "is_dynamic",
    "mapping_value_type",
    "reconcile",
    "strip_annotation",
    "type_name",
]
