"""Record introspection for Pydantic models and dataclasses.

This module turns a record class into a static list of field descriptors:
declared name, optional wire-name override and declared type. The encoder
uses the list for field order and keys; the binding layer uses it to match
incoming keys to fields. Descriptors are rebuilt on every call; nothing is
cached between calls.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Type, get_origin, get_type_hints

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..exceptions import EncodeError, SchemaError
from ..models.fields import ALIAS_METADATA_KEY

_MISSING = object()


def is_record_type(candidate: Any) -> bool:
    """Return True if ``candidate`` is a Pydantic model class or a dataclass type."""
    if not isinstance(candidate, type) or get_origin(candidate) is not None:
        return False
    return issubclass(candidate, BaseModel) or dataclasses.is_dataclass(candidate)


def is_record(value: Any) -> bool:
    """Return True if ``value`` is a Pydantic model or dataclass instance."""
    return not isinstance(value, type) and is_record_type(type(value))


@dataclass(frozen=True)
class FieldSchema:
    """Schema information for a single record field.

    Attributes:
        name: Declared attribute name
        wire_name: Explicit document key override, if any
        annotation: Declared type annotation
    """

    name: str
    wire_name: Optional[str]
    annotation: Any

    @property
    def key(self) -> str:
        """Document key the encoder writes for this field."""
        return self.wire_name if self.wire_name is not None else self.name


class RecordSchema:
    """Schema information for an entire record class.

    Example:
        >>> schema = RecordSchema.from_model(Point)
        >>> [field.key for field in schema.fields]
        ['x', 'y', 'label']
        >>> schema.resolve("X").name
        'x'
    """

    def __init__(self, record_class: Type[Any]) -> None:
        """Initialize schema from a record class.

        Args:
            record_class: Pydantic model class or dataclass type to introspect

        Raises:
            SchemaError: If the class is not a record or two fields share a key
        """
        self.record_class = record_class
        self.fields: List[FieldSchema] = []
        self._introspect()

    @classmethod
    def from_model(cls, record_class: Type[Any]) -> RecordSchema:
        """Create a schema from a record class.

        Args:
            record_class: Pydantic model class or dataclass type

        Returns:
            RecordSchema instance
        """
        return cls(record_class)

    def _introspect(self) -> None:
        """Introspect the class and populate field schemas."""
        if isinstance(self.record_class, type) and issubclass(self.record_class, BaseModel):
            # Pydantic v2 API
            for name, field_info in self.record_class.model_fields.items():
                self.fields.append(self._from_field_info(name, field_info))
        elif is_record_type(self.record_class):
            self._introspect_dataclass()
        else:
            raise SchemaError(f"{self.record_class!r} is not a Pydantic model or dataclass")

        seen: dict[str, str] = {}
        for field_schema in self.fields:
            if field_schema.key in seen:
                raise SchemaError(
                    f"{self.record_class.__name__}: fields {seen[field_schema.key]!r} and "
                    f"{field_schema.name!r} both use document key {field_schema.key!r}"
                )
            seen[field_schema.key] = field_schema.name

    @staticmethod
    def _from_field_info(name: str, field_info: FieldInfo) -> FieldSchema:
        return FieldSchema(name=name, wire_name=field_info.alias, annotation=field_info.annotation)

    def _introspect_dataclass(self) -> None:
        try:
            hints = get_type_hints(self.record_class, include_extras=True)
        except (NameError, TypeError):
            hints = {}

        for field in dataclasses.fields(self.record_class):
            annotation = hints.get(field.name, field.type)
            if isinstance(annotation, str):
                raise SchemaError(
                    f"{self.record_class.__name__}.{field.name}: cannot resolve "
                    f"annotation {annotation!r}"
                )
            self.fields.append(
                FieldSchema(
                    name=field.name,
                    wire_name=field.metadata.get(ALIAS_METADATA_KEY),
                    annotation=annotation,
                )
            )

    def resolve(self, key: str) -> FieldSchema | None:
        """Find the field a document key binds to.

        Matching order: exact wire-name override, exact declared name, then
        case-insensitive declared name. The first field in declaration order
        wins within each step.

        Args:
            key: Document key read from the wire

        Returns:
            The matching field, or None if the key is unknown
        """
        for field_schema in self.fields:
            if field_schema.wire_name == key:
                return field_schema
        for field_schema in self.fields:
            if field_schema.name == key:
                return field_schema
        folded = key.casefold()
        for field_schema in self.fields:
            if field_schema.name.casefold() == folded:
                return field_schema
        return None

    def iter_items(self, record: Any) -> Iterator[tuple[str, Any]]:
        """Yield ``(document key, value)`` for each field of a record, in declaration order.

        Raises:
            EncodeError: If a field has never been assigned (e.g. after ``model_construct``)
        """
        for field_schema in self.fields:
            value = getattr(record, field_schema.name, _MISSING)
            if value is _MISSING:
                raise EncodeError(
                    f"{type(record).__name__}.{field_schema.name} has no value to encode"
                )
            yield field_schema.key, value
