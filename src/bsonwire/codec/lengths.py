"""Length rule table.

The decoder must know how many body bytes follow each element key before it
interprets any of them. Each tag maps to one ``LengthRule``; the framing code
in ``elements.py`` applies the rule and never looks at the body otherwise.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .tags import ElementType


class RuleKind(enum.Enum):
    """How an element's body length is derived."""

    FIXED = "fixed"
    """Constant width, given by ``LengthRule.size``."""

    CSTRING_PAIR = "cstring_pair"
    """Two consecutive NUL-terminated runs (regex pattern and options)."""

    LENGTH_PREFIXED = "length_prefixed"
    """int32 ``L`` then ``L`` bytes; the length field is consumed."""

    CONTAINER = "container"
    """int32 ``L`` counting itself; the body keeps the length field."""

    BINARY = "binary"
    """int32 ``L``, one subtype byte, ``L`` payload bytes; the length field is consumed."""


@dataclass(frozen=True)
class LengthRule:
    """Byte-length derivation rule for one element type.

    Attributes:
        kind: Derivation strategy
        size: Body width for FIXED rules (0 for tag-only elements)
    """

    kind: RuleKind
    size: int = 0


_FIXED_0 = LengthRule(RuleKind.FIXED, 0)

LENGTH_RULES: Mapping[int, LengthRule] = MappingProxyType(
    {
        ElementType.FLOAT: LengthRule(RuleKind.FIXED, 8),
        ElementType.STRING: LengthRule(RuleKind.LENGTH_PREFIXED),
        ElementType.DOCUMENT: LengthRule(RuleKind.CONTAINER),
        ElementType.ARRAY: LengthRule(RuleKind.CONTAINER),
        ElementType.BINARY: LengthRule(RuleKind.BINARY),
        ElementType.OBJECT_ID: LengthRule(RuleKind.FIXED, 12),
        ElementType.BOOLEAN: LengthRule(RuleKind.FIXED, 1),
        ElementType.DATETIME: LengthRule(RuleKind.FIXED, 8),
        ElementType.NULL: _FIXED_0,
        ElementType.REGEX: LengthRule(RuleKind.CSTRING_PAIR),
        ElementType.CODE: LengthRule(RuleKind.LENGTH_PREFIXED),
        ElementType.SYMBOL: LengthRule(RuleKind.LENGTH_PREFIXED),
        ElementType.CODE_WITH_SCOPE: LengthRule(RuleKind.CONTAINER),
        ElementType.INT32: LengthRule(RuleKind.FIXED, 4),
        ElementType.TIMESTAMP: LengthRule(RuleKind.FIXED, 8),
        ElementType.INT64: LengthRule(RuleKind.FIXED, 8),
        ElementType.MAX_KEY: _FIXED_0,
        ElementType.MIN_KEY: _FIXED_0,
    }
)


def length_rule(tag: int) -> LengthRule | None:
    """Look up the rule for a tag, or None if the tag is unknown."""
    return LENGTH_RULES.get(tag)
