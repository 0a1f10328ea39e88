"""Record and value modeling for bsonwire.

This module provides the Document base class, the fixed-width integer kinds
and the extended scalar value types.
"""

from __future__ import annotations

from .base import Document
from .fields import (
    ALIAS_METADATA_KEY,
    FixedWidthInt,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    WireName,
)
from .values import Binary, Code, CodeWithScope, MaxKey, MinKey, ObjectId, Regex, Symbol, Timestamp

__all__ = [
    "Document",
    "WireName",
    "ALIAS_METADATA_KEY",
    # Integer kinds
    "FixedWidthInt",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    # Extended values
    "Binary",
    "Code",
    "CodeWithScope",
    "MaxKey",
    "MinKey",
    "ObjectId",
    "Regex",
    "Symbol",
    "Timestamp",
]
