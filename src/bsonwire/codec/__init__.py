"""Binary document codec for bsonwire.

This module provides encoding and decoding of length-prefixed binary
documents: element framing, value interpretation and target binding.
"""

from __future__ import annotations

from .decoder import Decoder, decode, unmarshal
from .elements import Element, document_bounds, iter_elements
from .encoder import classify, encode, marshal
from .schema import FieldSchema, RecordSchema
from .tags import ElementType, WireValue

__all__ = [
    "marshal",
    "encode",
    "unmarshal",
    "decode",
    "classify",
    "Decoder",
    "Element",
    "ElementType",
    "WireValue",
    "document_bounds",
    "iter_elements",
    "RecordSchema",
    "FieldSchema",
]
