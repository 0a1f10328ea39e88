"""bsonwire: Binary Document Codec

A Python library for encoding mappings and records as length-prefixed binary
documents (the BSON element vocabulary) and decoding them back into
caller-supplied mappings and records.

Key Features:
- Pydantic- and dataclass-based record modeling
- Fixed-width integer kinds that choose int32 or int64 on the wire
- Bounds-checked element framing with typed errors
- Case-insensitive key matching with explicit wire-name overrides

Quick Start:
    >>> from bsonwire import Document, Int32, decode, marshal
    >>>
    >>> class Reading(Document):
    ...     sensor: str
    ...     value: Int32
    >>>
    >>> data = marshal(Reading(sensor="t1", value=Int32(21)))
    >>> decoded = decode(Reading, data)
"""

from __future__ import annotations

from .codec import (
    ElementType,
    WireValue,
    classify,
    decode,
    encode,
    iter_elements,
    marshal,
    unmarshal,
)
from .config import DEFAULT_CONFIG, CodecConfig
from .exceptions import (
    BsonWireError,
    DecodeError,
    EncodeError,
    InvalidKeyError,
    InvalidTargetError,
    InvalidTopLevelTypeError,
    MaxDepthError,
    NumericOverflowError,
    SchemaError,
    TruncatedError,
    TypeMismatchError,
    UnknownTypeError,
    UnsupportedTypeError,
    UnterminatedStringError,
)
from .models import (
    Binary,
    Code,
    CodeWithScope,
    Document,
    Int8,
    Int16,
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
    WireName,
)
from .utils import document_length, encoded_size, field_sizes, is_valid

__version__ = "0.1.0"

__all__ = [
    # Core API
    "Document",
    "marshal",
    "encode",
    "unmarshal",
    "decode",
    "classify",
    "iter_elements",
    "ElementType",
    "WireValue",
    # Field helpers
    "WireName",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    # Values
    "Binary",
    "Code",
    "CodeWithScope",
    "MaxKey",
    "MinKey",
    "ObjectId",
    "Regex",
    "Symbol",
    "Timestamp",
    # Configuration
    "CodecConfig",
    "DEFAULT_CONFIG",
    # Exceptions
    "BsonWireError",
    "SchemaError",
    "EncodeError",
    "DecodeError",
    "UnsupportedTypeError",
    "InvalidTopLevelTypeError",
    "InvalidKeyError",
    "TruncatedError",
    "UnterminatedStringError",
    "UnknownTypeError",
    "TypeMismatchError",
    "InvalidTargetError",
    "NumericOverflowError",
    "MaxDepthError",
    # Sizing
    "encoded_size",
    "field_sizes",
    "document_length",
    "is_valid",
    # Version
    "__version__",
]
