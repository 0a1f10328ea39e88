"""Base record class and bsonwire-specific Pydantic configuration.

This module provides the Document class that records encoded as documents
can inherit from. Any Pydantic model (or dataclass) works as a record; the
base class only settles the configuration the codec relies on.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Document(BaseModel):
    """Base class for records stored as documents.

    Fields are written in declaration order. A field's document key is its
    alias when one is set (see ``WireName``), otherwise the attribute name
    unchanged.

    Example:
        >>> class Point(Document):
        ...     x: Int32
        ...     y: Int32
        ...     label: Optional[str] = None
        >>>
        >>> data = marshal(Point(x=1, y=2))
        >>> decode(Point, data)
        Point(x=Int32(1), y=Int32(2), label=None)
    """

    # ConfigDict for Pydantic v2
    model_config = ConfigDict(
        # Lax validation so decoded ints and floats coerce cleanly
        strict=False,
        # ObjectId, Regex, Binary and friends are plain classes
        arbitrary_types_allowed=True,
        # Validate on assignment
        validate_assignment=True,
        # Records are built by attribute name as well as by wire name
        populate_by_name=True,
    )
