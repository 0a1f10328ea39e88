"""Utility functions for bsonwire.

This module provides size calculation and document inspection helpers.
"""

from __future__ import annotations

from .sizing import document_length, encoded_size, field_sizes, is_valid

__all__ = [
    "encoded_size",
    "field_sizes",
    "document_length",
    "is_valid",
]
