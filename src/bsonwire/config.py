"""Configuration for the bsonwire codec.

This module provides the configuration dataclass shared by the encoder and
the decoder. A config is plain data: the codec never mutates it and keeps
no state between calls.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass


@dataclass(frozen=True)
class CodecConfig:
    """Configuration for encode and decode calls.

    The wire format puts no limit on nesting, so both directions enforce
    ``max_depth`` to stop runaway recursion on adversarial input (or a cyclic
    value graph on the encode side).

    Attributes:
        max_depth: Maximum document nesting depth (default 100). The top-level
            document is depth 1; every embedded document, array or
            code-with-scope scope adds one level.

        tz_aware: Decoded UTC datetimes carry ``timezone.utc`` (default True).
            When False they are returned as naive datetimes in UTC.

        unicode_errors: Error handler name passed to ``bytes.decode`` for
            string, code, symbol, key and regex payloads (default "strict").
            Use "replace" to accept documents written by lax producers.

    Examples:
        ```python
        from bsonwire import CodecConfig, decode

        # Shallow documents only, naive datetimes
        config = CodecConfig(max_depth=8, tz_aware=False)
        record = decode(dict, data, config=config)
        ```
    """

    max_depth: int = 100
    tz_aware: bool = True
    unicode_errors: str = "strict"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")

        try:
            codecs.lookup_error(self.unicode_errors)
        except LookupError as err:
            raise ValueError(f"unknown unicode_errors handler: {self.unicode_errors!r}") from err


DEFAULT_CONFIG = CodecConfig()
