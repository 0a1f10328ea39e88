"""Byte-level writing and reading utilities.

This module provides the low-level primitives the encoder and the element
framing code are built on. All multi-byte integers and floats are
little-endian, as the wire format requires.
"""

from __future__ import annotations

import struct

from ..exceptions import TruncatedError, UnterminatedStringError

INT32 = struct.Struct("<i")
UINT32 = struct.Struct("<I")
INT64 = struct.Struct("<q")
DOUBLE = struct.Struct("<d")


class ByteWriter:
    """Appends wire primitives to a growable byte buffer.

    Length prefixes whose value is only known later are handled with
    ``reserve_length`` / ``patch_length``.

    Example:
        >>> writer = ByteWriter()
        >>> start = writer.reserve_length()
        >>> writer.write_byte(0x00)
        >>> writer.patch_length(start)
        >>> writer.to_bytes()
        b'\\x05\\x00\\x00\\x00\\x00'
    """

    def __init__(self) -> None:
        """Initialize an empty writer."""
        self._buf = bytearray()

    def write_byte(self, value: int) -> None:
        """Write a single unsigned byte.

        Args:
            value: Byte value (0-255)
        """
        self._buf.append(value)

    def write_int32(self, value: int) -> None:
        """Write a signed 32-bit integer.

        Raises:
            struct.error: If value does not fit in 32 signed bits
        """
        self._buf += INT32.pack(value)

    def write_int64(self, value: int) -> None:
        """Write a signed 64-bit integer.

        Raises:
            struct.error: If value does not fit in 64 signed bits
        """
        self._buf += INT64.pack(value)

    def write_double(self, value: float) -> None:
        """Write an IEEE-754 double."""
        self._buf += DOUBLE.pack(value)

    def write_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """Write raw bytes."""
        self._buf += data

    def write_cstring(self, data: bytes) -> None:
        """Write a NUL-terminated byte string.

        Args:
            data: String bytes, without terminator

        Raises:
            ValueError: If data itself contains a NUL byte
        """
        if b"\x00" in data:
            raise ValueError("cstring must not contain NUL bytes")
        self._buf += data
        self._buf.append(0x00)

    def write_string(self, data: bytes) -> None:
        """Write a length-prefixed string: int32 length (incl. NUL), bytes, NUL."""
        self._buf += INT32.pack(len(data) + 1)
        self._buf += data
        self._buf.append(0x00)

    def reserve_length(self) -> int:
        """Reserve four bytes for a length prefix.

        Returns:
            Offset of the reserved bytes, to pass to ``patch_length``
        """
        position = len(self._buf)
        self._buf += b"\x00\x00\x00\x00"
        return position

    def patch_length(self, position: int) -> None:
        """Fill a reserved prefix with the byte count from it to the current end."""
        INT32.pack_into(self._buf, position, len(self._buf) - position)

    def __len__(self) -> int:
        return len(self._buf)

    def to_bytes(self) -> bytes:
        """Return the written bytes.

        Returns:
            An immutable copy of the buffer
        """
        return bytes(self._buf)


class ByteReader:
    """Reads wire primitives from a window of a byte buffer.

    The reader never copies the underlying buffer; ``read_bytes`` returns
    memoryview slices that borrow it. Callers that hand data back to users
    copy it with ``bytes()`` first.

    Example:
        >>> reader = ByteReader(b"\\x0a\\x00\\x00\\x00")
        >>> reader.read_int32()
        10
    """

    def __init__(
        self, data: bytes | bytearray | memoryview, position: int = 0, end: int | None = None
    ) -> None:
        """Initialize a reader over ``data[position:end]``.

        Args:
            data: Buffer to read from
            position: Offset of the first byte to read
            end: Offset one past the last readable byte (default: end of data)
        """
        self._raw = data.tobytes() if isinstance(data, memoryview) else data
        self._view = memoryview(self._raw)
        self._position = position
        self._end = len(self._view) if end is None else end

    def _require(self, num_bytes: int) -> None:
        if num_bytes < 0 or self._position + num_bytes > self._end:
            raise TruncatedError(
                f"need {num_bytes} bytes at offset {self._position}, "
                f"have {self._end - self._position}"
            )

    def read_byte(self) -> int:
        """Read a single unsigned byte.

        Raises:
            TruncatedError: If no bytes remain
        """
        self._require(1)
        value = self._view[self._position]
        self._position += 1
        return value

    def peek_byte(self) -> int:
        """Return the next byte without consuming it.

        Raises:
            TruncatedError: If no bytes remain
        """
        self._require(1)
        return self._view[self._position]

    def read_int32(self) -> int:
        """Read a signed 32-bit integer.

        Raises:
            TruncatedError: If fewer than 4 bytes remain
        """
        self._require(4)
        value = INT32.unpack_from(self._view, self._position)[0]
        self._position += 4
        return value

    def read_bytes(self, num_bytes: int) -> memoryview:
        """Read ``num_bytes`` raw bytes.

        Returns:
            A memoryview slice borrowing the underlying buffer

        Raises:
            TruncatedError: If not enough bytes remain (or num_bytes is negative)
        """
        self._require(num_bytes)
        chunk = self._view[self._position : self._position + num_bytes]
        self._position += num_bytes
        return chunk

    def read_cstring(self) -> memoryview:
        """Read a NUL-terminated run and return it without the terminator.

        Raises:
            UnterminatedStringError: If no NUL byte occurs before the window end
        """
        start = self._position
        index = self._raw.find(b"\x00", start, self._end)
        if index >= 0:
            self._position = index + 1
            return self._view[start:index]
        raise UnterminatedStringError(f"unterminated cstring at offset {start}")

    def skip_cstring(self) -> int:
        """Skip a NUL-terminated run.

        Returns:
            Number of bytes skipped, terminator included
        """
        start = self._position
        self.read_cstring()
        return self._position - start

    def window(self, start: int, stop: int) -> memoryview:
        """Return a slice of the underlying buffer without moving the read offset."""
        return self._view[start:stop]

    @property
    def position(self) -> int:
        """Current read offset into the underlying buffer."""
        return self._position

    @property
    def end(self) -> int:
        """Offset one past the last readable byte."""
        return self._end

    def bytes_remaining(self) -> int:
        """Return the number of unread bytes in the window."""
        return self._end - self._position
