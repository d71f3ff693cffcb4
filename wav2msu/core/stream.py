"""Uniform reading over seekable files and non-seekable pipes.

WHY: The WAVE validator skips over header fields it does not check. On a
regular file that is a seek; on standard input or a pipe seeking fails, so
the bytes must be read and discarded instead. Hiding that choice behind one
wrapper keeps the validator identical for every input source.

HOW: ByteSource wraps a binary file object. can_seek() asks the stream once.
skip(n) seeks relative to the current position or discard-reads n bytes.
read_exact(n) loops over short reads until n bytes arrive or the stream
ends. Typed little-endian reads are built on read_exact().

RULES:
- A stream that ends early raises TruncatedHeaderError, never returns junk
- skip() and reads advance ``position`` by exactly the bytes consumed
- The wrapped stream is never closed here — the caller owns it
"""

from __future__ import annotations

import io
import logging
import struct
from typing import BinaryIO

from wav2msu.core.ir import WaveValidationError

logger = logging.getLogger(__name__)

# Largest single read used when discarding bytes from a pipe
_DISCARD_CHUNK = 4096

_INT16 = struct.Struct("<h")
_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")


class TruncatedHeaderError(WaveValidationError):
    """Raised when a stream ends before a header field is complete.

    Attributes:
        field: Name of the field being read.
        offset: Byte offset of the field from the start of the stream.
        expected: Number of bytes the field needs.
        received: Number of bytes actually available.
    """

    kind = "truncated_header"

    def __init__(self, field: str, offset: int, expected: int, received: int) -> None:
        self.field = field
        self.offset = offset
        self.expected = expected
        self.received = received
        super().__init__(
            "Unexpected end of file reading {} at offset {} "
            "(needed {} bytes, got {})".format(field, offset, expected, received)
        )


class ByteSource:
    """Sequential reader over a binary stream with a uniform skip operation."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._seekable = _probe_seekable(stream)
        self.position = 0

    def can_seek(self) -> bool:
        return self._seekable

    def skip(self, count: int, field: str = "skipped header bytes") -> None:
        """Advance past ``count`` bytes without interpreting them."""
        if self._seekable:
            self._stream.seek(count, io.SEEK_CUR)
            self.position += count
            return

        remaining = count
        while remaining > 0:
            chunk = self._stream.read(min(remaining, _DISCARD_CHUNK))
            if not chunk:
                raise TruncatedHeaderError(field, self.position, count, count - remaining)
            remaining -= len(chunk)
        self.position += count

    def read_exact(self, count: int, field: str = "header bytes") -> bytes:
        """Read exactly ``count`` bytes.

        Raises:
            TruncatedHeaderError: If the stream ends first.
        """
        parts = []
        received = 0
        while received < count:
            chunk = self._stream.read(count - received)
            if not chunk:
                break
            parts.append(chunk)
            received += len(chunk)
        if received < count:
            raise TruncatedHeaderError(field, self.position, count, received)
        self.position += count
        return b"".join(parts)

    def read_int16(self, field: str) -> int:
        return _INT16.unpack(self.read_exact(_INT16.size, field))[0]

    def read_int32(self, field: str) -> int:
        return _INT32.unpack(self.read_exact(_INT32.size, field))[0]

    def read_uint32(self, field: str) -> int:
        return _UINT32.unpack(self.read_exact(_UINT32.size, field))[0]


def _probe_seekable(stream: BinaryIO) -> bool:
    """Ask a stream whether it supports random positioning.

    Some file-like objects lack seekable(), and sys.stdin.buffer reports
    ValueError once detached; both count as non-seekable.
    """
    probe = getattr(stream, "seekable", None)
    if probe is None:
        return False
    try:
        seekable = bool(probe())
    except (OSError, ValueError):
        seekable = False
    logger.debug("Stream %r seekable=%s", stream, seekable)
    return seekable
