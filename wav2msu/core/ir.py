"""Header dataclasses for the WAVE input and the MSU1 output.

WHY: The validator and the assembler each deal with one fixed binary
header. Giving each a typed dataclass keeps struct format strings and
field meanings in one place, and lets callers log or inspect what was
actually read.

HOW: Two dataclasses:
  WaveHeader   — the subset of a RIFF WAVE header the validator reads
  OutputHeader — the 8-byte MSU1 header, with pack() / unpack()
plus the base exceptions for rejecting either header.

RULES:
- WaveHeader is transient: parsed, checked, never written back
- OutputHeader.loop_point is a signed 32-bit sample-frame offset
- All multi-byte fields are little-endian
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from wav2msu.config import BYTES_PER_FRAME, MSU1_HEADER_SIZE, MSU1_TAG

_OUTPUT_HEADER = struct.Struct("<4si")


class WaveValidationError(ValueError):
    """Base class for every reason a WAVE input is rejected.

    WHY: Callers need to tell "this file is not usable" apart from I/O
    failures, and sometimes which check failed.

    RULES:
    - ``kind`` is a stable snake_case tag naming the failed check
    - The message names the check and the offending observed values
    """

    kind = "invalid_wave"


class OutputHeaderError(ValueError):
    """Raised when bytes do not form a valid MSU1 header."""


def frames_in(byte_count: int) -> int:
    """Number of whole stereo 16-bit frames in ``byte_count`` sample bytes."""
    return byte_count // BYTES_PER_FRAME


@dataclass
class WaveHeader:
    """Fields of a RIFF WAVE header that the validator reads.

    RULES:
    - signature / data_marker: raw little-endian integer readings
    - data_size: unsigned 32-bit byte length of the sample-data region
    """

    signature: int
    format_tag: int
    channels: int
    sample_rate: int
    bits_per_sample: int
    data_marker: int
    data_size: int

    @property
    def frame_count(self) -> int:
        """Number of whole stereo 16-bit frames in the sample data."""
        return frames_in(self.data_size)


@dataclass
class OutputHeader:
    """The 8-byte header that starts every MSU1 PCM track."""

    loop_point: int

    def pack(self) -> bytes:
        """Serialize to ``b"MSU1"`` + little-endian signed 32-bit loop point.

        Raises struct.error if loop_point does not fit in 32 bits signed.
        """
        return _OUTPUT_HEADER.pack(MSU1_TAG, self.loop_point)

    @classmethod
    def unpack(cls, data: bytes) -> OutputHeader:
        """Parse the first 8 bytes of an MSU1 track.

        Raises:
            OutputHeaderError: If fewer than 8 bytes are given or the tag
                is not ``MSU1``.
        """
        if len(data) < MSU1_HEADER_SIZE:
            raise OutputHeaderError(
                "MSU1 header needs {} bytes, got {}".format(MSU1_HEADER_SIZE, len(data))
            )
        tag, loop_point = _OUTPUT_HEADER.unpack(data[:MSU1_HEADER_SIZE])
        if tag != MSU1_TAG:
            raise OutputHeaderError("Not an MSU1 track (tag was {!r})".format(tag))
        return cls(loop_point=loop_point)
