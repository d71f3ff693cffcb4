"""RIFF WAVE header validation against the MSU-1 sample format.

WHY: MSU-1 tracks are raw 16-bit stereo 44.1kHz PCM with no format field
of their own. Anything else copied into a track plays back as noise, so
every input must be checked before a single byte is written.

HOW: read_wave_header() walks the canonical 44-byte WAVE header at fixed
offsets, checking each field as soon as it is read and raising a specific
WaveValidationError subclass on the first failure. Fields that are not
checked are skipped through ByteSource, which seeks on files and
discard-reads on pipes. validate() returns just the data length.

RULES:
- Offsets are fixed: signature @0, format tag @20, channels @22,
  sample rate @24, bits per sample @34, data marker @36, data length @40
- The RIFF size, 'WAVE' and 'fmt ' fields are skipped, not checked
- Channels, sample rate and bit depth are checked together so the
  message reports all three observed values
- The data length is unsigned 32-bit
- On success the stream is positioned at the first sample byte (offset 44);
  nothing past the data length field is read
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from wav2msu.config import (
    BITS_PER_SAMPLE_OFFSET,
    DATA_SIGNATURE,
    FORMAT_TAG_OFFSET,
    REQUIRED_BITS_PER_SAMPLE,
    REQUIRED_CHANNELS,
    REQUIRED_SAMPLE_RATE,
    RIFF_SIGNATURE,
    WAVE_FORMAT_PCM,
)
from wav2msu.core.ir import WaveHeader, WaveValidationError
from wav2msu.core.stream import ByteSource, TruncatedHeaderError

logger = logging.getLogger(__name__)

__all__ = [
    "BadSignatureError",
    "DataMarkerMissingError",
    "FormatMismatchError",
    "NotPCMError",
    "TruncatedHeaderError",
    "WaveValidationError",
    "read_wave_header",
    "validate",
]


class BadSignatureError(WaveValidationError):
    """The first four bytes are not 'RIFF'."""

    kind = "bad_signature"

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(
            "Incorrect header: Invalid format or endianness (value was: 0x{:x})".format(value)
        )


class NotPCMError(WaveValidationError):
    """The format tag is not 1 (uncompressed PCM)."""

    kind = "not_pcm"

    def __init__(self, format_tag: int) -> None:
        self.format_tag = format_tag
        super().__init__("Not in PCM format! (format was: {})".format(format_tag))


class FormatMismatchError(WaveValidationError):
    """PCM, but not 16-bit 44.1kHz stereo."""

    kind = "format_mismatch"

    def __init__(self, bits_per_sample: int, sample_rate: int, channels: int) -> None:
        self.bits_per_sample = bits_per_sample
        self.sample_rate = sample_rate
        self.channels = channels
        super().__init__(
            "Not in 16bit 44.1kHz stereo! Got instead: {}bit, {}Hz, {}ch".format(
                bits_per_sample, sample_rate, channels
            )
        )


class DataMarkerMissingError(WaveValidationError):
    """Offset 36 does not hold the 'data' chunk marker."""

    kind = "data_marker_missing"

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(
            "Sample data not where expected! (marker was: 0x{:x})".format(value)
        )


def read_wave_header(stream: BinaryIO) -> WaveHeader:
    """Read and check the WAVE header at the start of ``stream``.

    Args:
        stream: Binary stream positioned at the first byte of a WAVE file.
                May be seekable (file) or not (stdin, pipe).

    Returns:
        WaveHeader with every field that was read. The stream is left at
        the first sample byte.

    Raises:
        WaveValidationError: The specific subclass for the first failed check.
        OSError: If reading or seeking the stream fails.
    """
    source = ByteSource(stream)

    signature = source.read_uint32("RIFF signature")
    if signature != RIFF_SIGNATURE:
        raise BadSignatureError(signature)

    source.skip(FORMAT_TAG_OFFSET - source.position, "RIFF chunk header")

    format_tag = source.read_int16("format tag")
    if format_tag != WAVE_FORMAT_PCM:
        raise NotPCMError(format_tag)

    channels = source.read_int16("channel count")
    sample_rate = source.read_int32("sample rate")

    # Byte rate and block align are implied by the three checked fields
    source.skip(BITS_PER_SAMPLE_OFFSET - source.position, "byte rate and block align")

    bits_per_sample = source.read_int16("bits per sample")
    if (
        channels != REQUIRED_CHANNELS
        or sample_rate != REQUIRED_SAMPLE_RATE
        or bits_per_sample != REQUIRED_BITS_PER_SAMPLE
    ):
        raise FormatMismatchError(bits_per_sample, sample_rate, channels)

    data_marker = source.read_uint32("data chunk marker")
    if data_marker != DATA_SIGNATURE:
        raise DataMarkerMissingError(data_marker)

    data_size = source.read_uint32("data chunk length")

    header = WaveHeader(
        signature=signature,
        format_tag=format_tag,
        channels=channels,
        sample_rate=sample_rate,
        bits_per_sample=bits_per_sample,
        data_marker=data_marker,
        data_size=data_size,
    )
    logger.debug(
        "Valid WAVE header: %d bytes of sample data (%d frames), seekable=%s",
        data_size, header.frame_count, source.can_seek(),
    )
    return header


def validate(stream: BinaryIO) -> int:
    """Validate a WAVE stream and return the byte length of its sample data.

    Thin wrapper over read_wave_header() for callers that only need the
    length. Raises the same exceptions.
    """
    return read_wave_header(stream).data_size
