"""Shared test fixtures for the wav2msu test suite.

WHY: Validator, assembler and CLI tests all need WAVE files with one field
changed at a time, and streams that behave like pipes. Centralizing the
builders here keeps every test module using the same canonical layout.

HOW: build_wave() packs a canonical 44-byte RIFF WAVE header with struct and
appends sample bytes. PipeStream is a raw stream that refuses to seek and
returns short reads, like stdin attached to a pipe.

RULES:
- Tests reach the builders through the wave_builder and pipe_stream fixtures
- build_wave() defaults describe a valid 16-bit 44.1kHz stereo PCM file
- data_size defaults to len(samples); override it to fake a header
- PipeStream never returns more than ``max_read`` bytes per read
"""

import io
import struct
from typing import Optional

import pytest

# Two frames: left/right int16 pairs
MAIN_SAMPLES = bytes(range(1, 9))
# Four frames
INTRO_SAMPLES = bytes(range(0xA0, 0xB0))


def build_wave(
    samples: bytes = b"",
    *,
    riff: bytes = b"RIFF",
    format_tag: int = 1,
    channels: int = 2,
    sample_rate: int = 44100,
    bits_per_sample: int = 16,
    data_marker: bytes = b"data",
    data_size: Optional[int] = None,
) -> bytes:
    """Return the bytes of a canonical RIFF WAVE file."""
    if data_size is None:
        data_size = len(samples)
    block_align = channels * bits_per_sample // 8
    header = struct.pack(
        "<4sI4s4sIhhiihh4sI",
        riff,
        36 + len(samples),
        b"WAVE",
        b"fmt ",
        16,
        format_tag,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        data_marker,
        data_size,
    )
    assert len(header) == 44
    return header + samples


class PipeStream(io.RawIOBase):
    """Readable, non-seekable stream that delivers data in small pieces."""

    def __init__(self, data: bytes, max_read: int = 3) -> None:
        self._buffer = io.BytesIO(data)
        self._max_read = max_read

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, b) -> int:
        chunk = self._buffer.read(min(len(b), self._max_read))
        b[:len(chunk)] = chunk
        return len(chunk)

    def remaining(self) -> bytes:
        return self._buffer.read()


@pytest.fixture
def main_wave():
    """Valid WAVE bytes with 8 bytes (2 frames) of sample data."""
    return build_wave(MAIN_SAMPLES)


@pytest.fixture
def intro_wave():
    """Valid WAVE bytes with 16 bytes (4 frames) of sample data."""
    return build_wave(INTRO_SAMPLES)


@pytest.fixture
def main_samples():
    """Sample bytes carried by ``main_wave``."""
    return MAIN_SAMPLES


@pytest.fixture
def intro_samples():
    """Sample bytes carried by ``intro_wave``."""
    return INTRO_SAMPLES


@pytest.fixture
def wave_builder():
    """The build_wave() factory, for tests that change one header field."""
    return build_wave


@pytest.fixture
def pipe_stream():
    """The PipeStream class: non-seekable stream with short reads."""
    return PipeStream
