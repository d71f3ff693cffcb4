"""Format contract constants and .env loading.

WHY: The WAVE offsets, magic values and required sample format are read in
one place and compared in another. Naming them here keeps the read and
compare sites from drifting apart, and keeps tunables out of the logic.

HOW: python-dotenv loads the .env file on import. Format constants are plain
module-level values. Environment defaults are read with os.getenv; the
load_chunk_size() function gives a clear error for a bad value.

RULES:
- Magic values are the little-endian integer reading of their ASCII tags
- BYTES_PER_FRAME is derived from the channel count and bit depth
- All tunables can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the directory the tool is run from
load_dotenv()

# ---------------------------------------------------------------------------
# RIFF WAVE input contract
# ---------------------------------------------------------------------------

RIFF_SIGNATURE = 0x46464952
"""'RIFF' read as a little-endian 32-bit integer."""

DATA_SIGNATURE = 0x61746164
"""'data' read as a little-endian 32-bit integer."""

WAVE_FORMAT_PCM = 1
REQUIRED_CHANNELS = 2
REQUIRED_SAMPLE_RATE = 44100
REQUIRED_BITS_PER_SAMPLE = 16

BYTES_PER_FRAME = REQUIRED_CHANNELS * REQUIRED_BITS_PER_SAMPLE // 8

# Field offsets from the start of the file
FORMAT_TAG_OFFSET = 20
BITS_PER_SAMPLE_OFFSET = 34

# ---------------------------------------------------------------------------
# MSU1 output contract
# ---------------------------------------------------------------------------

MSU1_TAG = b"MSU1"
MSU1_HEADER_SIZE = 8

# ---------------------------------------------------------------------------
# Environment defaults
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("WAV2MSU_LOG_LEVEL", "WARNING").upper()

_DEFAULT_COPY_CHUNK_SIZE = 64 * 1024


def load_chunk_size() -> int:
    """Load the block size used when copying sample data.

    WHY: Sample data is streamed, not loaded whole, so tracks of any length
    convert in constant memory. The block size only affects speed.

    HOW: Reads WAV2MSU_COPY_CHUNK_SIZE from os.environ (populated by
    python-dotenv), falling back to 64 KiB.

    RULES:
    - Raises ValueError if the value is not a positive integer
    """
    raw = os.getenv("WAV2MSU_COPY_CHUNK_SIZE", "").strip()
    if not raw:
        return _DEFAULT_COPY_CHUNK_SIZE
    try:
        size = int(raw)
    except ValueError:
        size = 0
    if size <= 0:
        raise ValueError(
            "WAV2MSU_COPY_CHUNK_SIZE must be a positive integer, got {!r}".format(raw)
        )
    return size
