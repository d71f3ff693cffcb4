"""Loop-point arithmetic, MSU1 header writing and track assembly.

WHY: An MSU1 track is the 8-byte header followed by every sample of the
intro (if any) and the main input, back to back. The loop point in the
header counts frames from the start of that combined stream, so an intro
shifts it forward by its own length.

HOW: parse_loop_point() reads the user's value (decimal or 0x-hex).
compute_loop_point() adds the intro's frame count and wraps the result to
signed 32-bit. assemble() writes the header and block-copies the streams.
convert() runs the whole pipeline — validate intro, adjust loop point,
validate main, assemble — for callers holding already-open streams.

RULES:
- One frame = 2 channels x 16 bits = BYTES_PER_FRAME bytes
- Effective loop point = base + intro_data_size // BYTES_PER_FRAME, wrapped
  to [-2**31, 2**31 - 1]
- Streams are copied until exhausted, order preserved, nothing altered
- convert() writes nothing to the sink unless every input validated
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from wav2msu.config import MSU1_HEADER_SIZE, load_chunk_size
from wav2msu.core.ir import OutputHeader, frames_in
from wav2msu.core.validator import validate

logger = logging.getLogger(__name__)

_INT32_RANGE = 1 << 32
_INT32_MIN = -(1 << 31)


def parse_loop_point(text: str) -> int:
    """Parse a loop point given as decimal or ``0x``-prefixed hexadecimal.

    RULES:
    - Optional leading ``+`` or ``-``; surrounding whitespace ignored
    - ``0x`` / ``0X`` prefix selects base 16, anything else is base 10
    - The value is not range-checked here; compute_loop_point() wraps it

    Raises:
        ValueError: If the text is not a valid integer literal.
    """
    value = text.strip()
    sign = 1
    if value[:1] in ("+", "-"):
        if value[0] == "-":
            sign = -1
        value = value[1:]
    if value[:2].lower() == "0x":
        digits, base = value[2:], 16
    else:
        digits, base = value, 10
    # int() would otherwise accept a second sign, whitespace or underscores
    if not digits or not digits.isalnum() or not digits.isascii():
        raise ValueError("Invalid loop point: {!r}".format(text))
    return sign * int(digits, base)


def to_int32(value: int) -> int:
    """Wrap an integer into the signed 32-bit range (two's complement)."""
    return (value - _INT32_MIN) % _INT32_RANGE + _INT32_MIN


def compute_loop_point(base: int, intro_data_size: Optional[int] = None) -> int:
    """Return the loop point to write into the MSU1 header.

    Args:
        base: Loop point relative to the start of the main input, in frames.
        intro_data_size: Byte length of the intro's sample data, or None
                         when there is no intro.

    Returns:
        The frame offset into the combined intro + main stream, as a
        signed 32-bit value.
    """
    if intro_data_size is None:
        return to_int32(base)
    return to_int32(base + frames_in(intro_data_size))


def write_header(sink: BinaryIO, loop_point: int) -> None:
    """Write the 8-byte MSU1 header."""
    sink.write(OutputHeader(loop_point=to_int32(loop_point)).pack())


def read_header(stream: BinaryIO) -> OutputHeader:
    """Read the 8-byte header from the start of an MSU1 track.

    Raises:
        OutputHeaderError: If the header is short or the tag is wrong.
    """
    return OutputHeader.unpack(stream.read(MSU1_HEADER_SIZE))


def copy_stream(source: BinaryIO, sink: BinaryIO, chunk_size: Optional[int] = None) -> int:
    """Copy every remaining byte of ``source`` into ``sink``.

    Returns:
        Number of bytes copied.
    """
    if chunk_size is None:
        chunk_size = load_chunk_size()
    copied = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        sink.write(chunk)
        copied += len(chunk)
    return copied


def assemble(
    sink: BinaryIO,
    loop_point: int,
    intro: Optional[BinaryIO],
    main: BinaryIO,
    chunk_size: Optional[int] = None,
) -> int:
    """Write a complete MSU1 track to ``sink``.

    Both input streams must already be positioned at their first sample
    byte, i.e. validated.

    Args:
        sink: Writable binary stream.
        loop_point: Final loop point (already adjusted for the intro).
        intro: Validated intro stream, or None.
        main: Validated main input stream.
        chunk_size: Copy block size; defaults to load_chunk_size().

    Returns:
        Total bytes written: 8 + intro bytes + main bytes.

    Raises:
        OSError: If reading an input or writing the sink fails.
        ValueError: If chunk_size is omitted and the configured one is invalid.
    """
    if chunk_size is None:
        chunk_size = load_chunk_size()
    write_header(sink, loop_point)
    written = MSU1_HEADER_SIZE

    if intro is not None:
        intro_bytes = copy_stream(intro, sink, chunk_size)
        logger.debug("Copied %d intro bytes", intro_bytes)
        written += intro_bytes

    main_bytes = copy_stream(main, sink, chunk_size)
    logger.debug("Copied %d main bytes", main_bytes)
    written += main_bytes

    sink.flush()
    return written


def convert(
    main: BinaryIO,
    sink: BinaryIO,
    loop_point: int = 0,
    intro: Optional[BinaryIO] = None,
) -> int:
    """Validate the inputs and write an MSU1 track.

    WHY: Library callers and the CLI share one ordering of steps, so the
    loop point is always adjusted by a validated intro length.

    HOW: Validate intro → add its frame count to the loop point →
    validate main → assemble.

    RULES:
    - The intro is validated before the main input
    - Nothing is written to ``sink`` if either validation fails

    Returns:
        Total bytes written.

    Raises:
        WaveValidationError: If the intro or main input is rejected.
        OSError: On read or write failure.
    """
    intro_data_size = None
    if intro is not None:
        intro_data_size = validate(intro)
    effective_loop_point = compute_loop_point(loop_point, intro_data_size)
    logger.debug("Loop point %d -> %d", loop_point, effective_loop_point)

    validate(main)
    return assemble(sink, effective_loop_point, intro, main)
