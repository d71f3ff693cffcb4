"""Unit tests for loop-point arithmetic and MSU1 track assembly.

WHY: A wrong loop point makes a track jump to the wrong place on every
repeat, and a wrong byte in the header makes the MSU-1 player refuse the
track. Both are invisible until the game is running.

HOW: Tests cover loop-point parsing and 32-bit wrapping, the header
layout, assembly with and without an intro (including the two reference
scenarios: 12-byte plain track, and intro shifting the loop point from 1
to 5), and convert() writing nothing when validation fails.
"""

import io

import pytest

from wav2msu.core.assembler import (
    assemble,
    compute_loop_point,
    convert,
    copy_stream,
    parse_loop_point,
    read_header,
    to_int32,
    write_header,
)
from wav2msu.core.ir import OutputHeader, OutputHeaderError, frames_in
from wav2msu.core.validator import (
    FormatMismatchError,
    NotPCMError,
    read_wave_header,
    validate,
)


class TestParseLoopPoint:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("0", 0),
            ("1234", 1234),
            ("0x1f", 31),
            ("0XABCD", 0xABCD),
            ("-5", -5),
            ("+0x10", 16),
            ("  42 ", 42),
            ("007", 7),
        ],
    )
    def test_valid_literals(self, text, expected):
        assert parse_loop_point(text) == expected

    @pytest.mark.parametrize("text", ["", "0x", "abc", "12abc", "1_000", "--1", "0xg", "1.5"])
    def test_invalid_literals(self, text):
        with pytest.raises(ValueError):
            parse_loop_point(text)


class TestLoopPointComputation:

    def test_no_intro_keeps_base(self):
        assert compute_loop_point(1234) == 1234

    def test_intro_adds_frame_count(self):
        assert compute_loop_point(1, 16) == 5

    def test_partial_frame_ignored(self):
        assert compute_loop_point(0, 18) == 4

    def test_empty_intro(self):
        assert compute_loop_point(7, 0) == 7

    def test_wraps_to_signed_32_bit(self):
        assert compute_loop_point(0x7FFFFFFF, 4) == -0x80000000
        assert compute_loop_point(0xFFFFFFFF) == -1

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, 0),
            (-1, -1),
            (0x80000000, -0x80000000),
            (0x100000005, 5),
            (-0x80000001, 0x7FFFFFFF),
        ],
    )
    def test_to_int32(self, value, expected):
        assert to_int32(value) == expected


class TestHeader:

    def test_layout(self):
        sink = io.BytesIO()
        write_header(sink, 5)
        assert sink.getvalue() == b"MSU1\x05\x00\x00\x00"

    def test_negative_loop_point(self):
        sink = io.BytesIO()
        write_header(sink, -1)
        assert sink.getvalue() == b"MSU1\xff\xff\xff\xff"

    def test_out_of_range_value_wrapped(self):
        sink = io.BytesIO()
        write_header(sink, 0x1_0000_0002)
        assert sink.getvalue()[4:] == b"\x02\x00\x00\x00"

    def test_read_back(self):
        assert read_header(io.BytesIO(b"MSU1\x10\x00\x00\x00rest")).loop_point == 16

    def test_read_rejects_wrong_tag(self):
        with pytest.raises(OutputHeaderError):
            read_header(io.BytesIO(b"RIFF\x00\x00\x00\x00"))

    def test_read_rejects_short_header(self):
        with pytest.raises(OutputHeaderError):
            OutputHeader.unpack(b"MSU1\x00")


class TestFrameCount:
    """One stereo 16-bit frame is four bytes, wherever frames are counted."""

    @pytest.mark.parametrize("byte_count, frames", [(0, 0), (4, 1), (7, 1), (16, 4)])
    def test_frames_in(self, byte_count, frames):
        assert frames_in(byte_count) == frames

    def test_loop_point_and_header_agree(self, intro_wave):
        header = read_wave_header(io.BytesIO(intro_wave))
        assert compute_loop_point(0, header.data_size) == header.frame_count == 4


class TestCopyStream:

    def test_copies_everything_in_chunks(self):
        data = bytes(range(256)) * 10
        sink = io.BytesIO()
        assert copy_stream(io.BytesIO(data), sink, chunk_size=7) == len(data)
        assert sink.getvalue() == data

    def test_default_chunk_size_from_environment(self, monkeypatch, pipe_stream):
        monkeypatch.setenv("WAV2MSU_COPY_CHUNK_SIZE", "2")
        sink = io.BytesIO()
        assert copy_stream(pipe_stream(b"abcde"), sink) == 5
        assert sink.getvalue() == b"abcde"


class TestAssemble:

    def test_without_intro(self, main_wave, main_samples):
        main = io.BytesIO(main_wave)
        validate(main)
        sink = io.BytesIO()

        written = assemble(sink, 0, None, main)

        assert sink.getvalue() == b"MSU1\x00\x00\x00\x00" + main_samples
        assert written == 12

    def test_with_intro(self, intro_wave, main_wave, intro_samples, main_samples):
        intro = io.BytesIO(intro_wave)
        main = io.BytesIO(main_wave)
        loop_point = compute_loop_point(1, validate(intro))
        validate(main)
        sink = io.BytesIO()

        written = assemble(sink, loop_point, intro, main)

        output = sink.getvalue()
        assert output == b"MSU1\x05\x00\x00\x00" + intro_samples + main_samples
        assert written == len(output) == 8 + 16 + 8

    def test_explicit_chunk_size_ignores_environment(self, monkeypatch, main_wave, main_samples):
        monkeypatch.setenv("WAV2MSU_COPY_CHUNK_SIZE", "big")
        main = io.BytesIO(main_wave)
        validate(main)
        sink = io.BytesIO()

        assert assemble(sink, 0, None, main, chunk_size=3) == 12
        assert sink.getvalue()[8:] == main_samples

    def test_copies_trailing_bytes(self, wave_builder, main_samples):
        # Everything after the header is copied, including trailing chunks
        main = io.BytesIO(wave_builder(main_samples) + b"LIST\x00\x00\x00\x00")
        validate(main)
        sink = io.BytesIO()
        assemble(sink, 0, None, main)
        assert sink.getvalue()[8:] == main_samples + b"LIST\x00\x00\x00\x00"


class TestConvert:

    def test_plain_track(self, main_wave, main_samples):
        sink = io.BytesIO()
        assert convert(io.BytesIO(main_wave), sink) == 12
        assert sink.getvalue() == b"MSU1" + b"\x00" * 4 + main_samples

    def test_intro_shifts_loop_point(
        self, pipe_stream, intro_wave, main_wave, intro_samples, main_samples
    ):
        sink = io.BytesIO()
        convert(pipe_stream(main_wave), sink, loop_point=1, intro=pipe_stream(intro_wave))

        sink.seek(0)
        assert read_header(sink).loop_point == 5
        assert sink.read() == intro_samples + main_samples

    def test_bad_main_writes_nothing(self, wave_builder, main_samples):
        sink = io.BytesIO()
        with pytest.raises(NotPCMError):
            convert(io.BytesIO(wave_builder(main_samples, format_tag=3)), sink)
        assert sink.getvalue() == b""

    def test_bad_intro_writes_nothing(self, wave_builder, main_wave, intro_samples):
        sink = io.BytesIO()
        intro = io.BytesIO(wave_builder(intro_samples, sample_rate=48000))
        with pytest.raises(FormatMismatchError):
            convert(io.BytesIO(main_wave), sink, intro=intro)
        assert sink.getvalue() == b""
