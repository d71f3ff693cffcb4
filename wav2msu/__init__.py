"""wav2msu — RIFF WAVE to MSU-1 PCM track converter.

WHY: MSU-1 audio add-ons for SNES emulators stream a headerless PCM format:
an 8-byte header (``MSU1`` tag + loop point) followed by raw 16-bit stereo
44.1kHz samples. Audio tools export RIFF WAVE. This package bridges the two.

HOW: Two-stage pipeline — validate (parse the WAVE header and check the
sample format) and assemble (write the MSU1 header, then stream the intro
and main sample bytes). Each stage is independently testable.

RULES:
- Input must be 16-bit, 44.1kHz, 2-channel PCM — no resampling, ever
- The loop point is a sample-frame offset into the final stream (intro + main)
- Nothing is written until every input has validated
"""

__version__ = "0.1.0"
