"""Command-line interface for the WAVE to MSU1 converter.

WHY: Users need a single command that turns a WAVE export into an MSU-1
track, optionally with an intro and a loop point, and that can sit in a
shell pipeline (stdin in, stdout out).

HOW: Uses argparse to accept an input path (or ``-`` for stdin), an output
path, a loop point and an intro path. Inputs are opened and validated
first; the output is only opened once both validated. Every file the CLI
opens is closed on every exit path through an ExitStack. Status and error
messages go to stderr.

RULES:
- Positional argument: input WAVE path, or ``-`` for stdin
- No input argument → print help, exit 0
- More than one input → "Too many input files.", exit 1
- --loop-point accepts decimal or 0x-prefixed hexadecimal
- Default output is stdout (binary)
- A failed run leaves no output file behind
- Exit status 1 for every error, including argument errors
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional

from wav2msu import __version__
from wav2msu.config import LOG_LEVEL, load_chunk_size
from wav2msu.core.assembler import assemble, compute_loop_point, parse_loop_point
from wav2msu.core.validator import WaveValidationError, validate

logger = logging.getLogger(__name__)

PROG = "wav2msu"
STDIN_NAME = "-"


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad arguments."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, "{}: {}\n".format(self.prog, message))


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: stdout may carry the converted track, so it must stay clean.
    """
    print(msg, file=sys.stderr, flush=True)


def _loop_point_arg(text: str) -> int:
    try:
        return parse_loop_point(text)
    except ValueError:
        raise argparse.ArgumentTypeError(
            "invalid loop point {!r} (use decimal or 0x-prefixed hex)".format(text)
        )


def _open_input(path: str, stack: contextlib.ExitStack) -> Optional[BinaryIO]:
    """Open an input path for binary reading, or report why it failed.

    ``-`` maps to stdin's binary buffer, which is never closed here.
    """
    if path == STDIN_NAME:
        _status("Reading from stdin.")
        return sys.stdin.buffer
    try:
        return stack.enter_context(open(path, "rb"))
    except OSError as e:
        logger.debug("open(%r) failed: %s", path, e)
        _status("{}: can't open {}".format(PROG, path))
        return None


def _validate_or_report(stream: BinaryIO, failure_note: str) -> Optional[int]:
    """Run the validator, printing diagnostics on failure."""
    try:
        return validate(stream)
    except WaveValidationError as e:
        _status("{}: {}".format(PROG, e))
        _status("{}: {}".format(PROG, failure_note))
        return None
    except OSError as e:
        _status("{}: read failed: {}".format(PROG, e))
        _status("{}: {}".format(PROG, failure_note))
        return None


def _discard_partial_output(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        logger.warning("Could not remove partial output file %s", path)


def _run(args: argparse.Namespace) -> int:
    """Execute one conversion and return the process exit status."""
    input_path: str = args.input_files[0]

    try:
        chunk_size = load_chunk_size()
    except ValueError as e:
        _status("{}: {}".format(PROG, e))
        return 1

    with contextlib.ExitStack() as stack:
        intro = None
        if args.intro is not None:
            intro = _open_input(args.intro, stack)
            if intro is None:
                return 1

        infile = _open_input(input_path, stack)
        if infile is None:
            return 1

        intro_size = None
        if intro is not None:
            intro_size = _validate_or_report(intro, "Intro file did not validate.")
            if intro_size is None:
                return 1
        loop_point = compute_loop_point(args.loop_point, intro_size)

        if _validate_or_report(infile, "Input WAV data did not validate.") is None:
            return 1

        output_path: Optional[Path] = None
        if args.output is None:
            outfile = sys.stdout.buffer
        else:
            output_path = Path(args.output)
            try:
                outfile = stack.enter_context(open(output_path, "wb"))
            except OSError as e:
                logger.debug("open(%r) failed: %s", args.output, e)
                _status("{}: can't open {}".format(PROG, args.output))
                return 1

        try:
            written = assemble(outfile, loop_point, intro, infile, chunk_size)
        except OSError as e:
            _status("{}: write failed: {}".format(PROG, e))
            if output_path is not None:
                outfile.close()
                _discard_partial_output(output_path)
            return 1

    logger.info(
        "Wrote %d bytes to %s (loop point %d)",
        written, args.output or "stdout", loop_point,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running a conversion.

    RULES:
    - Positional: input_files (zero or more, validated in main())
    - Optional: -o/--output, -l/--loop-point, -i/--intro, -v/--verbose
    """
    parser = _Parser(
        prog=PROG,
        usage="%(prog)s [-o outfile] [-l looppoint] [-i introfile] FILE.wav",
        description="Converts wave-files to a MSU1-compatible format. "
                    "Input is required to be a RIFF WAVE file in 16bit, 44.1kHz, "
                    "2ch PCM format. Set filename to '-' to read from stdin.",
    )

    parser.add_argument(
        "input_files",
        nargs="*",
        metavar="FILE.wav",
        help="WAVE file to convert, or '-' for stdin.",
    )

    parser.add_argument(
        "-o", "--output",
        default=None,
        metavar="outfile.pcm",
        help="Output to the given filename (default: stdout).",
    )

    parser.add_argument(
        "-l", "--loop-point",
        type=_loop_point_arg,
        default=0,
        metavar="looppoint",
        help="Sample (relative to beginning of input file) from which to loop, "
             "decimal or hexadecimal (0xabcd).",
    )

    parser.add_argument(
        "-i", "--intro",
        default=None,
        metavar="file.wav",
        help="Put <file.wav> before the main input file.",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug details to stderr.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Always terminates via SystemExit with the run's status
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.input_files:
        parser.print_help()
        sys.exit(0)
    if len(args.input_files) > 1:
        _status("Too many input files.")
        parser.print_usage(sys.stderr)
        sys.exit(1)

    _configure_logging(args.verbose)
    sys.exit(_run(args))


if __name__ == "__main__":
    main()
