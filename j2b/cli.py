"""Command-line interface for the JSON / BONJSON converter.

WHY: The converter is mostly used from shell pipelines: pipe a document in,
get the other form out, and rely on the exit status. The CLI maps flags to
one immutable DecodeOptions record and one Command, then runs a single
conversion.

HOW: argparse collects the flags; mode values are validated by
config.build_decode_options() before any file is opened. The pipeline
writes whatever output it produced, then the CLI turns a decode error into
one diagnostic line and exit status 1.

RULES:
- Usage: j2b [options] <input> [<output>]; ``-`` is stdin/stdout
- Without <output> the input is only validated
- Exit codes: 0 = success, 1 = conversion error, 2 = usage error
- Diagnostics and the end offset go to stderr, never stdout
- Invalid mode values fail before any I/O
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from j2b import __version__
from j2b.config import (
    DEFAULT_DUPLICATE_KEYS,
    DEFAULT_INVALID_UTF8,
    DEFAULT_NON_FINITE,
    LOG_LEVEL,
    build_decode_options,
)
from j2b.core.errors import ConversionError
from j2b.core.pipeline import COMMANDS, run_conversion

logger = logging.getLogger(__name__)


def _error(msg: str) -> None:
    """Print the single diagnostic line to stderr."""
    print("Error: {}".format(msg), file=sys.stderr, flush=True)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _non_negative_int(value: str) -> int:
    """argparse type for ``--start``: a negative or non-numeric skip is a usage error."""
    try:
        number = int(value)
    except ValueError:
        number = -1
    if number < 0:
        raise argparse.ArgumentTypeError("invalid skip value: {}".format(value))
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect it.
    """
    parser = argparse.ArgumentParser(
        prog="j2b",
        description="Convert JSON to BONJSON or BONJSON to JSON. "
                    "The input format is auto-detected unless --command says otherwise.",
    )

    parser.add_argument("input", help="Input file, or '-' for stdin.")
    parser.add_argument(
        "output",
        nargs="?",
        default=None,
        help="Output file, or '-' for stdout. Omit to only validate the input.",
    )

    parser.add_argument(
        "-c", "--command",
        default="auto",
        help="What to do: {} (default: %(default)s).".format(", ".join(COMMANDS)),
    )
    parser.add_argument(
        "-t", "--allow-trailing",
        action="store_true",
        default=None,
        help="Allow trailing data after a BONJSON document.",
    )
    parser.add_argument(
        "-s", "--start",
        type=_non_negative_int,
        default=0,
        metavar="N",
        help="Skip N bytes before decoding.",
    )
    parser.add_argument(
        "-e", "--end-offset",
        action="store_true",
        help="Print the byte offset where the BONJSON document ended to stderr.",
    )
    parser.add_argument(
        "--duplicate-keys",
        default=None,
        metavar="MODE",
        help="reject, keep-first or keep-last (default: {}).".format(DEFAULT_DUPLICATE_KEYS),
    )
    parser.add_argument(
        "--non-finite",
        default=None,
        metavar="MODE",
        help="NaN/Infinity in BONJSON: reject, allow or stringify "
             "(default: {}).".format(DEFAULT_NON_FINITE),
    )
    parser.add_argument(
        "--invalid-utf8",
        default=None,
        metavar="MODE",
        help="Malformed UTF-8 in BONJSON strings: reject, replace, delete or ignore "
             "(default: {}).".format(DEFAULT_INVALID_UTF8),
    )
    parser.add_argument(
        "--allow-nul",
        action="store_true",
        default=None,
        help="Allow NUL characters inside BONJSON strings.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log detection and decoding details to stderr.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Returns the process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    command = COMMANDS.get(args.command)
    if command is None:
        _error("Unknown command '{}'. Available commands: {}".format(args.command, ", ".join(COMMANDS)))
        return 1
    if command.validate_only and args.output is not None:
        _error("Command '{}' does not write output".format(args.command))
        return 1

    try:
        options = build_decode_options(
            duplicate_keys=args.duplicate_keys,
            non_finite=args.non_finite,
            invalid_utf8=args.invalid_utf8,
            allow_nul=args.allow_nul,
            allow_trailing=args.allow_trailing,
        )
    except ValueError as e:
        _error(str(e))
        return 1
    logger.debug("Command %s with %s", args.command, options)

    try:
        result = run_conversion(
            args.input,
            args.output,
            command,
            options,
            skip_offset=args.start,
            report_end_offset=args.end_offset,
        )
    except ConversionError as e:
        _error(str(e))
        return 1

    if result.error is not None:
        _error(str(result.error))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
