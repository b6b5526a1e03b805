"""Reading the source and writing the converted document.

WHY: Input and output are addressed the same way (a path, or ``-`` for
the standard streams) and the orchestrator should not care which. The
only display rule is that JSON shown on a terminal gets a final newline
so the shell prompt does not end up glued to the closing brace.

HOW: read_input() buffers the whole source. write_output() writes bytes
to a file (always closed, also on error) or to a binary stdout stream.

RULES:
- Whole-document buffering; no streaming
- Empty output is never written and never creates a file
- The display newline goes only to a terminal, never to files or pipes
- OSError becomes InputError / OutputError
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO, Optional

from j2b.config import STDIO_TOKEN
from j2b.core.errors import InputError, OutputError
from j2b.formatters.base import FormatterOutput


def read_input(path: str, stdin: Optional[BinaryIO] = None) -> bytes:
    """Read the whole source; ``-`` means standard input."""
    if path == STDIO_TOKEN:
        stream = stdin if stdin is not None else sys.stdin.buffer
        try:
            return stream.read()
        except OSError as e:
            raise InputError("reading stdin: {}".format(e)) from e
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise InputError("reading input file: {}".format(e)) from e


def _is_terminal(stream: BinaryIO) -> bool:
    """True if ``stream`` reports itself as a TTY; streams without isatty() are not."""
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def write_output(
    output: FormatterOutput,
    path: str,
    stdout: Optional[BinaryIO] = None,
) -> None:
    """Write ``output`` to ``path``; ``-`` means standard output."""
    if not output.content:
        return

    if path == STDIO_TOKEN:
        stream = stdout if stdout is not None else sys.stdout.buffer
        try:
            stream.write(output.content)
            if output.human_readable and _is_terminal(stream):
                stream.write(b"\n")
            stream.flush()
        except OSError as e:
            raise OutputError("writing output: {}".format(e)) from e
        return

    try:
        with open(path, "wb") as f:
            f.write(output.content)
    except OSError as e:
        raise OutputError("writing output file: {}".format(e)) from e
