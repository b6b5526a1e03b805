"""Conversion orchestrator: read, skip, detect, decode, encode, write.

WHY: A conversion is more than decode-then-encode. The source may carry a
header to skip, its form may be unknown, and a damaged BONJSON document
should still yield everything that decoded before the damage. The order
in which these happen, and which failures abort versus which are reported
afterwards, is the contract this module owns.

HOW: convert() is the pure core: bytes in, ConversionResult out. It skips,
detects (when the source form is not given), decodes through the codec
adapter and encodes the possibly partial value with the destination
formatter. run_conversion() wraps it with reading the source, writing the
output and reporting the end offset.

RULES:
- One pass per invocation, in causal order: read, skip, decode, encode,
  write, report
- InputError / EncodeError / OutputError abort immediately
- A decode error never aborts: the partial output is written first and
  the error is returned in the result
- Validate-only requests never produce or write output
- Decode error offsets are absolute (they include the skip)
- The end offset is reported for binary sources only, on success and on
  failure alike
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional, TextIO, Tuple

from j2b.adapters.codec_adapter import DecodeOutcome, decode
from j2b.core.detect import detect
from j2b.core.errors import InputError
from j2b.core.ir import ConversionRequest, ConversionResult, DecodeOptions, Form
from j2b.core.output import read_input, write_output
from j2b.formatters import FORMATTERS
from j2b.formatters.base import FormatterOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    """What a command selector fixes about a request.

    Attributes:
        source_form: Explicit source form, or None to auto-detect.
        destination_form: Explicit destination form, or None.
        to_opposite_form: Convert to the form the source is not.
    """

    source_form: Optional[Form]
    destination_form: Optional[Form]
    to_opposite_form: bool = False

    @property
    def validate_only(self) -> bool:
        return self.destination_form is None and not self.to_opposite_form


COMMANDS: Dict[str, Command] = {
    "auto": Command(None, None, to_opposite_form=True),
    "validate-json": Command(Form.TEXT, None),
    "validate-bonjson": Command(Form.BINARY, None),
    "json-to-bonjson": Command(Form.TEXT, Form.BINARY),
    "json-to-json": Command(Form.TEXT, Form.TEXT),
    "bonjson-to-json": Command(Form.BINARY, Form.TEXT),
    "bonjson-to-bonjson": Command(Form.BINARY, Form.BINARY),
}


def _apply_skip(data: bytes, skip: int) -> bytes:
    """Drop the first ``skip`` bytes of the source.

    RULES:
    - A negative skip, or one that reaches the end of the input, is an
      InputError raised before any decode attempt
    - An empty buffer is an InputError whether or not a skip was asked for
    """
    if skip < 0:
        raise InputError("invalid skip value: {}".format(skip))
    if skip > 0:
        if skip >= len(data):
            raise InputError("skip value {} exceeds input size {}".format(skip, len(data)))
        logger.debug("Skipping %d leading bytes", skip)
        data = data[skip:]
    if not data:
        raise InputError("input is empty")
    return data


def _encode(request: ConversionRequest, source: Form, value: object) -> Optional[FormatterOutput]:
    """Encode ``value`` in the request's destination form.

    Returns None when the request names no destination (validate only).
    """
    destination = request.destination_form
    if destination is None and request.to_opposite_form:
        destination = source.opposite()
    if destination is None:
        return None
    formatter = FORMATTERS[destination](request.options)
    logger.debug("Encoding as %s", formatter.name)
    return formatter.format(value)


def decode_document(request: ConversionRequest) -> Tuple[ConversionResult, DecodeOutcome]:
    """Skip, detect and decode; return ``(result, outcome)``.

    The result carries the source form, the offsets and any decode error,
    but no output yet. Its end offset is final from here on.
    """
    data = _apply_skip(request.input_bytes, request.skip_offset)

    source = request.source_form
    if source is None:
        source = detect(data)

    outcome = decode(data, source, request.options)
    error = outcome.error
    if error is not None:
        if request.skip_offset:
            error = error.shifted(request.skip_offset)
        logger.debug("Decode stopped after %d bytes: %s", outcome.consumed, error)

    result = ConversionResult(
        output=b"",
        source_form=source,
        destination_form=None,
        consumed=outcome.consumed,
        end_offset=request.skip_offset + outcome.consumed,
        error=error,
    )
    return result, outcome


def encode_document(
    request: ConversionRequest,
    result: ConversionResult,
    outcome: DecodeOutcome,
) -> Optional[FormatterOutput]:
    """Encode the (possibly partial) decoded value into ``result``.

    Nothing is encoded when validating or when nothing could be decoded.
    """
    if request.validate_only or not outcome.has_value:
        return None
    formatted = _encode(request, result.source_form, outcome.value)
    if formatted is not None:
        result.output = formatted.content
        result.destination_form = formatted.form
    return formatted


def convert_document(
    request: ConversionRequest,
) -> Tuple[ConversionResult, Optional[FormatterOutput]]:
    """Run skip, decode and encode; return ``(result, formatter_output)``.

    ``formatter_output`` is None when validating or when nothing at all
    could be decoded.
    """
    result, outcome = decode_document(request)
    return result, encode_document(request, result, outcome)


def convert(request: ConversionRequest) -> ConversionResult:
    """Convert in memory. Decode errors are returned, not raised."""
    result, _ = convert_document(request)
    return result


def _report_end_offset(end_offset: int, stderr: Optional[TextIO]) -> None:
    stream = stderr if stderr is not None else sys.stderr
    stream.write("{}\n".format(end_offset))
    stream.flush()


def run_conversion(
    input_path: str,
    output_path: Optional[str],
    command: Command,
    options: DecodeOptions,
    skip_offset: int = 0,
    report_end_offset: bool = False,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    stderr: Optional[TextIO] = None,
) -> ConversionResult:
    """Execute one full conversion against paths.

    ``output_path`` None means validate only, whatever the command.

    Once a BONJSON source has been decoded, the end offset is reported even
    if encoding or writing then fails.

    Raises:
        InputError, EncodeError, OutputError: fatal failures.
    """
    data = read_input(input_path, stdin)

    validate_only = output_path is None or command.validate_only
    request = ConversionRequest(
        input_bytes=data,
        skip_offset=skip_offset,
        source_form=command.source_form,
        destination_form=None if validate_only else command.destination_form,
        to_opposite_form=False if validate_only else command.to_opposite_form,
        options=options,
        report_end_offset=report_end_offset,
    )

    result, outcome = decode_document(request)
    try:
        formatted = encode_document(request, result, outcome)
        if formatted is not None and output_path is not None:
            write_output(formatted, output_path, stdout)
    finally:
        if request.report_end_offset and result.source_form is Form.BINARY:
            _report_end_offset(result.end_offset, stderr)

    return result
