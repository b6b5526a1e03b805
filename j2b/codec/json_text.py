"""JSON text codec built on the standard library parser.

WHY: The text form needs no custom parser, but the standard library is
lenient in ways a converter must not be: it accepts NaN/Infinity literals,
silently turns 1e400 into infinity, and reports offsets in characters
rather than bytes.

HOW: Input is decoded as strict UTF-8 first, then handed to json.loads
with hooks that reject non-finite numbers. JSONDecodeError positions are
converted back into byte offsets.

RULES:
- Duplicate keys keep the last value (no configurable policy for text)
- No partial result: a failed parse yields MISSING
- Output is indented by INDENT spaces, non-ASCII written verbatim
- Integer literals past the interpreter's digit limit are reported, not raised
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional, Tuple

from j2b.codec import MISSING
from j2b.core.errors import DecodeError, EncodeError, ErrorKind
from j2b.core.ir import DecodeOptions, InvalidTextUnitMode

INDENT = 4


class _NonFiniteLiteral(Exception):
    pass


def _reject_constant(name: str) -> Any:
    raise _NonFiniteLiteral(name)


def _parse_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise _NonFiniteLiteral(literal)
    return value


def _byte_offset(text: str, pos: int) -> int:
    return len(text[:pos].encode("utf-8", "surrogatepass"))


def decode(data: bytes) -> Tuple[Any, int, Optional[DecodeError]]:
    """Parse one JSON document; return ``(value, consumed, error)``."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        return MISSING, 0, DecodeError(ErrorKind.INVALID_TEXT_UNIT, e.start, e.reason)

    if not text.strip(" \t\n\r"):
        return MISSING, 0, DecodeError(ErrorKind.MALFORMED_SYNTAX, 0, "empty document")

    try:
        value = json.loads(text, parse_constant=_reject_constant, parse_float=_parse_float)
    except json.JSONDecodeError as e:
        offset = _byte_offset(text, e.pos)
        kind = ErrorKind.TRUNCATED_INPUT if e.pos >= len(text) else ErrorKind.MALFORMED_SYNTAX
        return MISSING, 0, DecodeError(kind, offset, e.msg)
    except _NonFiniteLiteral as e:
        if e.args[0] in ("NaN", "Infinity", "-Infinity"):
            return MISSING, 0, DecodeError(ErrorKind.MALFORMED_SYNTAX, None, "{} is not valid JSON".format(e.args[0]))
        return MISSING, 0, DecodeError(ErrorKind.NON_FINITE_NUMBER, None, e.args[0])
    except RecursionError:
        return MISSING, 0, DecodeError(ErrorKind.MALFORMED_SYNTAX, None, "document nested too deeply")
    except ValueError as e:
        # int() refuses literals beyond sys.get_int_max_str_digits()
        return MISSING, 0, DecodeError(ErrorKind.MALFORMED_SYNTAX, None, "number cannot be read: {}".format(e))
    return value, len(data), None


def encode(value: Any, options: Optional[DecodeOptions] = None) -> bytes:
    """Serialize ``value`` as indented UTF-8 JSON.

    Under the ``ignore`` UTF-8 mode, strings that kept invalid UTF-8 as
    surrogate escapes are written back as the original bytes. Otherwise a
    lone surrogate cannot be written and raises EncodeError.
    """
    options = options or DecodeOptions()
    keep_raw = options.invalid_text_units is InvalidTextUnitMode.IGNORE
    try:
        text = json.dumps(value, indent=INDENT, ensure_ascii=False, allow_nan=False)
        return text.encode("utf-8", "surrogateescape" if keep_raw else "strict")
    except ValueError as e:
        # UnicodeEncodeError is a ValueError too.
        raise EncodeError("cannot write JSON: {}".format(e)) from e
    except TypeError as e:
        raise EncodeError("cannot write JSON: {}".format(e)) from e
    except RecursionError as e:
        raise EncodeError("document nested too deeply") from e
