"""Decide whether an opaque buffer is JSON text or BONJSON binary.

WHY: Input arrives without a file type. Most BONJSON type codes are also
printable ASCII, so a byte such as ``{`` or ``5`` is the start of a JSON
document and, equally, a complete BONJSON value or a BONJSON type prefix.
Detection must not guess wrong for any well-formed document of either form.

HOW: Look at the first non-whitespace byte. Two BONJSON container starts
(0x99, 0x9a) can never begin JSON; ``f`` (0x66) is reserved in BONJSON and
so can only be JSON ``false``; any other byte that cannot begin JSON is
BONJSON. The remaining ambiguous bytes each get one rule that peeks at a
constant number of following bytes, exploiting a structural property of
BONJSON that no valid JSON continuation shares:

  ``t``       JSON ``true``         | BONJSON uint40 prefix
  ``n``       JSON ``null``         | BONJSON false
  ``{``       JSON object           | BONJSON int32 prefix
  ``[``       JSON array            | BONJSON small int 91
  ``"``       JSON string           | BONJSON small int 34
  ``-``       JSON negative number  | BONJSON small int 45
  ``0``-``9`` JSON number           | BONJSON small int 48..57

RULES:
- detect() never raises; an empty or all-whitespace buffer is TEXT
  (the JSON parser then reports the empty document)
- Only single-byte or structurally truncated inputs can be misjudged;
  the decoder is the authority on validity
- A lone digit is BINARY: a one-byte small integer is far more common
  than a one-digit JSON document
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from j2b.core.classify import (
    is_digit,
    is_number_continuation,
    is_text_start,
    skip_whitespace,
)
from j2b.core.ir import Form

logger = logging.getLogger(__name__)

BINARY_ARRAY_START = 0x99
BINARY_OBJECT_START = 0x9A
# 0x66 is reserved in BONJSON and is ASCII 'f'.
BINARY_RESERVED_F = ord("f")


def _looks_like_true(rest: bytes) -> bool:
    return rest[:3] == b"rue"


def _looks_like_null(rest: bytes) -> bool:
    return rest[:3] == b"ull"


def _looks_like_object(rest: bytes) -> bool:
    """After ``{``: optional whitespace, then a key quote or ``}``.

    EOF right after the brace is not valid JSON either, so it is treated as
    a truncated BONJSON int32.
    """
    i = skip_whitespace(rest)
    if i >= len(rest):
        return False
    return rest[i] in b'"}'


def _looks_like_array(rest: bytes) -> bool:
    """After ``[``: optional whitespace, then a value start or ``]``."""
    i = skip_whitespace(rest)
    if i >= len(rest):
        return False
    return is_text_start(rest[i]) or rest[i] == ord("]")


def _looks_like_string(rest: bytes) -> bool:
    return len(rest) > 0


def _looks_like_negative(rest: bytes) -> bool:
    return len(rest) > 0 and is_digit(rest[0])


def _looks_like_number(rest: bytes) -> bool:
    if not rest:
        return False
    return is_number_continuation(rest[0])


# Ambiguous first byte -> predicate over the bytes that follow it.
# True means JSON.
_AMBIGUOUS_RULES: Dict[int, Callable[[bytes], bool]] = {
    ord("t"): _looks_like_true,
    ord("n"): _looks_like_null,
    ord("{"): _looks_like_object,
    ord("["): _looks_like_array,
    ord('"'): _looks_like_string,
    ord("-"): _looks_like_negative,
}
for _digit in b"0123456789":
    _AMBIGUOUS_RULES[_digit] = _looks_like_number
del _digit


def looks_like_text(data: bytes) -> bool:
    """Return True if ``data`` appears to be a JSON document."""
    start = skip_whitespace(data)
    if start >= len(data):
        return True

    first = data[start]
    if first in (BINARY_ARRAY_START, BINARY_OBJECT_START):
        return False
    if first == BINARY_RESERVED_F:
        return True
    if not is_text_start(first):
        return False

    rule = _AMBIGUOUS_RULES.get(first)
    if rule is None:
        return True
    # Every rule needs at most three bytes, except for the whitespace run
    # after an opening bracket or brace.
    return rule(memoryview(data)[start + 1:])


def detect(data: bytes) -> Form:
    """Classify ``data`` as Form.TEXT or Form.BINARY."""
    form = Form.TEXT if looks_like_text(data) else Form.BINARY
    logger.debug("Detected %s input (%d bytes)", form.value, len(data))
    return form
