"""Adapter: raw codec results to a uniform DecodeOutcome.

WHY: The two codecs report results slightly differently. The binary codec
stops after one document and leaves trailing bytes to the caller, the text
codec consumes everything. The orchestrator wants one shape regardless of
form, with every configured policy already applied.

HOW: decode() dispatches on the form and wraps the codec's
``(value, consumed, error)`` triple in a DecodeOutcome. For the binary
form it turns unread bytes into a TRAILING_DATA error unless the options
allow trailing bytes.

RULES:
- Never raises DecodeError; errors travel inside the outcome
- TRAILING_DATA is only produced for the binary form
- A suppressed trailing-data condition is logged, not reported
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from j2b.codec import MISSING, bonjson, json_text
from j2b.core.errors import DecodeError, ErrorKind
from j2b.core.ir import DecodeOptions, Form

logger = logging.getLogger(__name__)


@dataclass
class DecodeOutcome:
    """Normalized decode result.

    Attributes:
        value: Decoded value tree, possibly partial, or MISSING.
        consumed: Number of bytes the decoder used.
        error: Decode error with the policy applied, or None.
    """

    value: Any
    consumed: int
    error: Optional[DecodeError] = None

    @property
    def has_value(self) -> bool:
        return self.value is not MISSING


def decode_binary(data: bytes, options: DecodeOptions) -> DecodeOutcome:
    """Decode one BONJSON document and apply the trailing-bytes policy.

    Unread bytes after a cleanly decoded document become TRAILING_DATA at
    the offset where the document ended, unless the options allow them.
    A decode that already failed keeps its own error.
    """
    value, consumed, error = bonjson.decode(data, options)
    if error is None and consumed < len(data):
        extra = len(data) - consumed
        if options.allow_trailing_bytes:
            logger.debug("Ignoring %d trailing bytes after offset %d", extra, consumed)
        else:
            error = DecodeError(
                ErrorKind.TRAILING_DATA,
                consumed,
                "{} byte(s) after the document".format(extra),
            )
    return DecodeOutcome(value=value, consumed=consumed, error=error)


def decode_text(data: bytes) -> DecodeOutcome:
    """Decode JSON text; the text parser has no configurable policy."""
    value, consumed, error = json_text.decode(data)
    return DecodeOutcome(value=value, consumed=consumed, error=error)


def decode(data: bytes, form: Form, options: DecodeOptions) -> DecodeOutcome:
    """Decode ``data`` as ``form`` with ``options`` applied."""
    if form is Form.BINARY:
        return decode_binary(data, options)
    return decode_text(data)
