"""Exception hierarchy for conversion failures.

WHY: The orchestrator treats failures differently depending on where they
happen. Unreadable input and unwritable output abort a conversion at once,
while decode errors are carried alongside the partial output and only
reported after it was written. Distinct exception types make that policy
explicit.

HOW: Every failure derives from ConversionError. DecodeError additionally
carries a structured ErrorKind and the byte offset where decoding stopped.

RULES:
- InputError, EncodeError and OutputError are always fatal to the request
- DecodeError is returned inside ConversionResult, never raised past the
  orchestrator
- str(DecodeError) is the single diagnostic line shown to the user
"""

from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Structured decode failure kinds."""

    DUPLICATE_KEY = "duplicate key"
    INVALID_TEXT_UNIT = "invalid UTF-8"
    EMBEDDED_NUL = "embedded NUL character"
    TRUNCATED_INPUT = "truncated input"
    TRAILING_DATA = "trailing data"
    NON_FINITE_NUMBER = "non-finite number"
    MALFORMED_SYNTAX = "malformed document"


class ConversionError(Exception):
    """Base class for all conversion failures."""


class InputError(ConversionError):
    """Source unreadable, empty, or the skip offset is out of range."""


class EncodeError(ConversionError):
    """The decoded value cannot be represented in the destination form."""


class OutputError(ConversionError):
    """Destination could not be created or written."""


class DecodeError(ConversionError):
    """A document failed to decode.

    Attributes:
        kind: Which rule the input violated.
        offset: Byte offset (relative to the decoded buffer) at which the
                violation was detected, or None when unknown.
        detail: Optional human-readable elaboration.
    """

    def __init__(self, kind: ErrorKind, offset: Optional[int] = None, detail: str = ""):
        self.kind = kind
        self.offset = offset
        self.detail = detail
        super().__init__(self._describe())

    def _describe(self) -> str:
        message = self.kind.value
        if self.detail:
            message = "{}: {}".format(message, self.detail)
        if self.offset is not None:
            message = "{} at offset {}".format(message, self.offset)
        return message

    def shifted(self, delta: int) -> DecodeError:
        """Return a copy with the offset moved by ``delta`` bytes."""
        offset = None if self.offset is None else self.offset + delta
        return DecodeError(self.kind, offset, self.detail)
