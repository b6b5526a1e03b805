"""Data model shared by the detector, codec adapter and orchestrator.

WHY: Every stage of a conversion needs the same vocabulary: which form a
buffer is in, which behaviour modes apply while decoding, and what came out
of the conversion. Keeping these as plain typed records decouples the
orchestrator from the CLI that builds them.

HOW: Closed str enums for the forms and behaviour modes, a frozen
DecodeOptions record, and two dataclasses describing one conversion's
input (ConversionRequest) and outcome (ConversionResult).

Values themselves are plain Python objects: None, bool, int, float, str,
list and dict. Dicts keep insertion order, which is the document's key
order; key uniqueness is enforced by the decoder according to
DuplicateKeyMode, not by the model.

RULES:
- DecodeOptions is immutable once built
- A ConversionResult may hold output bytes AND a decode error
- source_form None means "detect"; destination_form None means
  "validate only" unless to_opposite_form is set
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from j2b.core.errors import DecodeError


class Form(str, enum.Enum):
    """The two interchangeable document forms."""

    TEXT = "json"
    BINARY = "bonjson"

    def opposite(self) -> Form:
        return Form.BINARY if self is Form.TEXT else Form.TEXT


class DuplicateKeyMode(str, enum.Enum):
    REJECT = "reject"
    KEEP_FIRST = "keep-first"
    KEEP_LAST = "keep-last"


class InvalidTextUnitMode(str, enum.Enum):
    """What to do with malformed UTF-8 inside a binary-form string.

    ``ignore`` keeps the raw bytes; they survive a round trip through either
    encoder unchanged.
    """

    REJECT = "reject"
    REPLACE = "replace"
    DELETE = "delete"
    IGNORE = "ignore"


class NonFiniteNumberMode(str, enum.Enum):
    REJECT = "reject"
    ALLOW = "allow"
    STRINGIFY = "stringify"


@dataclass(frozen=True)
class DecodeOptions:
    """Behaviour modes applied by the codec adapter.

    Built once per invocation (see config.build_decode_options) and passed
    by value into every decode and encode call.
    """

    duplicate_keys: DuplicateKeyMode = DuplicateKeyMode.REJECT
    invalid_text_units: InvalidTextUnitMode = InvalidTextUnitMode.REJECT
    non_finite_numbers: NonFiniteNumberMode = NonFiniteNumberMode.REJECT
    allow_embedded_nul: bool = False
    allow_trailing_bytes: bool = False


@dataclass
class ConversionRequest:
    """Everything the orchestrator needs for a single conversion.

    Attributes:
        input_bytes: The whole source document, already read.
        skip_offset: Number of leading bytes to ignore (must be < len).
        source_form: Explicit source form, or None to auto-detect.
        destination_form: Explicit destination form, or None.
        to_opposite_form: Convert to whichever form the source is not.
                          Only meaningful when destination_form is None.
        options: Decode/encode behaviour modes.
        report_end_offset: Ask the caller to report skip + consumed bytes.
    """

    input_bytes: bytes
    skip_offset: int = 0
    source_form: Optional[Form] = None
    destination_form: Optional[Form] = None
    to_opposite_form: bool = False
    options: DecodeOptions = field(default_factory=DecodeOptions)
    report_end_offset: bool = False

    @property
    def validate_only(self) -> bool:
        return self.destination_form is None and not self.to_opposite_form


@dataclass
class ConversionResult:
    """Outcome of one conversion.

    Attributes:
        output: Encoded bytes, possibly a partial document, possibly empty.
        source_form: The form the input was decoded as.
        destination_form: The form ``output`` is in, None when validating.
        consumed: Bytes consumed by the decoder (excluding the skip).
        end_offset: skip_offset + consumed.
        error: Unsuppressed decode error, or None on success.
    """

    output: bytes
    source_form: Form
    destination_form: Optional[Form]
    consumed: int
    end_offset: int
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
