"""Single-byte predicates used by the format detector.

All functions take one byte as an int (what indexing ``bytes`` yields) and
have no state.
"""

from __future__ import annotations

WHITESPACE = frozenset(b" \t\n\r")
DIGITS = frozenset(b"0123456789")

# First non-whitespace byte of any JSON document.
TEXT_START = frozenset(b'{["tfn-') | DIGITS

# Bytes that may follow the first digit of a JSON number: more of the
# number, or whatever ends it.
NUMBER_CONTINUATION = DIGITS | frozenset(b".eE") | WHITESPACE | frozenset(b",]}")


def is_whitespace(b: int) -> bool:
    """True for the four JSON whitespace bytes: space, tab, LF and CR."""
    return b in WHITESPACE


def is_digit(b: int) -> bool:
    """True for ASCII ``0``-``9``."""
    return b in DIGITS


def is_text_start(b: int) -> bool:
    """True if ``b`` can open a JSON document."""
    return b in TEXT_START


def is_number_continuation(b: int) -> bool:
    """True if ``b`` may follow the first digit of a JSON number.

    That is more of the number (digit, decimal point, exponent marker) or
    a byte that ends it inside a document (whitespace, comma, closing
    bracket or brace). BONJSON small-integer bytes followed by anything
    else are what this rules out.
    """
    return b in NUMBER_CONTINUATION


def skip_whitespace(data: bytes, start: int = 0) -> int:
    """Index of the first non-whitespace byte at or after ``start``."""
    end = len(data)
    while start < end and data[start] in WHITESPACE:
        start += 1
    return start
