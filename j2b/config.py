"""Configuration defaults, mode parsing, and .env loading.

WHY: Every behaviour mode has a closed set of values and a default. Both
need to live in one place so the CLI, the environment and the tests agree,
and so an invalid value is rejected before any file is touched.

HOW: python-dotenv loads the .env file on import. Defaults are read from
J2B_* environment variables, falling back to the strict settings.
build_decode_options() turns raw strings (from flags or the environment)
into a frozen DecodeOptions, raising ValueError for unknown values.

RULES:
- Defaults are the strict settings: reject duplicates, invalid UTF-8,
  non-finite numbers, NUL characters and trailing bytes
- Mode strings are case-insensitive; underscores are accepted for hyphens
- Parsing happens once, before any I/O
"""

from __future__ import annotations

import enum
import os
from typing import Optional, Type, TypeVar

from dotenv import load_dotenv

from j2b.core.ir import (
    DecodeOptions,
    DuplicateKeyMode,
    InvalidTextUnitMode,
    NonFiniteNumberMode,
)

# Load .env from the working directory
load_dotenv()

STDIO_TOKEN = "-"
"""Path token meaning standard input (as source) or standard output."""

DEFAULT_DUPLICATE_KEYS = os.getenv("J2B_DUPLICATE_KEYS", DuplicateKeyMode.REJECT.value)
DEFAULT_NON_FINITE = os.getenv("J2B_NON_FINITE", NonFiniteNumberMode.REJECT.value)
DEFAULT_INVALID_UTF8 = os.getenv("J2B_INVALID_UTF8", InvalidTextUnitMode.REJECT.value)
DEFAULT_ALLOW_NUL = os.getenv("J2B_ALLOW_NUL", "false")
DEFAULT_ALLOW_TRAILING = os.getenv("J2B_ALLOW_TRAILING", "false")
LOG_LEVEL = os.getenv("J2B_LOG_LEVEL", "WARNING").upper()

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off", ""})

E = TypeVar("E", bound=enum.Enum)


def parse_mode(enum_cls: Type[E], value: str, setting: str) -> E:
    """Parse ``value`` into a member of ``enum_cls``.

    Raises:
        ValueError: naming the setting and the accepted values.
    """
    normalized = value.strip().lower().replace("_", "-")
    for member in enum_cls:
        if member.value == normalized:
            return member
    available = ", ".join(m.value for m in enum_cls)
    raise ValueError("Unknown {} mode '{}'. Available: {}".format(setting, value, available))


def parse_flag(value: str, setting: str) -> bool:
    """Parse an on/off environment value.

    RULES:
    - Accepts 1/true/yes/on and 0/false/no/off, case-insensitive
    - An empty string is off, so ``J2B_ALLOW_NUL=`` disables the setting
    - Anything else raises ValueError naming ``setting``
    """
    normalized = value.strip().lower()
    if normalized in _TRUE_WORDS:
        return True
    if normalized in _FALSE_WORDS:
        return False
    raise ValueError("Invalid {} value '{}'. Use true or false".format(setting, value))


def build_decode_options(
    duplicate_keys: Optional[str] = None,
    non_finite: Optional[str] = None,
    invalid_utf8: Optional[str] = None,
    allow_nul: Optional[bool] = None,
    allow_trailing: Optional[bool] = None,
) -> DecodeOptions:
    """Build the DecodeOptions for one invocation.

    Arguments left as None take the environment/default value.
    """
    return DecodeOptions(
        duplicate_keys=parse_mode(
            DuplicateKeyMode,
            duplicate_keys if duplicate_keys is not None else DEFAULT_DUPLICATE_KEYS,
            "duplicate-key",
        ),
        non_finite_numbers=parse_mode(
            NonFiniteNumberMode,
            non_finite if non_finite is not None else DEFAULT_NON_FINITE,
            "non-finite-number",
        ),
        invalid_text_units=parse_mode(
            InvalidTextUnitMode,
            invalid_utf8 if invalid_utf8 is not None else DEFAULT_INVALID_UTF8,
            "invalid-UTF-8",
        ),
        allow_embedded_nul=(
            allow_nul if allow_nul is not None else parse_flag(DEFAULT_ALLOW_NUL, "J2B_ALLOW_NUL")
        ),
        allow_trailing_bytes=(
            allow_trailing
            if allow_trailing is not None
            else parse_flag(DEFAULT_ALLOW_TRAILING, "J2B_ALLOW_TRAILING")
        ),
    )
