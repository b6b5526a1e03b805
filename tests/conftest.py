"""Shared test fixtures for the j2b test suite.

WHY: Codec, pipeline and CLI tests all need the same small set of documents
in both forms, plus a few damaged BONJSON inputs. Centralizing them keeps
the byte layouts in one reviewable place.

RULES:
- BONJSON byte strings are written out literally, never produced by the
  encoder under test
- SAMPLE_JSON and SAMPLE_BONJSON encode the same value (SAMPLE_VALUE)
"""

import io
import sys
from typing import Any, Dict

import pytest

SAMPLE_VALUE: Dict[str, Any] = {"hello": "world", "list": [1, -1, 1000, 1.5, True, None]}

SAMPLE_JSON = b'{"hello": "world", "list": [1, -1, 1000, 1.5, true, null]}'

SAMPLE_BONJSON = (
    b"\x9a"
    b"\x85hello" b"\x85world"
    b"\x84list"
    b"\x99"
    b"\x01"          # 1
    b"\xff"          # -1
    b"\x71\xe8\x03"  # 1000 as uint16
    b"\x6a\xc0\x3f"  # 1.5 as bfloat16
    b"\x6f"          # true
    b"\x6d"          # null
    b"\x9b"
    b"\x9b"
)

# {"a": 1 ... with the closing marker missing.
TRUNCATED_OBJECT = b"\x9a\x81a\x01"

# {"a": 1, "a": 2}
DUPLICATE_KEY_OBJECT = b"\x9a\x81a\x01\x81a\x02\x9b"


def same(a: Any, b: Any) -> bool:
    """Structural equality that also compares types (1 != 1.0, 1 != True)."""
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return list(a.keys()) == list(b.keys()) and all(same(a[k], b[k]) for k in a)
    if isinstance(a, list):
        return len(a) == len(b) and all(same(x, y) for x, y in zip(a, b))
    return a == b


@pytest.fixture
def stdin_bytes(monkeypatch):
    """Replace stdin with one that yields the given bytes."""

    def _set(data: bytes) -> None:
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))

    return _set
