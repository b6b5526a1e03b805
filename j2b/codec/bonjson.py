"""BONJSON binary codec.

WHY: BONJSON carries the JSON value model in a compact, type-prefixed
binary layout. The converter needs both directions, and when a document is
damaged it needs whatever prefix decoded cleanly rather than nothing.

HOW: The decoder is a single forward pass driven by an explicit container
stack. Containers are attached to their parent the moment they open, so at
any point the root holds exactly the prefix decoded so far; on error the
open containers are simply left as they are. The encoder walks the tree
with a stack of child iterators and always emits the canonical (smallest)
encoding, so any depth the decoder accepts can be written back.

Type codes:

  0x00-0x64  small int 0..100          0x80-0x8f  short string, 0..15 bytes
  0x68       long string (chunked)     0x99       array start
  0x6a       bfloat16                  0x9a       object start
  0x6b       float32                   0x9b       container end
  0x6c       float64                   0x9c-0xff  small int -100..-1
  0x6d/6e/6f null / false / true
  0x70-0x77  uint, 1..8 bytes LE
  0x78-0x7f  sint, 1..8 bytes LE

Every other code (0x65-0x67, 0x69, 0x90-0x98) is reserved.

RULES:
- Object keys must be strings
- An object key without its value is dropped from the partial result
- Long-string chunk headers are ULEB128 of (length << 1 | more_chunks)
- Integers outside [-2**63, 2**64 - 1] cannot be encoded
- Lone surrogates (raw bytes kept by the ``ignore`` UTF-8 mode) are
  written back as bytes only under that same mode
"""

from __future__ import annotations

import math
import struct
from typing import Any, Dict, Iterator, List, Optional, Tuple

from j2b.codec import MISSING
from j2b.core.errors import DecodeError, EncodeError, ErrorKind
from j2b.core.ir import (
    DecodeOptions,
    DuplicateKeyMode,
    InvalidTextUnitMode,
    NonFiniteNumberMode,
)

SMALL_INT_MAX = 0x64
TYPE_LONG_STRING = 0x68
TYPE_BFLOAT16 = 0x6A
TYPE_FLOAT32 = 0x6B
TYPE_FLOAT64 = 0x6C
TYPE_NULL = 0x6D
TYPE_FALSE = 0x6E
TYPE_TRUE = 0x6F
TYPE_UINT = 0x70
TYPE_SINT = 0x78
TYPE_SHORT_STRING = 0x80
TYPE_ARRAY = 0x99
TYPE_OBJECT = 0x9A
TYPE_END = 0x9B
NEGATIVE_SMALL_INT_MIN = 0x9C

SHORT_STRING_MAX = 15
UINT64_MAX = (1 << 64) - 1
SINT64_MIN = -(1 << 63)
_MAX_ULEB_BYTES = 10

_UTF8_ERROR_HANDLERS = {
    InvalidTextUnitMode.REPLACE: "replace",
    InvalidTextUnitMode.DELETE: "ignore",
    InvalidTextUnitMode.IGNORE: "surrogateescape",
}


def _is_string_code(code: int) -> bool:
    return TYPE_SHORT_STRING <= code <= TYPE_SHORT_STRING + SHORT_STRING_MAX or code == TYPE_LONG_STRING


class _Frame:
    """An open container on the decoder stack."""

    __slots__ = ("value", "is_object", "key", "discard")

    def __init__(self, value: Any):
        self.value = value
        self.is_object = isinstance(value, dict)
        self.key: Any = MISSING
        self.discard = False


class BonjsonDecoder:
    """Decode one BONJSON document from the start of a buffer."""

    def __init__(self, data: bytes, options: DecodeOptions):
        self._data = data
        self._options = options
        self._pos = 0
        self._root: Any = MISSING
        self._stack: List[_Frame] = []

    def decode(self) -> Tuple[Any, int, Optional[DecodeError]]:
        """Return ``(value, consumed, error)``.

        On error, ``value`` is the decoded prefix (or MISSING) and
        ``consumed`` is the offset of the value that failed.
        """
        try:
            self._run()
        except DecodeError as e:
            return self._root, self._pos, e
        return self._root, self._pos, None

    # -- driver ---------------------------------------------------------

    def _run(self) -> None:
        data = self._data
        while True:
            if self._pos >= len(data):
                raise DecodeError(ErrorKind.TRUNCATED_INPUT, self._pos, "document ended early")

            frame = self._stack[-1] if self._stack else None
            code = data[self._pos]

            if code == TYPE_END:
                if frame is None:
                    raise DecodeError(ErrorKind.MALFORMED_SYNTAX, self._pos, "unexpected container end")
                if frame.key is not MISSING:
                    raise DecodeError(ErrorKind.MALFORMED_SYNTAX, self._pos, "object key has no value")
                self._pos += 1
                self._stack.pop()
                if not self._stack:
                    return
                continue

            if frame is not None and frame.is_object and frame.key is MISSING:
                self._read_key(frame)
                continue

            value, new_pos = self._read_value(self._pos)
            self._pos = new_pos
            if frame is None:
                self._root = value
            else:
                self._attach(frame, value)

            if isinstance(value, (list, dict)):
                self._stack.append(_Frame(value))
            elif frame is None:
                return

    def _attach(self, frame: _Frame, value: Any) -> None:
        if frame.is_object:
            key, frame.key = frame.key, MISSING
            if not frame.discard:
                frame.value[key] = value
        else:
            frame.value.append(value)

    def _read_key(self, frame: _Frame) -> None:
        start = self._pos
        if not _is_string_code(self._data[start]):
            raise DecodeError(
                ErrorKind.MALFORMED_SYNTAX,
                start,
                "object key must be a string (type code 0x{:02x})".format(self._data[start]),
            )
        key, new_pos = self._read_string(start)
        frame.discard = False
        if key in frame.value:
            mode = self._options.duplicate_keys
            if mode is DuplicateKeyMode.REJECT:
                raise DecodeError(ErrorKind.DUPLICATE_KEY, start, repr(key))
            frame.discard = mode is DuplicateKeyMode.KEEP_FIRST
        frame.key = key
        self._pos = new_pos

    # -- scalars --------------------------------------------------------

    def _read_value(self, pos: int) -> Tuple[Any, int]:
        code = self._data[pos]
        if code <= SMALL_INT_MAX:
            return code, pos + 1
        if code >= NEGATIVE_SMALL_INT_MIN:
            return code - 0x100, pos + 1
        if code == TYPE_NULL:
            return None, pos + 1
        if code == TYPE_FALSE:
            return False, pos + 1
        if code == TYPE_TRUE:
            return True, pos + 1
        if TYPE_UINT <= code < TYPE_SINT:
            width = code - TYPE_UINT + 1
            raw = self._take(pos + 1, width)
            return int.from_bytes(raw, "little", signed=False), pos + 1 + width
        if TYPE_SINT <= code < TYPE_SHORT_STRING:
            width = code - TYPE_SINT + 1
            raw = self._take(pos + 1, width)
            return int.from_bytes(raw, "little", signed=True), pos + 1 + width
        if code == TYPE_BFLOAT16:
            raw = self._take(pos + 1, 2)
            return self._check_float(struct.unpack("<f", b"\x00\x00" + raw)[0], pos), pos + 3
        if code == TYPE_FLOAT32:
            raw = self._take(pos + 1, 4)
            return self._check_float(struct.unpack("<f", raw)[0], pos), pos + 5
        if code == TYPE_FLOAT64:
            raw = self._take(pos + 1, 8)
            return self._check_float(struct.unpack("<d", raw)[0], pos), pos + 9
        if _is_string_code(code):
            return self._read_string(pos)
        if code == TYPE_ARRAY:
            return [], pos + 1
        if code == TYPE_OBJECT:
            return {}, pos + 1
        raise DecodeError(ErrorKind.MALFORMED_SYNTAX, pos, "invalid type code 0x{:02x}".format(code))

    def _take(self, start: int, count: int) -> bytes:
        end = start + count
        if end > len(self._data):
            raise DecodeError(ErrorKind.TRUNCATED_INPUT, self._pos, "value ended early")
        return bytes(self._data[start:end])

    def _check_float(self, value: float, pos: int) -> Any:
        if math.isfinite(value):
            return value
        mode = self._options.non_finite_numbers
        if mode is NonFiniteNumberMode.ALLOW:
            return value
        if mode is NonFiniteNumberMode.STRINGIFY:
            if math.isnan(value):
                return "NaN"
            return "Infinity" if value > 0 else "-Infinity"
        raise DecodeError(ErrorKind.NON_FINITE_NUMBER, pos, repr(value))

    def _read_string(self, pos: int) -> Tuple[str, int]:
        code = self._data[pos]
        if code == TYPE_LONG_STRING:
            chunks = []
            cur = pos + 1
            while True:
                header, cur = self._read_uleb(cur)
                length = header >> 1
                chunks.append(self._take(cur, length))
                cur += length
                if not header & 1:
                    break
            raw = b"".join(chunks)
        else:
            length = code - TYPE_SHORT_STRING
            raw = self._take(pos + 1, length)
            cur = pos + 1 + length
        return self._decode_text(raw, pos), cur

    def _read_uleb(self, pos: int) -> Tuple[int, int]:
        result = 0
        shift = 0
        for i in range(_MAX_ULEB_BYTES):
            if pos + i >= len(self._data):
                raise DecodeError(ErrorKind.TRUNCATED_INPUT, self._pos, "string chunk header ended early")
            byte = self._data[pos + i]
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result, pos + i + 1
            shift += 7
        raise DecodeError(ErrorKind.MALFORMED_SYNTAX, pos, "string chunk header too long")

    def _decode_text(self, raw: bytes, pos: int) -> str:
        if not self._options.allow_embedded_nul and b"\x00" in raw:
            raise DecodeError(ErrorKind.EMBEDDED_NUL, pos)
        mode = self._options.invalid_text_units
        if mode is InvalidTextUnitMode.REJECT:
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(ErrorKind.INVALID_TEXT_UNIT, pos, e.reason) from e
        return raw.decode("utf-8", _UTF8_ERROR_HANDLERS[mode])


class BonjsonEncoder:
    """Encode a value tree into canonical BONJSON."""

    def __init__(self, options: DecodeOptions):
        self._options = options
        keep_raw = options.invalid_text_units is InvalidTextUnitMode.IGNORE
        self._string_errors = "surrogateescape" if keep_raw else "strict"

    def encode(self, value: Any) -> bytes:
        out = bytearray()
        stack: List[Iterator[Any]] = []
        self._write(value, out, stack)
        while stack:
            item = next(stack[-1], MISSING)
            if item is MISSING:
                stack.pop()
                out.append(TYPE_END)
            else:
                self._write(item, out, stack)
        return bytes(out)

    def _write(self, value: Any, out: bytearray, stack: List[Iterator[Any]]) -> None:
        """Write a scalar, or open a container and push its children."""
        if value is None:
            out.append(TYPE_NULL)
        elif value is True:
            out.append(TYPE_TRUE)
        elif value is False:
            out.append(TYPE_FALSE)
        elif isinstance(value, int):
            self._encode_int(value, out)
        elif isinstance(value, float):
            self._encode_float(value, out)
        elif isinstance(value, str):
            self._encode_string(value, out)
        elif isinstance(value, (list, tuple)):
            out.append(TYPE_ARRAY)
            stack.append(iter(value))
        elif isinstance(value, dict):
            out.append(TYPE_OBJECT)
            stack.append(self._members(value, out))
        else:
            raise EncodeError("cannot encode a {} as BONJSON".format(type(value).__name__))

    def _members(self, obj: Dict[Any, Any], out: bytearray) -> Iterator[Any]:
        # Each key is written just before its value is handed back.
        for key, item in obj.items():
            if not isinstance(key, str):
                raise EncodeError("object key {!r} is not a string".format(key))
            self._encode_string(key, out)
            yield item

    def _encode_int(self, value: int, out: bytearray) -> None:
        if 0 <= value <= SMALL_INT_MAX:
            out.append(value)
        elif -100 <= value < 0:
            out.append(value & 0xFF)
        elif value > 0:
            if value > UINT64_MAX:
                raise EncodeError("integer {} does not fit in 64 bits".format(value))
            width = (value.bit_length() + 7) // 8
            out.append(TYPE_UINT + width - 1)
            out += value.to_bytes(width, "little", signed=False)
        else:
            if value < SINT64_MIN:
                raise EncodeError("integer {} does not fit in 64 bits".format(value))
            width = (~value).bit_length() // 8 + 1
            out.append(TYPE_SINT + width - 1)
            out += value.to_bytes(width, "little", signed=True)

    def _encode_float(self, value: float, out: bytearray) -> None:
        if not math.isfinite(value) and self._options.non_finite_numbers is not NonFiniteNumberMode.ALLOW:
            raise EncodeError("non-finite number {!r} is not allowed".format(value))
        try:
            single = struct.pack("<f", value)
        except OverflowError:
            single = None
        if single is not None and struct.unpack("<f", single)[0] == value:
            if single[:2] == b"\x00\x00":
                out.append(TYPE_BFLOAT16)
                out += single[2:]
            else:
                out.append(TYPE_FLOAT32)
                out += single
        else:
            out.append(TYPE_FLOAT64)
            out += struct.pack("<d", value)

    def _encode_string(self, value: str, out: bytearray) -> None:
        try:
            raw = value.encode("utf-8", self._string_errors)
        except UnicodeEncodeError as e:
            raise EncodeError("string is not valid Unicode: {}".format(e.reason)) from e
        if len(raw) <= SHORT_STRING_MAX:
            out.append(TYPE_SHORT_STRING + len(raw))
        else:
            out.append(TYPE_LONG_STRING)
            _write_uleb(len(raw) << 1, out)
        out += raw


def _write_uleb(value: int, out: bytearray) -> None:
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return


def decode(data: bytes, options: Optional[DecodeOptions] = None) -> Tuple[Any, int, Optional[DecodeError]]:
    """Decode the BONJSON document at the start of ``data``.

    Trailing bytes are not an error here; the caller compares ``consumed``
    with ``len(data)``.
    """
    return BonjsonDecoder(data, options or DecodeOptions()).decode()


def encode(value: Any, options: Optional[DecodeOptions] = None) -> bytes:
    return BonjsonEncoder(options or DecodeOptions()).encode(value)
