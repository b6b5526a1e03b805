"""JSON and BONJSON codecs.

WHY: Both forms share one value model (None, bool, int, float, str, list,
dict), so conversion is decode-one, encode-the-other. The codecs know the
byte layouts; policy lives in adapters.codec_adapter.

HOW: json_text wraps the standard library parser in strict mode;
bonjson is a self-contained binary codec with prefix-preserving decode.

RULES:
- decode() returns (value, consumed, error) and never raises DecodeError
- encode() raises EncodeError for values the form cannot represent
- MISSING marks "nothing decoded", distinct from a decoded null
"""


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()
