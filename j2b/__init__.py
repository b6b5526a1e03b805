"""j2b: JSON / BONJSON converter with format auto-detection.

WHY: BONJSON is a binary encoding with exactly the same value model as
JSON. Tools and humans hand the converter opaque byte streams, so the
converter has to tell the two forms apart on its own and convert to the
other form, recovering as much as possible from damaged binary input.

HOW: Four stages: detect (core.detect), decode (adapters.codec_adapter
over the codec package), encode (pluggable formatters), write (output).
core.pipeline drives them once per invocation.

RULES:
- Detection never fails; the decoder is the authority on validity
- A failed binary decode still yields the decoded prefix
- Behaviour modes travel in one immutable DecodeOptions record
"""

__version__ = "0.1.0"
