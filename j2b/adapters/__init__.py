"""Adapter modules between the orchestrator and the codecs.

WHY: The codecs speak in raw triples and know nothing about configured
policies. Adapters bridge them to the orchestrator's uniform types so each
side can evolve independently.

RULES:
- Adapters never raise decode errors; they return them
- Each adapter lives in its own module under this package
"""

from j2b.adapters.codec_adapter import DecodeOutcome, decode

__all__ = ["DecodeOutcome", "decode"]
