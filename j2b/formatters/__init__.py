"""Output formatter registry, keyed by destination form.

WHY: The orchestrator and CLI need a single lookup from a Form to the
encoder that produces it.

HOW: FORMATTERS maps each Form to a formatter *class*. Callers instantiate
with the invocation's options: ``FORMATTERS[Form.TEXT](options)``.

RULES:
- Every Form has exactly one formatter
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from j2b.core.ir import Form
from j2b.formatters.bonjson_binary import BONJSONFormatter
from j2b.formatters.json_text import JSONTextFormatter

if TYPE_CHECKING:
    from j2b.formatters.base import BaseFormatter

FORMATTERS: Dict[Form, Type[BaseFormatter]] = {
    Form.TEXT: JSONTextFormatter,
    Form.BINARY: BONJSONFormatter,
}
