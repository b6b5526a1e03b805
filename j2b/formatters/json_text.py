"""JSON text formatter: indented, human-readable output."""

from __future__ import annotations

from typing import Any

from j2b.codec import json_text
from j2b.core.ir import Form
from j2b.formatters.base import BaseFormatter, FormatterOutput


class JSONTextFormatter(BaseFormatter):
    """Formatter that writes the value tree as indented JSON.

    Non-finite floats (only present when decoding with ``--non-finite
    allow``) have no JSON spelling and raise EncodeError. Raw bytes kept
    by ``--invalid-utf8 ignore`` are written back only under that mode.
    """

    form = Form.TEXT
    human_readable = True

    @property
    def name(self) -> str:
        return "JSON"

    def format(self, value: Any) -> FormatterOutput:
        return FormatterOutput(
            content=json_text.encode(value, self.options),
            form=self.form,
            human_readable=self.human_readable,
        )
