"""BONJSON formatter: canonical binary output.

WHY: Converting to BONJSON, including BONJSON to BONJSON, should always
produce the same bytes for the same value: smallest integer and float
widths, single-chunk strings.

HOW: Delegates to the codec's encoder with the invocation's options, so
``--non-finite allow`` also permits writing NaN and infinities.
"""

from __future__ import annotations

from typing import Any

from j2b.codec import bonjson
from j2b.core.ir import Form
from j2b.formatters.base import BaseFormatter, FormatterOutput


class BONJSONFormatter(BaseFormatter):
    form = Form.BINARY

    @property
    def name(self) -> str:
        return "BONJSON"

    def format(self, value: Any) -> FormatterOutput:
        return FormatterOutput(
            content=bonjson.encode(value, self.options),
            form=self.form,
            human_readable=self.human_readable,
        )
