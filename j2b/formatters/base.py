"""Abstract base formatter and output container.

WHY: The orchestrator encodes a decoded value tree into whichever form the
command asks for. A common interface lets it treat both destination forms
generically and lets the output writer decide on display details from the
output alone.

HOW: BaseFormatter is an ABC with a ``name``, the ``form`` it produces and
a ``format()`` method. FormatterOutput bundles the encoded bytes with what
the writer needs to know about them.

RULES:
- Subclasses MUST implement ``name`` and ``format()``
- ``format()`` raises EncodeError for unrepresentable values
- Formatters receive the invocation's DecodeOptions at construction
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from j2b.core.ir import DecodeOptions, Form


@dataclass
class FormatterOutput:
    """Encoded document ready for the output writer.

    Attributes:
        content: The encoded bytes.
        form: Which form ``content`` is in.
        human_readable: True for text output, which gets a display newline
                        when written to a terminal.
    """

    content: bytes
    form: Form
    human_readable: bool


class BaseFormatter(ABC):
    """Abstract base for destination-form encoders.

    To add a new destination form:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    form: Form
    human_readable = False

    def __init__(self, options: DecodeOptions):
        self.options = options

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable form name, e.g. 'BONJSON'."""

    @abstractmethod
    def format(self, value: Any) -> FormatterOutput:
        """Encode a decoded value tree.

        Args:
            value: The (possibly partial) value produced by the decoder.

        Returns:
            A FormatterOutput holding the encoded bytes.
        """
