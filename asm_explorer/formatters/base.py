"""Abstract base formatter and output container.

WHY: Every output view consumes the same CorrelationResult IR but
produces different file content. This base class enforces a consistent
interface so the CLI and the HTTP API can work with any formatter
generically.

HOW: BaseFormatter is an ABC with two requirements — a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list — every current formatter returns one item
- ``suffix`` starts with a hyphen, e.g. ``"-annotated.asm"``
- The caller is responsible for prepending the source filename stem
- An empty result is rendered, never rejected
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from asm_explorer.core.ir import CorrelationResult


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-listing.json"`` → ``"main-listing.json"``.
        content: The file content as a string.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format(), name and suffix
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    suffix = ""
    media_type = "text/plain"

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Annotated listing'."""

    @abstractmethod
    def format(self, result: CorrelationResult) -> list[FormatterOutput]:
        """Render the correlation result into one or more output files.

        Args:
            result: Correlated entries for one source file.

        Returns:
            List of FormatterOutput objects.
        """

    def _single(self, content: str) -> list[FormatterOutput]:
        return [FormatterOutput(suffix=self.suffix, content=content, media_type=self.media_type)]
