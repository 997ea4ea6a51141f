"""Annotated listing formatter — source lines as comments over their assembly.

WHY: The quickest way to read a correlation is a single assembly-mode
buffer: each source line as a comment header, followed by exactly the
instructions generated for it. It is the text shown in the explorer
view, and it diffs well between two compiles.

HOW: For each entry (ascending line order) write ``;== <source>`` and then
the assembly block, one instruction per line.

RULES:
- Header line format: ";== " + source_text, unmodified
- Assembly lines are written as emitted (leading tab kept), LF-separated
- Empty result → the "No assembly listing" notice, as a comment
- Output suffix: "-annotated.asm", media type "text/plain"
"""

from __future__ import annotations

from typing import List

from asm_explorer.config import NO_LISTING_MESSAGE
from asm_explorer.core.ir import CorrelationResult
from asm_explorer.formatters.base import BaseFormatter, FormatterOutput


class AnnotatedListingFormatter(BaseFormatter):
    """Formatter that interleaves source comments with assembly blocks."""

    suffix = "-annotated.asm"
    media_type = "text/plain"

    @property
    def name(self) -> str:
        return "Annotated listing"

    def format(self, result: CorrelationResult) -> List[FormatterOutput]:
        if result.is_empty:
            return self._single("; {}\n".format(NO_LISTING_MESSAGE))

        lines: List[str] = []
        for entry in result.entries:
            lines.append(";== " + entry.source_text)
            lines.extend(entry.assembly_lines)
        return self._single("\n".join(lines) + "\n")
