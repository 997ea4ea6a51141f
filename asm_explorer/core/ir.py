"""Intermediate representation dataclasses for correlated listings.

WHY: A compiler listing is a flat stream of directives and instructions.
Downstream consumers (formatters, editor decorations, the HTTP API) each
need "source line -> assembly block" records, but present them
differently. The IR provides one well-typed form they all consume,
decoupling correlation from rendering.

HOW: Three dataclasses and one alias:
  ListingMapping    — parser output: line number -> raw instruction lines
  ParserState       — the parser's mutable record for a single pass
  CorrelationEntry  — one resolved source line with its assembly and color
  CorrelationResult — all entries for one source file

RULES:
- source_line is 1-based everywhere
- CorrelationResult.entries are strictly ascending by source_line and
  never repeat a line
- An empty CorrelationResult means "no assembly for this file", which is
  a valid outcome, not an error
- ParserState.current_line is None when instructions have no attribution
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

ListingMapping = Dict[int, List[str]]
"""Source line number -> raw instruction lines, in emission order."""

_INSTRUCTION_BREAK_RE = re.compile(r"\r?\n")


@dataclass
class ParserState:
    """Mutable state of one listing parse.

    WHY: Attributing an instruction needs three facts about what came
    before it — are we inside the target file, inside a code segment, and
    which source line was announced last.

    HOW: Created fresh by parse(); the step function returns updated
    copies of the flags while appending to the shared accumulator.

    RULES:
    - in_target_file: True only after a file directive naming the target
    - in_code_segment: True only between a segment-open and a close marker
    - current_line: line to attribute instructions to, or None
    - accumulated: grows monotonically, a line's first block wins
    """

    in_target_file: bool = False
    in_code_segment: bool = False
    current_line: Optional[int] = None
    accumulated: ListingMapping = field(default_factory=dict)


@dataclass
class CorrelationEntry:
    """One source line with the assembly the compiler generated for it.

    RULES:
    - source_line: positive 1-based line number in the original source
    - source_text: text of that line at compile time
    - assembly_text: raw instruction lines joined with a line separator
    - display_color: palette color chosen from source_line only
    """

    source_line: int
    source_text: str
    assembly_text: str
    display_color: str

    @property
    def assembly_lines(self) -> List[str]:
        """The assembly block split back into its instruction lines.

        Only LF and CR LF separate instructions; a lone CR or a form feed
        inside an instruction stays part of it.
        """
        if not self.assembly_text:
            return []
        return _INSTRUCTION_BREAK_RE.split(self.assembly_text)


@dataclass
class CorrelationResult:
    """All correlated entries for one source file.

    WHY: Formatters and the HTTP API need the entries together with the
    name of the file they describe, plus an explicit "nothing to show"
    signal that is distinct from an error.

    RULES:
    - entries: ordered by source_line ascending
    - source_filename: the original source name (for output naming), not
      the temporary copy the compiler saw
    """

    source_filename: str
    entries: List[CorrelationEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def entry_for_line(self, source_line: int) -> Optional[CorrelationEntry]:
        """Return the entry for a 1-based source line, or None."""
        for entry in self.entries:
            if entry.source_line == source_line:
                return entry
        return None
