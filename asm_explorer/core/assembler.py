"""Listing assembly — resolve source text and colors, build the result IR.

WHY: The parser produces a bare line number → instruction lines mapping,
possibly discovered out of order. Viewers need each line's source text,
one joined assembly block, and a stable color, sorted by line. This
module is the bridge between the parser output and the CorrelationResult
IR that every formatter consumes.

HOW: assemble() turns each mapping item into a CorrelationEntry and sorts
by line. correlate() is the one-call pipeline for callers that hold the
listing text and the source text: split source → parse → assemble.

RULES:
- source_text = source_lines[min(line, len(source_lines)) - 1]; compilers
  sometimes attribute trailing code to the end-of-file line
- display_color = palette[(line * 11) % len(palette)], independent of
  which other lines are present
- The palette is injected; an empty palette is a ValueError
- Pure functions: no I/O, no shared mutable state
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from asm_explorer.config import COLOR_SPREAD, DEFAULT_PALETTE, load_line_separator
from asm_explorer.core.grammar import ListingGrammar
from asm_explorer.core.ir import CorrelationEntry, CorrelationResult, ListingMapping
from asm_explorer.core.parser import parse

# Source documents break on LF, CR LF or a lone CR; form feeds and other
# Unicode separators stay inside the line.
_SOURCE_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def split_source_lines(source_text: str) -> List[str]:
    """Split source text into lines the way the compiler numbers them.

    RULES:
    - A trailing line break does not start an extra empty line
    - Empty text has no lines
    """
    lines = _SOURCE_LINE_BREAK_RE.split(source_text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def display_color(source_line: int, palette: Sequence[str]) -> str:
    """Pick the color for a source line.

    Multiplying by 11 spreads neighbouring lines across a small palette so
    adjacent blocks rarely share a color.
    """
    if not palette:
        raise ValueError("Display palette must contain at least one color")
    return palette[(source_line * COLOR_SPREAD) % len(palette)]


def _resolve_source_text(source_line: int, source_lines: Sequence[str]) -> str:
    if not source_lines:
        return ""
    return source_lines[min(source_line, len(source_lines)) - 1]


def assemble(
    mapping: ListingMapping,
    source_lines: Sequence[str],
    palette: Optional[Sequence[str]] = None,
    line_separator: Optional[str] = None,
) -> List[CorrelationEntry]:
    """Build ordered correlation entries from a parser mapping.

    Args:
        mapping: Line number → raw instruction lines, from parse().
        source_lines: Source document text, one item per line.
        palette: Display colors; DEFAULT_PALETTE when omitted.
        line_separator: Joins a line's instructions; configured default
            (CR LF unless ASME_LINE_SEPARATOR says otherwise) when omitted.

    Returns:
        CorrelationEntry list, strictly ascending by source_line.
    """
    if palette is None:
        palette = DEFAULT_PALETTE
    if line_separator is None:
        line_separator = load_line_separator()

    entries = [
        CorrelationEntry(
            source_line=line,
            source_text=_resolve_source_text(line, source_lines),
            assembly_text=line_separator.join(instructions),
            display_color=display_color(line, palette),
        )
        for line, instructions in mapping.items()
    ]
    entries.sort(key=lambda entry: entry.source_line)
    return entries


def correlate(
    listing_text: str,
    target_file_path: str,
    source_text: str,
    source_filename: str,
    grammar: Optional[ListingGrammar] = None,
    palette: Optional[Sequence[str]] = None,
    line_separator: Optional[str] = None,
) -> CorrelationResult:
    """Run the full correlation for one source document.

    WHY: Every caller (CLI, HTTP API, recompile session) does the same
    split → parse → assemble sequence; this keeps it in one place.

    RULES:
    - The line count given to the parser is the number of source lines
    - source_filename names the original file, target_file_path names the
      path the listing echoes (often a temporary copy)
    - Raises MalformedDirectiveError from the parser unchanged
    """
    source_lines = split_source_lines(source_text)
    mapping = parse(listing_text, target_file_path, len(source_lines), grammar)
    entries = assemble(mapping, source_lines, palette, line_separator)
    return CorrelationResult(source_filename=source_filename, entries=entries)
