"""Single-pass listing parser — listing text to per-line instruction groups.

WHY: A compiler listing interleaves the instructions for the file under
analysis with headers, other translation units, segment boilerplate and
synthetic line references. Recovering "which instructions belong to
source line N" needs a small state machine that tracks where in the
listing we are, while discarding all of that noise.

HOW: parse() splits the listing into physical lines and folds step()
over them, starting from a fresh ParserState. step() asks the grammar
what the line is and applies the transition rules below. The only side
effect is appending an instruction to ParserState.accumulated.

RULES (checked in this order for each line):
1. File directive naming the target → in_target_file; naming any other
   file → leave the file, leave the segment, forget current_line
2. Outside the target file → skip
3. Segment open → in_code_segment
4. Segment close (ENDP / ENDS) → leave the segment, forget current_line
5. Line directive → current_line = n, unless n is 0, n exceeds
   total_source_lines, or n already has a block (first block wins);
   then current_line = None
6. Other comment → ignored
7. Blank → ignored
8. Unindented text → boilerplate, forget current_line
9. Instruction → appended to accumulated[current_line] when a line is
   current and we are inside a code segment; otherwise dropped

The duplicate and out-of-range policies are heuristics: inlined and
macro-expanded code can legitimately reference a line twice, and only the
first block is kept.
"""

from __future__ import annotations

import dataclasses
import re
from pathlib import Path
from typing import Optional, Union

from asm_explorer.core.errors import MalformedDirectiveError, UnreadableInputError
from asm_explorer.core.grammar import LineKind, ListingGrammar, MsvcGrammar
from asm_explorer.core.ir import ListingMapping, ParserState

# Only LF and CR LF end a listing line; form feeds are part of the text.
_LINE_BREAK_RE = re.compile(r"\r?\n")


def step(
    state: ParserState,
    line: str,
    target_file_path: str,
    total_source_lines: int,
    grammar: ListingGrammar,
    listing_line: int = 0,
) -> ParserState:
    """Apply one listing line to the parser state.

    WHY: Expressing the state machine as a step function makes every
    transition testable with a single line, without a full listing.

    HOW: Returns a new ParserState with updated flags. The accumulator
    dict is shared between the old and new state and is appended to in
    place when the line is a collected instruction.

    Args:
        state: State before this line.
        line: One physical listing line, without its line ending.
        target_file_path: Exact path the listing uses for the analysed file.
        total_source_lines: Line count of the source document.
        grammar: Dialect used to classify the line.
        listing_line: 1-based position of the line, for error reports.

    Returns:
        The state after this line.

    Raises:
        MalformedDirectiveError: The line is a line-number directive whose
            number is not a decimal integer.
    """
    kind = grammar.classify(line)

    if kind is LineKind.FILE_DIRECTIVE:
        if grammar.names_file(line, target_file_path):
            return dataclasses.replace(state, in_target_file=True)
        return dataclasses.replace(
            state,
            in_target_file=False,
            in_code_segment=False,
            current_line=None,
        )

    if not state.in_target_file:
        return state

    if kind is LineKind.SEGMENT_OPEN:
        return dataclasses.replace(state, in_code_segment=True)

    if kind is LineKind.SEGMENT_CLOSE:
        return dataclasses.replace(state, in_code_segment=False, current_line=None)

    if kind is LineKind.LINE_DIRECTIVE:
        token = grammar.line_directive(line)
        if token is None or not token.isdecimal():
            raise MalformedDirectiveError(listing_line, line)
        number = int(token)
        if number < 1 or number > total_source_lines or number in state.accumulated:
            return dataclasses.replace(state, current_line=None)
        return dataclasses.replace(state, current_line=number)

    if kind in (LineKind.COMMENT, LineKind.BLANK):
        return state

    if kind is LineKind.UNINDENTED:
        return dataclasses.replace(state, current_line=None)

    # Instruction
    if state.current_line is not None and state.in_code_segment:
        state.accumulated.setdefault(state.current_line, []).append(line)
    return state


def parse(
    listing_text: str,
    target_file_path: str,
    total_source_lines: int,
    grammar: Optional[ListingGrammar] = None,
) -> ListingMapping:
    """Map source line numbers to the instructions generated for them.

    Args:
        listing_text: Full text of the compiler listing.
        target_file_path: Path exactly as the listing echoes it for the
            file under analysis (usually the temporary copy).
        total_source_lines: Number of lines in the source document.
        grammar: Listing dialect, MSVC when omitted.

    Returns:
        Dict of 1-based line number → raw instruction lines in emission
        order. Empty when the listing never mentions the target file.

    Raises:
        MalformedDirectiveError: A line-number directive is not an integer.
            No partial mapping is returned.
    """
    grammar = grammar or MsvcGrammar()
    state = ParserState()
    for index, line in enumerate(_LINE_BREAK_RE.split(listing_text), start=1):
        state = step(state, line, target_file_path, total_source_lines, grammar, index)
    return state.accumulated


def read_listing(listing_path: Union[str, Path]) -> str:
    """Read a listing file from disk.

    RULES:
    - Listings are decoded as UTF-8; undecodable bytes are replaced, since
      MSVC echoes source comments in the build's code page
    - Any OSError becomes UnreadableInputError
    """
    path = Path(listing_path)
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise UnreadableInputError(str(path), exc.strerror or str(exc)) from exc


def parse_file(
    listing_path: Union[str, Path],
    target_file_path: str,
    total_source_lines: int,
    grammar: Optional[ListingGrammar] = None,
) -> ListingMapping:
    """Read a listing from disk and parse it."""
    listing_text = read_listing(listing_path)
    return parse(listing_text, target_file_path, total_source_lines, grammar)
