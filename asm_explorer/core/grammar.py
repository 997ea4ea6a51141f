"""Listing dialect grammars — classify one listing line at a time.

WHY: Every compiler spells its listing markers differently. The parser's
state machine is the same for all of them; only "what does this line
mean" changes. Keeping the dialect in a small grammar object lets the
parser stay dialect-free and lets tests exercise markers in isolation.

HOW: ListingGrammar is an ABC of marker predicates. classify() applies
them in the parser's precedence order and returns a LineKind. MsvcGrammar
implements the MSVC /FAs listing dialect:

    ; File c:\\work\\.asme-main.c
    _TEXT	SEGMENT
    ; 12   :     return a + b;
    	mov	eax, DWORD PTR a$[rsp]
    main	ENDP
    _TEXT	ENDS

RULES:
- Grammars are stateless; one instance may serve concurrent parses
- classify() precedence: file, segment open, segment close, line
  directive, other comment, blank, unindented, instruction
- line_directive() returns the raw number token; converting it (and
  failing on garbage) is the parser's job
- Only MSVC is implemented; GCC/Clang listings have no grammar yet
"""

from __future__ import annotations

import enum
import re
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type


class LineKind(str, enum.Enum):
    """What a single listing line means to the parser."""

    FILE_DIRECTIVE = "file_directive"
    SEGMENT_OPEN = "segment_open"
    SEGMENT_CLOSE = "segment_close"
    LINE_DIRECTIVE = "line_directive"
    COMMENT = "comment"
    BLANK = "blank"
    UNINDENTED = "unindented"
    INSTRUCTION = "instruction"


class ListingGrammar(ABC):
    """Abstract base for listing dialects.

    To add a new dialect:
    1. Subclass ListingGrammar
    2. Implement the marker predicates
    3. Register it in GRAMMARS below
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable dialect name, e.g. 'MSVC /FAs'."""

    @abstractmethod
    def file_directive(self, line: str) -> Optional[str]:
        """Return the path announced by a file-boundary directive, else None."""

    @abstractmethod
    def names_file(self, line: str, path: str) -> bool:
        """True if the file-boundary directive ``line`` announces exactly ``path``."""

    @abstractmethod
    def is_segment_open(self, line: str) -> bool:
        """True for a code-segment start marker."""

    @abstractmethod
    def is_segment_close(self, line: str) -> bool:
        """True for a procedure-end or code-segment end marker."""

    @abstractmethod
    def line_directive(self, line: str) -> Optional[str]:
        """Return the raw number token of a line-number directive, else None."""

    @abstractmethod
    def is_comment(self, line: str) -> bool:
        """True for comment lines that carry no parser metadata."""

    @abstractmethod
    def is_instruction(self, line: str) -> bool:
        """True when a non-blank line has the indentation of an instruction."""

    def classify(self, line: str) -> LineKind:
        if self.file_directive(line) is not None:
            return LineKind.FILE_DIRECTIVE
        if self.is_segment_open(line):
            return LineKind.SEGMENT_OPEN
        if self.is_segment_close(line):
            return LineKind.SEGMENT_CLOSE
        if self.line_directive(line) is not None:
            return LineKind.LINE_DIRECTIVE
        if self.is_comment(line):
            return LineKind.COMMENT
        if not line.strip():
            return LineKind.BLANK
        if not self.is_instruction(line):
            return LineKind.UNINDENTED
        return LineKind.INSTRUCTION


# A line-number directive always starts with a digit. Anything after the
# first digit up to the colon is captured so that "; 12x :" is reported as
# malformed instead of silently treated as a comment.
_MSVC_LINE_RE = re.compile(r"^;\s+(\d\w*)\s+:")

_MSVC_FILE_PREFIX = "; File "
_MSVC_CODE_SEGMENT = "_TEXT"


class MsvcGrammar(ListingGrammar):
    """Grammar for listings produced by ``cl.exe /FAs``.

    RULES:
    - File directive: "; File <path>", compared after trimming the line
    - Segment open: starts with "_TEXT", ends with "SEGMENT"
    - Segment close: ends with "ENDP", or starts with "_TEXT" and ends
      with "ENDS"
    - Line directive: "; <n> :" followed by the echoed source text
    - Instructions lead with a tab stop
    """

    @property
    def name(self) -> str:
        return "MSVC /FAs"

    def file_directive(self, line: str) -> Optional[str]:
        if not line.startswith(_MSVC_FILE_PREFIX):
            return None
        return line[len(_MSVC_FILE_PREFIX):].strip()

    def names_file(self, line: str, path: str) -> bool:
        return line.strip() == _MSVC_FILE_PREFIX + path

    def is_segment_open(self, line: str) -> bool:
        return line.startswith(_MSVC_CODE_SEGMENT) and line.rstrip().endswith("SEGMENT")

    def is_segment_close(self, line: str) -> bool:
        tail = line.rstrip()
        if tail.endswith("ENDP"):
            return True
        return line.startswith(_MSVC_CODE_SEGMENT) and tail.endswith("ENDS")

    def line_directive(self, line: str) -> Optional[str]:
        match = _MSVC_LINE_RE.match(line)
        if match is None:
            return None
        return match.group(1)

    def is_comment(self, line: str) -> bool:
        return line.startswith(";")

    def is_instruction(self, line: str) -> bool:
        return line.startswith("\t")


GRAMMARS: Dict[str, Type[ListingGrammar]] = {
    "msvc": MsvcGrammar,
}
"""Listing dialect key -> grammar class."""


def get_grammar(key: str) -> ListingGrammar:
    """Instantiate a registered grammar by key.

    RULES:
    - Raises KeyError naming the available keys for an unknown dialect
    """
    try:
        return GRAMMARS[key]()
    except KeyError:
        raise KeyError(
            "Unknown listing dialect '{}'. Available: {}".format(
                key, ", ".join(sorted(GRAMMARS))
            )
        ) from None
