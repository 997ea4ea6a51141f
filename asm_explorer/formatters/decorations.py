"""Editor decoration anchors — a colored swatch and hover card per source line.

WHY: Inside the editor, each source line that produced code gets a small
swatch in its block color, and hovering it shows the assembly. Editor
plugins only need the anchor ranges and payloads; this formatter emits
them in the shape editors use for decorations (0-based positions).

HOW: For each entry, the range covers the whole source line text
(``character`` 0 to ``len(source_text)``) on 0-based line
``source_line - 1``. The hover message is the assembly in an ``asm``
code block; the swatch is rendered after the line.

RULES:
- Range line is 0-based; source_line in the payload stays 1-based
- Swatch: 1.1em square, gray border, background = display_color
- Empty result → ``"decorations": []``
- Output suffix: "-decorations.json", media type "application/json"
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from asm_explorer.core.ir import CorrelationEntry, CorrelationResult
from asm_explorer.formatters.base import BaseFormatter, FormatterOutput

SWATCH_STYLE: Dict[str, str] = {
    "width": "1.1em",
    "height": "1.1em",
    "margin": "0 0.2em 0 0.2em",
    "border": "0.1em solid gray",
    "contentText": " ",
}


def entry_decoration(entry: CorrelationEntry) -> Dict[str, Any]:
    """Build the decoration payload for one entry."""
    line = entry.source_line - 1
    return {
        "source_line": entry.source_line,
        "range": {
            "start": {"line": line, "character": 0},
            "end": {"line": line, "character": len(entry.source_text)},
        },
        "hoverMessage": {"language": "asm", "value": entry.assembly_text},
        "renderOptions": {"after": {"backgroundColor": entry.display_color}},
    }


class DecorationsFormatter(BaseFormatter):
    """Formatter that writes per-line editor decorations as JSON."""

    suffix = "-decorations.json"
    media_type = "application/json"

    @property
    def name(self) -> str:
        return "Editor decorations"

    def format(self, result: CorrelationResult) -> List[FormatterOutput]:
        payload = {
            "source_file": result.source_filename,
            "swatch": SWATCH_STYLE,
            "decorations": [entry_decoration(e) for e in result.entries],
        }
        return self._single(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
