"""JSON listing formatter — the correlation as machine-readable records.

WHY: Editor plugins and web viewers render the correlation themselves;
they need the entries as data, not as a pre-rendered view.

HOW: Serializes each CorrelationEntry to ``{line, code, assembly, color}``
under a top-level object naming the source file. LISTING_SCHEMA documents
(and lets tests validate) the exact shape.

RULES:
- Keys: source_file, entries[].line, .code, .assembly, .color
- Entries keep the result's ascending line order
- Empty result → ``"entries": []`` (still valid against the schema)
- Output suffix: "-listing.json", media type "application/json"
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from asm_explorer.core.ir import CorrelationResult
from asm_explorer.formatters.base import BaseFormatter, FormatterOutput

LISTING_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["source_file", "entries"],
    "additionalProperties": False,
    "properties": {
        "source_file": {"type": "string"},
        "entries": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["line", "code", "assembly", "color"],
                "additionalProperties": False,
                "properties": {
                    "line": {"type": "integer", "minimum": 1},
                    "code": {"type": "string"},
                    "assembly": {"type": "string"},
                    "color": {"type": "string"},
                },
            },
        },
    },
}


def result_to_dict(result: CorrelationResult) -> Dict[str, Any]:
    """Convert a CorrelationResult to the JSON-ready listing dict."""
    return {
        "source_file": result.source_filename,
        "entries": [
            {
                "line": entry.source_line,
                "code": entry.source_text,
                "assembly": entry.assembly_text,
                "color": entry.display_color,
            }
            for entry in result.entries
        ],
    }


class JsonListingFormatter(BaseFormatter):
    """Formatter that writes the correlation entries as JSON."""

    suffix = "-listing.json"
    media_type = "application/json"

    @property
    def name(self) -> str:
        return "JSON listing"

    def format(self, result: CorrelationResult) -> List[FormatterOutput]:
        content = json.dumps(result_to_dict(result), indent=2, ensure_ascii=False)
        return self._single(content + "\n")
