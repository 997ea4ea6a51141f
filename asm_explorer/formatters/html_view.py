"""Standalone HTML explorer view with per-line background colors.

WHY: Reviewers want the side-by-side picture without an editor: every
source line followed by its assembly, each block tinted with the line's
display color so neighbouring blocks are easy to tell apart.

HOW: Builds one HTML document with a CSS class per palette color
(``bgc-0`` .. ``bgc-N``) and a numbered table of rows. Source rows use the
``asme-codeline`` style (italic gray); assembly rows get the entry's
color class. All listing and source text is HTML-escaped.

RULES:
- One source row per entry, then one row per assembly line
- Colors come from the entries themselves, never recomputed
- Row numbers count every rendered row, starting at 1
- Empty result → a page with the "No assembly listing" notice
- Output suffix: "-explorer.html", media type "text/html"
"""

from __future__ import annotations

import html
from typing import Dict, List

from asm_explorer.config import NO_LISTING_MESSAGE
from asm_explorer.core.ir import CorrelationResult
from asm_explorer.formatters.base import BaseFormatter, FormatterOutput

_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Assembly Explorer: {title}</title>
<style>
html, body {{ margin: 0; padding: 0; }}
table {{ border-collapse: collapse; width: 100%; font-family: monospace; font-size: 12pt; }}
td {{ padding: 0 0.5em; white-space: pre; }}
td.lineno {{ color: #999; text-align: right; user-select: none; }}
.asme-codeline {{ font-style: italic; color: gray; }}
{color_classes}
</style>
</head>
<body>
{body}
</body>
</html>
"""


def _color_classes(result: CorrelationResult) -> Dict[str, str]:
    """Assign one CSS class per distinct color, in first-seen order."""
    classes: Dict[str, str] = {}
    for entry in result.entries:
        if entry.display_color not in classes:
            classes[entry.display_color] = "bgc-{}".format(len(classes))
    return classes


class HtmlExplorerFormatter(BaseFormatter):
    """Formatter that renders a colored, self-contained HTML page."""

    suffix = "-explorer.html"
    media_type = "text/html"

    @property
    def name(self) -> str:
        return "HTML explorer view"

    def format(self, result: CorrelationResult) -> List[FormatterOutput]:
        title = html.escape(result.source_filename)
        if result.is_empty:
            body = "<p>{}</p>".format(html.escape(NO_LISTING_MESSAGE))
            return self._single(_PAGE.format(title=title, color_classes="", body=body))

        classes = _color_classes(result)
        css = "\n".join(
            ".{} {{ background: {}; }}".format(cls, html.escape(color))
            for color, cls in classes.items()
        )

        rows: List[str] = []
        row_number = 0
        for entry in result.entries:
            row_number += 1
            rows.append(
                '<tr class="asme-codeline" data-line="{line}">'
                '<td class="lineno">{n}</td><td>;== {code}</td></tr>'.format(
                    line=entry.source_line,
                    n=row_number,
                    code=html.escape(entry.source_text),
                )
            )
            for asm_line in entry.assembly_lines:
                row_number += 1
                rows.append(
                    '<tr class="{cls}" data-line="{line}">'
                    '<td class="lineno">{n}</td><td>{asm}</td></tr>'.format(
                        cls=classes[entry.display_color],
                        line=entry.source_line,
                        n=row_number,
                        asm=html.escape(asm_line),
                    )
                )

        body = "<table>\n{}\n</table>".format("\n".join(rows))
        return self._single(_PAGE.format(title=title, color_classes=css, body=body))
