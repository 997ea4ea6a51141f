"""Correlation views by key.

FORMATTERS is the one table the CLI ``--formats`` option and the API
``/correlations/render/{format_key}`` path both look up. Entries are
classes; each caller builds its own instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from asm_explorer.formatters.annotated import AnnotatedListingFormatter
from asm_explorer.formatters.decorations import DecorationsFormatter
from asm_explorer.formatters.html_view import HtmlExplorerFormatter
from asm_explorer.formatters.json_listing import JsonListingFormatter

if TYPE_CHECKING:
    from asm_explorer.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "annotated": AnnotatedListingFormatter,
    "html": HtmlExplorerFormatter,
    "json": JsonListingFormatter,
    "decorations": DecorationsFormatter,
}
