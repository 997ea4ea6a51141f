"""Configuration constants, display palette, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The display palette, naming conventions for the
temporary source copy and listing file, and driver timings are plain
data — not buried in logic — so both humans and tools can change them
confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level tuples, sets, and strings. load_palette() and
load_line_separator() give a clear error when an override is malformed.

RULES:
- DEFAULT_PALETTE is immutable; the assembler receives it by injection
- COLOR_SPREAD (11) is a compatibility constant, never tune it per file
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
import re
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Display palette
# ---------------------------------------------------------------------------

# Colors from http://colorbrewer2.org/#type=qualitative&scheme=Pastel1&n=8
DEFAULT_PALETTE: Tuple[str, ...] = (
    "#fbb4ae",
    "#b3cde3",
    "#ccebc5",
    "#decbe4",
    "#fed9a6",
    "#ffffcc",
    "#e5d8bd",
    "#fddaec",
)

COLOR_SPREAD = 11
"""Multiplier applied to a line number before indexing the palette."""

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def load_palette() -> Tuple[str, ...]:
    """Load the display palette, honouring the ASME_PALETTE override.

    WHY: Teams with dark editor themes want stronger colors than Pastel1.

    HOW: Reads a comma-separated list of hex colors from ASME_PALETTE.
    Falls back to DEFAULT_PALETTE when the variable is unset or blank.

    RULES:
    - Each color must be #rgb or #rrggbb
    - Raises ValueError on a malformed color
    - Never returns an empty palette
    """
    raw = os.getenv("ASME_PALETTE", "").strip()
    if not raw:
        return DEFAULT_PALETTE
    colors = tuple(c.strip() for c in raw.split(",") if c.strip())
    for color in colors:
        if not _HEX_COLOR_RE.match(color):
            raise ValueError(
                "Invalid color '{}' in ASME_PALETTE. "
                "Use comma-separated hex colors like #fbb4ae.".format(color)
            )
    if not colors:
        raise ValueError("ASME_PALETTE is set but contains no colors.")
    return colors


# ---------------------------------------------------------------------------
# Listing output
# ---------------------------------------------------------------------------

_LINE_SEPARATORS = {"crlf": "\r\n", "lf": "\n"}


def load_line_separator() -> str:
    """Return the separator used to join one line's instructions.

    RULES:
    - ASME_LINE_SEPARATOR is "crlf" (default, what MSVC tooling expects)
      or "lf"
    - Raises ValueError for anything else
    """
    name = os.getenv("ASME_LINE_SEPARATOR", "crlf").strip().lower()
    if name not in _LINE_SEPARATORS:
        raise ValueError(
            "ASME_LINE_SEPARATOR must be 'crlf' or 'lf', got '{}'".format(name)
        )
    return _LINE_SEPARATORS[name]


NO_LISTING_MESSAGE = "No assembly listing for current source file"

# ---------------------------------------------------------------------------
# Driver conventions
# ---------------------------------------------------------------------------

TEMP_SOURCE_PREFIX = ".asme-"
"""Prefix of the temporary source copy written next to the original."""

LISTING_SUFFIX = ".asme.asm"
"""Suffix of the listing file written into the build directory."""

SUPPORTED_SOURCE_SUFFIXES: set[str] = {
    ".c", ".cc", ".cpp", ".cxx", ".h", ".hh", ".hpp", ".hxx",
}
"""C and C++ source extensions the driver will recompile (lowercase, with dot)."""

DEBOUNCE_SECONDS = float(os.getenv("ASME_DEBOUNCE_SECONDS", "1.0"))


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


COMPILE_TIMEOUT_SECONDS = _optional_float("ASME_COMPILE_TIMEOUT")

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

ASME_HOST = os.getenv("ASME_HOST", "127.0.0.1")
ASME_PORT = int(os.getenv("ASME_PORT", "8000"))
