"""Structured errors raised by the correlation core.

WHY: Callers (CLI, HTTP API, recompile session) decide how to message a
failure to the user. Typed exceptions let them tell a broken listing from
an unreadable file without string matching.

RULES:
- The core raises, it never logs or prompts
- An empty result is not an error and has no exception here
"""

from __future__ import annotations


class CorrelatorError(Exception):
    """Base class for all correlation failures."""


class MalformedDirectiveError(CorrelatorError):
    """Raised when a line-number directive does not hold a valid integer.

    HOW: Raised by the parser as soon as the directive is seen; the
    partially built mapping is discarded.

    RULES:
    - listing_line is the 1-based position of the directive in the listing
    - text is the offending listing line, unmodified
    """

    def __init__(self, listing_line: int, text: str) -> None:
        self.listing_line = listing_line
        self.text = text
        super().__init__(
            "Malformed line-number directive at listing line {}: {!r}".format(
                listing_line, text
            )
        )


class UnreadableInputError(CorrelatorError):
    """Raised when the listing text could not be obtained."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__("Cannot read listing {}: {}".format(path, reason))
