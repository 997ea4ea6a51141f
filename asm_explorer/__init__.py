"""Assembly Explorer — compiler listing to source line correlator.

WHY: Compilers can emit an assembly listing interleaved with file and
line directives, but nobody reads those listings raw. This package maps
each source line to the exact block of instructions generated for it,
so editors and viewers can show source and assembly side by side.

HOW: Three-stage pipeline — generate (driver: rewrite the compile
command, run the compiler), correlate (core: listing parser + listing
assembler), render (pluggable formatters). Each stage is independently
testable.

RULES:
- All formatters consume the same CorrelationResult
- The core never touches the compiler, the filesystem (beyond an explicit
  parse_file helper), or the UI
- Adding a new listing dialect = one new grammar, no parser changes
"""

__version__ = "0.1.0"
