"""Core correlation modules: IR, listing grammar, parser, assembler.

WHY: The core package is the stable heart of the explorer — the
correlation dataclasses and the listing-to-source mapping logic. It is
consumed by the driver, the CLI, the HTTP API, and every formatter.

HOW: ir.py defines the data structures, grammar.py classifies listing
lines for one compiler dialect, parser.py runs the single-pass state
machine, assembler.py resolves source text and colors.

RULES:
- IR dataclasses are the contract — change with care
- No logging, no prompting, no compiler invocation in this package
- Every call is independent: no state survives between parses
"""
