"""Driver modules: compile command rewriting, compiler runs, recompile sessions.

WHY: The correlator needs a listing, and a listing needs a compiler run
with listing flags instead of the project's normal object output. Editors
also fire change events far faster than a compiler can keep up with.
This package holds that glue so the core stays pure.

HOW: command.py splits and rewrites compile commands, runner.py runs the
compiler against a temporary source copy and reads the listing back,
session.py debounces triggers per file and discards stale results.

RULES:
- Nothing in core/ imports from driver/
- At most one correlation in flight per target file
- Logging happens here, never in core/
"""
