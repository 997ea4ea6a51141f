"""Command-line interface for the Assembly Explorer.

WHY: Users need a way to correlate a listing with its source from the
terminal — either a listing they already have, or one generated on the
spot from the project's MSVC compile command. The CLI wires the driver,
the correlator, and the pluggable formatters behind one command.

HOW: Uses argparse. With ``--listing`` the given listing is read and
correlated against the source file. With ``--command`` the compile command
is rewritten for listing output, run against a temporary copy of the
source (asyncio.run), and the fresh listing is correlated. Every selected
formatter's output is saved next to the source (or to --output-dir).

RULES:
- Positional argument: the C/C++ source file
- Exactly one of --listing / --command
- --target defaults to the source path as given (for --listing)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts
  (main-listing-2.json)
- Status output goes to stderr; exit status 1 on any error
- An empty correlation is reported, and the (empty) views are still saved
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from asm_explorer.config import COMPILE_TIMEOUT_SECONDS, NO_LISTING_MESSAGE, load_palette
from asm_explorer.core.assembler import correlate
from asm_explorer.core.errors import CorrelatorError
from asm_explorer.core.grammar import GRAMMARS, get_grammar
from asm_explorer.core.ir import CorrelationResult
from asm_explorer.core.parser import read_listing
from asm_explorer.driver.command import (
    CompilerFamily,
    UnknownCompilerError,
    UnsupportedCompilerError,
    detect_compiler,
    split_command,
)
from asm_explorer.driver.runner import (
    CompileError,
    CompileTimeoutError,
    generate_msvc_listing,
)
from asm_explorer.formatters import FORMATTERS
from asm_explorer.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Progress lines go to stderr, flushed at once."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Pick a free path for one view, never overwriting an earlier run.

    main-listing.json is taken first, then main-listing-2.json,
    main-listing-3.json and so on.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Save a single formatter output to disk as UTF-8 and return its path."""
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _parse_format_keys(formats: Optional[str]) -> List[str]:
    if not formats:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in formats.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    return keys


async def _generate_listing(
    args: argparse.Namespace,
    source_path: Path,
    source_text: str,
) -> tuple:
    """Compile the source with listing flags; return (listing_text, target)."""
    command = split_command(args.command)
    if not command:
        raise UnknownCompilerError("")
    family = detect_compiler(command[0])
    if family is CompilerFamily.GCC:
        raise UnsupportedCompilerError(command[0])
    if family is not CompilerFamily.MSVC:
        raise UnknownCompilerError(command[0])

    working_dir = Path(args.working_dir) if args.working_dir else Path.cwd()
    build_dir = Path(args.build_dir) if args.build_dir else working_dir
    _status("Compiling {} with listing output...".format(source_path.name))
    output = await generate_msvc_listing(
        command,
        source_path,
        source_text,
        working_dir,
        build_dir,
        args.timeout,
    )
    _status("  Listing: {}".format(output.listing_path))
    return output.listing_text, output.target_path


def _run(args: argparse.Namespace) -> None:
    """Correlate, format and save. Exits the process on errors."""
    source_path = Path(args.source_file)
    if not source_path.is_file():
        _fail("File not found: {}".format(source_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else source_path.resolve().parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _parse_format_keys(args.formats)

    try:
        grammar = get_grammar(args.dialect)
    except KeyError as exc:
        _fail(exc.args[0])

    try:
        palette = load_palette()
    except ValueError as exc:
        _fail(str(exc))

    source_text = source_path.read_text(encoding="utf-8", errors="replace")

    try:
        if args.listing:
            _status("Reading listing {}...".format(args.listing))
            listing_text = read_listing(args.listing)
            target = args.target or str(source_path)
        else:
            listing_text, target = asyncio.run(_generate_listing(args, source_path, source_text))
            if args.target:
                target = args.target

        _status("Correlating against {}...".format(target))
        result: CorrelationResult = correlate(
            listing_text,
            target,
            source_text,
            source_path.name,
            grammar=grammar,
            palette=palette,
        )
    except CompileError as exc:
        if exc.output:
            print(exc.output, file=sys.stderr)
        _fail(str(exc))
    except (CompileTimeoutError, UnknownCompilerError, UnsupportedCompilerError) as exc:
        _fail(str(exc))
    except CorrelatorError as exc:
        _fail(str(exc))

    if result.is_empty:
        _status("  {}".format(NO_LISTING_MESSAGE))
    else:
        _status("  Correlated {} source lines".format(len(result.entries)))

    stem = source_path.stem
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(result):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for ``asm-explorer``; main() only consumes it."""
    parser = argparse.ArgumentParser(
        prog="asm-explorer",
        description="Correlate a compiler assembly listing with its C/C++ source "
                    "and write annotated, HTML, JSON, and editor-decoration views.",
    )

    parser.add_argument(
        "source_file",
        help="Path to the C/C++ source file.",
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--listing",
        default=None,
        help="Path to an existing assembly listing (e.g. from cl.exe /FAs).",
    )
    source.add_argument(
        "--command",
        default=None,
        help="Full compile command for the source file; it is rewritten to "
             "produce a listing from a temporary copy of the source.",
    )

    parser.add_argument(
        "--target",
        default=None,
        help="Path exactly as the listing names the source file "
             "(default: the source path, or the temporary copy with --command).",
    )

    parser.add_argument(
        "--dialect",
        default="msvc",
        choices=sorted(GRAMMARS.keys()),
        help="Listing dialect (default: %(default)s).",
    )

    parser.add_argument(
        "--working-dir",
        default=None,
        help="Directory to run the compile command in (default: CWD).",
    )

    parser.add_argument(
        "--build-dir",
        default=None,
        help="Directory to write the generated listing to (default: working dir).",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=COMPILE_TIMEOUT_SECONDS,
        help="Seconds to wait for the compiler (default: no limit).",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: next to the source file).",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log driver activity to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _run(args)


if __name__ == "__main__":
    main()
