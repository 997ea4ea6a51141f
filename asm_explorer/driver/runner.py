"""Compiler invocation for listing generation.

WHY: The listing must describe the text currently in the editor, not the
last saved file. We compile a temporary copy of the in-memory source with
the project's own compile command, rewritten to emit an assembly listing.

HOW: generate_msvc_listing() writes ``.asme-<name>`` next to the original
(so relative includes still resolve), rewrites the command, runs it with
asyncio subprocesses in the command's working directory, always removes
the temporary copy, and reads the listing back from the build directory.

RULES:
- Non-zero exit raises CompileError carrying the compiler output; the
  listing is never read in that case
- A timeout or a cancelled task kills the compiler process
- The listing echoes the temporary copy's path, so that (not the original
  path) is the target path handed to the parser
- Listing read failures raise UnreadableInputError (core.parser.read_listing)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from asm_explorer.config import LISTING_SUFFIX, TEMP_SOURCE_PREFIX
from asm_explorer.core.parser import read_listing
from asm_explorer.driver.command import rewrite_msvc_command

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CompileError(Exception):
    """Raised when the compiler cannot be started or exits non-zero.

    RULES:
    - returncode is None when the process never started
    - output is the combined stdout/stderr text (may be empty)
    """

    def __init__(self, returncode: Optional[int], output: str) -> None:
        self.returncode = returncode
        self.output = output
        if returncode is None:
            message = "Compiler could not be started: {}".format(output)
        else:
            message = "Compiler exited with status {}".format(returncode)
        super().__init__(message)


class CompileTimeoutError(TimeoutError):
    """Raised when the compiler runs longer than the configured timeout."""


@dataclass
class ListingOutput:
    """A generated listing and the path it uses for the analysed file."""

    listing_text: str
    target_path: str
    listing_path: Path


def listing_paths(source_path: PathLike, build_dir: PathLike) -> Tuple[Path, Path]:
    """Return ``(temp_source_path, listing_path)`` for a source file.

    RULES:
    - Temp copy: ``<source dir>/.asme-<name>``, absolute
    - Listing: ``<build dir>/<stem>.asme.asm``
    """
    source = Path(source_path).absolute()
    temp_source = source.parent / (TEMP_SOURCE_PREFIX + source.name)
    listing = Path(build_dir).absolute() / (source.stem + LISTING_SUFFIX)
    return temp_source, listing


async def run_listing_compile(
    program: str,
    args: Sequence[str],
    working_dir: PathLike,
    timeout: Optional[float] = None,
) -> str:
    """Run a compiler and return its combined output.

    Raises:
        CompileError: The process could not start or exited non-zero.
        CompileTimeoutError: ``timeout`` seconds elapsed first.
    """
    logger.info("Running %s with %d arguments in %s", program, len(args), working_dir)
    try:
        proc = await asyncio.create_subprocess_exec(
            program,
            *args,
            cwd=str(working_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        raise CompileError(None, str(exc)) from exc

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CompileTimeoutError(
            "Compiler did not finish within {:.1f}s".format(timeout)
        ) from None
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise

    output = stdout.decode("utf-8", errors="replace") if stdout else ""
    if proc.returncode != 0:
        raise CompileError(proc.returncode, output)
    return output


async def generate_msvc_listing(
    command: Sequence[str],
    source_path: PathLike,
    source_text: str,
    working_dir: PathLike,
    build_dir: PathLike,
    timeout: Optional[float] = None,
) -> ListingOutput:
    """Compile the in-memory source with MSVC listing flags.

    Args:
        command: Full compile command; command[0] is the compiler.
        source_path: Path of the original source file.
        source_text: Current (possibly unsaved) text of the source.
        working_dir: Directory the compile command expects to run in.
        build_dir: Directory the listing is written to.
        timeout: Optional limit for the compiler run, in seconds.

    Returns:
        The listing text plus the temporary path the listing echoes.
    """
    if not command:
        raise ValueError("Compile command is empty")

    temp_source, listing = listing_paths(source_path, build_dir)
    args = rewrite_msvc_command(command[1:], str(listing), str(temp_source))

    temp_source.write_text(source_text, encoding="utf-8")
    try:
        await run_listing_compile(command[0], args, working_dir, timeout)
    finally:
        temp_source.unlink(missing_ok=True)

    return ListingOutput(
        listing_text=read_listing(listing),
        target_path=str(temp_source),
        listing_path=listing,
    )
