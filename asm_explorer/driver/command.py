"""Compile command splitting, compiler detection, and MSVC flag rewriting.

WHY: Build systems hand us the exact compile command for a source file
(for example from compile_commands.json). To get a listing we must run
that same command with the object/debug outputs swapped for listing
output, against a temporary copy of the edited source.

HOW: split_command() tokenizes the stored command line, honouring quotes
and escaped spaces. detect_compiler() decides the listing dialect from
the program name. rewrite_msvc_command() drops every output-producing
flag and the original source argument, then adds /FAs listing flags and
the temporary source.

RULES:
- Output flags removed: Fo Fd Fm Fa Fp Fe Fr Fi, with "/" or "-"; the
  detached form ("/Fo" "out.obj") also drops the following argument
- Debug info flags Zi and Z7 are removed
- The existing "-c"/"/c" source argument is removed and replaced by
  "-c <temp source>"
- The result starts with "/FAs /Fa<listing> /Fo<listing>.obj"
- GCC/Clang are recognized but have no listing grammar yet
"""

from __future__ import annotations

import enum
import ntpath
import re
from typing import List, Sequence

# Arguments are single-quoted, double-quoted, or runs of non-space
# characters where "\ " is an escaped space.
_ARG_RE = re.compile(r"""('(?:\\'|[^'])*'|"(?:\\"|[^"])*"|(?:\\ |[^ ])+)""")

_MSVC_OUTPUT_FLAGS = ("Fo", "Fd", "Fm", "Fa", "Fp", "Fe", "Fr", "Fi")
_MSVC_DEBUG_FLAGS = ("Zi", "Z7")
_COMPILE_ONLY_RE = re.compile(r"^[/-]c$")

_GCC_RE = re.compile(r"(gcc|g\+\+|clang|clang\+\+)(-[\d.]+)?(\.exe)?$", re.IGNORECASE)


class CompilerFamily(str, enum.Enum):
    """Listing dialect families we can recognise from a program name."""

    MSVC = "msvc"
    GCC = "gcc"
    UNKNOWN = "unknown"


class UnknownCompilerError(Exception):
    """Raised when the compile command's program is not a known compiler."""

    def __init__(self, program: str) -> None:
        self.program = program
        super().__init__("Unknown compiler: {}".format(program))


class UnsupportedCompilerError(Exception):
    """Raised for compilers we recognise but cannot read listings from yet."""

    def __init__(self, program: str) -> None:
        self.program = program
        super().__init__(
            "Listings from {} are not supported yet (MSVC only)".format(program)
        )


def split_command(command_line: str) -> List[str]:
    """Split a stored compile command into arguments.

    RULES:
    - Quoted arguments may contain spaces; the outer quotes are removed
    - Escaped double quotes (\\") become plain double quotes
    - Backslashes in Windows paths are preserved
    """
    args = []
    for raw in _ARG_RE.findall(command_line):
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
            raw = raw[1:-1]
        args.append(raw.replace('\\"', '"'))
    return args


def detect_compiler(program: str) -> CompilerFamily:
    """Classify a compiler program path."""
    name = ntpath.basename(program.replace("/", "\\")).lower()
    if name.endswith("cl.exe") or name == "cl":
        return CompilerFamily.MSVC
    if _GCC_RE.search(name):
        return CompilerFamily.GCC
    return CompilerFamily.UNKNOWN


def _is_flag(arg: str, flag: str) -> bool:
    return arg.startswith("-" + flag) or arg.startswith("/" + flag)


def _remove_flag(args: List[str], flag: str, takes_value: bool) -> None:
    i = 0
    while i < len(args):
        if not _is_flag(args[i], flag):
            i += 1
            continue
        detached = len(args[i]) == len(flag) + 1
        del args[i:i + 2 if takes_value and detached else i + 1]


def rewrite_msvc_command(
    args: Sequence[str],
    listing_path: str,
    temp_source_path: str,
) -> List[str]:
    """Turn an MSVC compile command's arguments into a listing command.

    Args:
        args: Compiler arguments, without the program itself.
        listing_path: Where cl.exe should write the /FAs listing.
        temp_source_path: The temporary copy of the source to compile.

    Returns:
        New argument list; ``args`` is not modified.
    """
    rewritten = list(args)
    for flag in _MSVC_OUTPUT_FLAGS:
        _remove_flag(rewritten, flag, takes_value=True)
    for flag in _MSVC_DEBUG_FLAGS:
        _remove_flag(rewritten, flag, takes_value=False)

    for i, arg in enumerate(rewritten):
        if _COMPILE_ONLY_RE.match(arg):
            del rewritten[i:i + 2]
            break

    rewritten.extend(["-c", temp_source_path])
    return [
        "/FAs",
        "/Fa" + listing_path,
        "/Fo" + listing_path + ".obj",
    ] + rewritten
