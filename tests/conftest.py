"""Shared test fixtures for the asm_explorer test suite.

WHY: Parser, assembler, formatter, CLI and API tests all need the same
realistic MSVC listing and the source it was compiled from. Keeping one
copy here means every layer is tested against the same sample.

HOW: SAMPLE_SOURCE is a small C file. SAMPLE_LISTING is a trimmed
``cl.exe /FAs`` listing of its temporary copy, including a header file
block, data segment boilerplate, two functions and an out-of-range line
reference. The fixtures return fresh copies plus a pre-built
CorrelationResult.

RULES:
- Listing lines use the real MSVC shapes: "; File", "_TEXT\\tSEGMENT",
  "; <n>  :", tab-indented instructions, "<proc>\\tENDP", "_TEXT\\tENDS"
- The target path is the temporary ".asme-" copy, as the driver passes it
- Colors are from DEFAULT_PALETTE so expectations can be computed
"""

import sys
from typing import List

import pytest

from asm_explorer.config import DEFAULT_PALETTE
from asm_explorer.core.assembler import display_color
from asm_explorer.core.ir import CorrelationEntry, CorrelationResult


TARGET_PATH = "c:\\work\\demo\\.asme-main.c"

SAMPLE_SOURCE = (
    "#include \"util.h\"\n"
    "\n"
    "int add(int a, int b) {\n"
    "    return a + b;\n"
    "}\n"
    "\n"
    "int main(void) {\n"
    "    int x = add(1, 2);\n"
    "    return twice(x);\n"
    "}\n"
)

SAMPLE_LISTING_LINES: List[str] = [
    "; Listing generated by Microsoft (R) Optimizing Compiler Version 19.29.30133.0",
    "",
    "include listing.inc",
    "",
    "INCLUDELIB LIBCMT",
    "INCLUDELIB OLDNAMES",
    "",
    "PUBLIC\tadd",
    "PUBLIC\tmain",
    "; Function compile flags: /Odtp",
    "; File c:\\work\\demo\\util.h",
    "_TEXT\tSEGMENT",
    "x$ = 8",
    "twice\tPROC",
    "",
    "; 2    : static int twice(int x) { return x * 2; }",
    "",
    "\tmov\tDWORD PTR [rsp+8], ecx",
    "\tmov\teax, DWORD PTR x$[rsp]",
    "\tshl\teax, 1",
    "\tret\t0",
    "twice\tENDP",
    "_TEXT\tENDS",
    "; Function compile flags: /Odtp",
    "; File " + TARGET_PATH,
    "_TEXT\tSEGMENT",
    "a$ = 8",
    "b$ = 16",
    "add\tPROC",
    "",
    "; 3    : int add(int a, int b) {",
    "",
    "\tmov\tDWORD PTR [rsp+16], edx",
    "\tmov\tDWORD PTR [rsp+8], ecx",
    "",
    "; 4    :     return a + b;",
    "",
    "\tmov\teax, DWORD PTR b$[rsp]",
    "\tmov\tecx, DWORD PTR a$[rsp]",
    "\tadd\tecx, eax",
    "\tmov\teax, ecx",
    "",
    "; 5    : }",
    "",
    "\tret\t0",
    "add\tENDP",
    "_TEXT\tENDS",
    "; Function compile flags: /Odtp",
    "_TEXT\tSEGMENT",
    "x$ = 32",
    "main\tPROC",
    "",
    "; 7    : int main(void) {",
    "",
    "$LN3:",
    "\tsub\trsp, 56\t\t\t\t\t; 00000038H",
    "",
    "; 8    :     int x = add(1, 2);",
    "",
    "\tmov\tedx, 2",
    "\tmov\tecx, 1",
    "\tcall\tadd",
    "\tmov\tDWORD PTR x$[rsp], eax",
    "",
    "; 9    :     return twice(x);",
    "",
    "\tmov\tecx, DWORD PTR x$[rsp]",
    "\tcall\ttwice",
    "",
    "; 10   : }",
    "",
    "\tadd\trsp, 56\t\t\t\t\t; 00000038H",
    "\tret\t0",
    "",
    "; 99   : synthetic reference past the end of the file",
    "",
    "\tint\t3",
    "main\tENDP",
    "_TEXT\tENDS",
    "END",
]

SAMPLE_LISTING = "\n".join(SAMPLE_LISTING_LINES) + "\n"

EXPECTED_BLOCKS = {
    3: ["\tmov\tDWORD PTR [rsp+16], edx", "\tmov\tDWORD PTR [rsp+8], ecx"],
    4: [
        "\tmov\teax, DWORD PTR b$[rsp]",
        "\tmov\tecx, DWORD PTR a$[rsp]",
        "\tadd\tecx, eax",
        "\tmov\teax, ecx",
    ],
    5: ["\tret\t0"],
    7: [],
    8: ["\tmov\tedx, 2", "\tmov\tecx, 1", "\tcall\tadd", "\tmov\tDWORD PTR x$[rsp], eax"],
    9: ["\tmov\tecx, DWORD PTR x$[rsp]", "\tcall\ttwice"],
    10: ["\tadd\trsp, 56\t\t\t\t\t; 00000038H", "\tret\t0"],
}
"""Expected parser output. Line 7 is listed empty: its only instruction
follows the unindented "$LN3:" label, so it is not in the mapping."""


@pytest.fixture(autouse=True)
def _default_display_env(monkeypatch):
    """Run every test with the default palette and CR LF separator."""
    monkeypatch.delenv("ASME_PALETTE", raising=False)
    monkeypatch.delenv("ASME_LINE_SEPARATOR", raising=False)


@pytest.fixture
def sample_source():
    return SAMPLE_SOURCE


@pytest.fixture
def sample_listing():
    return SAMPLE_LISTING


@pytest.fixture
def target_path():
    return TARGET_PATH


@pytest.fixture
def expected_mapping():
    """Parser mapping expected for SAMPLE_LISTING (line 7 has no block)."""
    return {line: list(block) for line, block in EXPECTED_BLOCKS.items() if block}


FAKE_CL_SCRIPT = '''\
import sys

args = sys.argv[1:]
if "--fail" in args:
    print("main.c(3): error C2143: syntax error")
    sys.exit(2)
listing = next(a[3:] for a in args if a.startswith("/Fa"))
source = args[-1]
with open(source, encoding="utf-8") as f:
    lines = f.read().splitlines()
out = ["; File " + source, "_TEXT\\tSEGMENT"]
for number, text in enumerate(lines, start=1):
    if text.strip() and not text.startswith("#"):
        out.append("; {}    : {}".format(number, text))
        out.append("\\tnop\\t; line {}".format(number))
out += ["f\\tENDP", "_TEXT\\tENDS", "END"]
with open(listing, "w", encoding="utf-8", newline="\\r\\n") as f:
    f.write("\\n".join(out) + "\\n")
print("main.c")
'''


@pytest.fixture
def fake_cl(tmp_path):
    """An executable named ``cl`` that writes a listing like cl.exe /FAs.

    Every non-blank, non-preprocessor source line gets one ``nop``. Passing
    ``--fail`` makes it exit 2 with a compiler-style error message.
    """
    if sys.platform == "win32":
        pytest.skip("fake compiler is a POSIX shell wrapper")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "fake_cl.py"
    script.write_text(FAKE_CL_SCRIPT, encoding="utf-8")
    wrapper = bin_dir / "cl"
    wrapper.write_text(
        '#!/bin/sh\nexec "{}" "{}" "$@"\n'.format(sys.executable, script),
        encoding="utf-8",
    )
    wrapper.chmod(0o755)
    return wrapper


@pytest.fixture
def sample_result():
    """A small pre-built CorrelationResult with three entries."""
    lines = SAMPLE_SOURCE.splitlines()
    entries = [
        CorrelationEntry(
            source_line=3,
            source_text=lines[2],
            assembly_text="\tmov\tDWORD PTR [rsp+16], edx\r\n\tmov\tDWORD PTR [rsp+8], ecx",
            display_color=display_color(3, DEFAULT_PALETTE),
        ),
        CorrelationEntry(
            source_line=4,
            source_text=lines[3],
            assembly_text="\tmov\teax, DWORD PTR b$[rsp]\r\n\tadd\teax, ecx",
            display_color=display_color(4, DEFAULT_PALETTE),
        ),
        CorrelationEntry(
            source_line=5,
            source_text=lines[4],
            assembly_text="\tret\t0",
            display_color=display_color(5, DEFAULT_PALETTE),
        ),
    ]
    return CorrelationResult(source_filename="main.c", entries=entries)


@pytest.fixture
def empty_result():
    return CorrelationResult(source_filename="main.c", entries=[])
