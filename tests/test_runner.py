"""Tests for compiler invocation and listing generation.

WHY: The runner owns the temporary source copy and the compiler process.
Leaking the ``.asme-`` copy into the user's tree, or leaving a hung
compiler behind, would be visible damage outside this tool.

HOW: Real subprocesses: the current Python interpreter for the process
handling cases, and the ``fake_cl`` fixture (a script named ``cl`` that
writes an MSVC-style listing) for full listing generation. Async code is
driven with asyncio.run() from synchronous tests.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from asm_explorer.core.parser import parse
from asm_explorer.driver.runner import (
    CompileError,
    CompileTimeoutError,
    generate_msvc_listing,
    listing_paths,
    run_listing_compile,
)

SOURCE = "#include <stdio.h>\n\nint main(void) {\n    return 0;\n}\n"


class TestListingPaths:

    def test_temp_copy_next_to_source(self, tmp_path):
        temp_source, _ = listing_paths(tmp_path / "src" / "main.c", tmp_path / "build")
        assert temp_source == tmp_path / "src" / ".asme-main.c"

    def test_listing_in_build_dir(self, tmp_path):
        _, listing = listing_paths(tmp_path / "src" / "main.cpp", tmp_path / "build")
        assert listing == tmp_path / "build" / "main.asme.asm"

    def test_relative_paths_made_absolute(self):
        temp_source, listing = listing_paths("main.c", "build")
        assert temp_source.is_absolute()
        assert listing.is_absolute()


class TestRunListingCompile:

    def test_returns_combined_output(self, tmp_path):
        code = "import sys; print('out'); print('err', file=sys.stderr)"
        output = asyncio.run(run_listing_compile(sys.executable, ["-c", code], tmp_path))
        assert "out" in output
        assert "err" in output

    def test_runs_in_working_dir(self, tmp_path):
        code = "import os; print(os.getcwd())"
        output = asyncio.run(run_listing_compile(sys.executable, ["-c", code], tmp_path))
        assert Path(output.strip()).resolve() == tmp_path.resolve()

    def test_nonzero_exit_raises_with_output(self, tmp_path):
        code = "import sys; print('C2143: syntax error'); sys.exit(3)"
        with pytest.raises(CompileError) as exc_info:
            asyncio.run(run_listing_compile(sys.executable, ["-c", code], tmp_path))
        assert exc_info.value.returncode == 3
        assert "C2143" in exc_info.value.output

    def test_missing_program_raises(self, tmp_path):
        with pytest.raises(CompileError) as exc_info:
            asyncio.run(run_listing_compile(str(tmp_path / "no-such-cl"), [], tmp_path))
        assert exc_info.value.returncode is None

    def test_timeout_kills_compiler(self, tmp_path):
        code = "import time; time.sleep(30)"
        with pytest.raises(CompileTimeoutError):
            asyncio.run(
                run_listing_compile(sys.executable, ["-c", code], tmp_path, timeout=0.5)
            )


class TestGenerateMsvcListing:

    def test_listing_names_temp_copy(self, tmp_path, fake_cl):
        source = tmp_path / "main.c"
        source.write_text("stale on disk\n", encoding="utf-8")
        output = asyncio.run(generate_msvc_listing(
            [str(fake_cl), "/O2", "-c", "main.c"],
            source,
            SOURCE,
            tmp_path,
            tmp_path,
        ))
        assert output.target_path == str(tmp_path / ".asme-main.c")
        assert output.listing_path == tmp_path / "main.asme.asm"
        assert "; File " + output.target_path in output.listing_text

    def test_compiles_in_memory_text(self, tmp_path, fake_cl):
        source = tmp_path / "main.c"
        source.write_text("stale on disk\n", encoding="utf-8")
        output = asyncio.run(generate_msvc_listing(
            [str(fake_cl), "-c", "main.c"], source, SOURCE, tmp_path, tmp_path,
        ))
        mapping = parse(output.listing_text, output.target_path, len(SOURCE.splitlines()))
        assert sorted(mapping) == [3, 4, 5]
        assert mapping[4] == ["\tnop\t; line 4"]

    def test_temp_copy_removed(self, tmp_path, fake_cl):
        source = tmp_path / "main.c"
        asyncio.run(generate_msvc_listing(
            [str(fake_cl), "-c", "main.c"], source, SOURCE, tmp_path, tmp_path,
        ))
        assert not (tmp_path / ".asme-main.c").exists()

    def test_separate_build_dir(self, tmp_path, fake_cl):
        build = tmp_path / "out"
        build.mkdir()
        output = asyncio.run(generate_msvc_listing(
            [str(fake_cl), "-c", "main.c"], tmp_path / "main.c", SOURCE, tmp_path, build,
        ))
        assert output.listing_path == build / "main.asme.asm"
        assert output.listing_path.is_file()

    def test_compile_failure_removes_temp_copy(self, tmp_path, fake_cl):
        with pytest.raises(CompileError) as exc_info:
            asyncio.run(generate_msvc_listing(
                [str(fake_cl), "--fail", "-c", "main.c"],
                tmp_path / "main.c",
                SOURCE,
                tmp_path,
                tmp_path,
            ))
        assert exc_info.value.returncode == 2
        assert "C2143" in exc_info.value.output
        assert not (tmp_path / ".asme-main.c").exists()
        assert not (tmp_path / "main.asme.asm").exists()

    def test_empty_command_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            asyncio.run(generate_msvc_listing([], tmp_path / "main.c", SOURCE, tmp_path, tmp_path))
