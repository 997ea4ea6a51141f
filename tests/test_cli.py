"""Tests for the asm-explorer command-line interface.

WHY: The CLI is the glue between files on disk, the driver and the
formatters. Wrong target defaults or output naming would make it
silently write empty views.

HOW: main() is called with an explicit argv against files in tmp_path.
Error paths are checked through SystemExit and captured stderr.
"""

from __future__ import annotations

import json

import pytest

from asm_explorer.cli import _resolve_output_path, build_parser, main


@pytest.fixture
def project(tmp_path, sample_source, sample_listing, target_path):
    """A source file and a listing that names it by its real path."""
    source = tmp_path / "main.c"
    source.write_text(sample_source, encoding="utf-8")
    listing = tmp_path / "main.asme.asm"
    listing.write_text(sample_listing.replace(target_path, str(source)), encoding="utf-8")
    return source, listing


class TestBuildParser:

    def test_listing_and_command_are_exclusive(self):
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["main.c", "--listing", "a.asm", "--command", "cl -c main.c"])

    def test_one_of_listing_or_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["main.c"])

    def test_defaults(self):
        args = build_parser().parse_args(["main.c", "--listing", "a.asm"])
        assert args.dialect == "msvc"
        assert args.formats is None
        assert args.target is None


class TestListingMode:

    def test_writes_all_formats(self, project, capsys):
        source, listing = project
        main([str(source), "--listing", str(listing)])
        names = sorted(p.name for p in source.parent.iterdir())
        assert "main-annotated.asm" in names
        assert "main-explorer.html" in names
        assert "main-listing.json" in names
        assert "main-decorations.json" in names
        assert "Correlated 6 source lines" in capsys.readouterr().err

    def test_selected_format_only(self, project):
        source, listing = project
        main([str(source), "--listing", str(listing), "--formats", "json"])
        data = json.loads((source.parent / "main-listing.json").read_text(encoding="utf-8"))
        assert [e["line"] for e in data["entries"]] == [3, 4, 5, 8, 9, 10]
        assert not (source.parent / "main-annotated.asm").exists()

    def test_explicit_target(self, tmp_path, sample_source, sample_listing, target_path):
        source = tmp_path / "main.c"
        source.write_text(sample_source, encoding="utf-8")
        listing = tmp_path / "main.asm"
        listing.write_text(sample_listing, encoding="utf-8")
        main([str(source), "--listing", str(listing), "--target", target_path, "--formats", "json"])
        data = json.loads((tmp_path / "main-listing.json").read_text(encoding="utf-8"))
        assert len(data["entries"]) == 6

    def test_empty_correlation_still_saved(self, project, capsys):
        source, listing = project
        main([str(source), "--listing", str(listing), "--target", "c:\\other.c",
              "--formats", "annotated"])
        content = (source.parent / "main-annotated.asm").read_text(encoding="utf-8")
        assert "No assembly listing for current source file" in content
        assert "No assembly listing" in capsys.readouterr().err

    def test_output_dir(self, project, tmp_path):
        source, listing = project
        out = tmp_path / "out"
        out.mkdir()
        main([str(source), "--listing", str(listing), "--formats", "html", "--output-dir", str(out)])
        assert (out / "main-explorer.html").is_file()

    def test_existing_output_gets_counter(self, project):
        source, listing = project
        main([str(source), "--listing", str(listing), "--formats", "json"])
        main([str(source), "--listing", str(listing), "--formats", "json"])
        assert (source.parent / "main-listing-2.json").is_file()


class TestErrors:

    def test_missing_source(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.c"), "--listing", "x.asm"])
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_missing_listing(self, project, capsys):
        source, _ = project
        with pytest.raises(SystemExit) as exc_info:
            main([str(source), "--listing", str(source.parent / "missing.asm")])
        assert exc_info.value.code == 1
        assert "Cannot read listing" in capsys.readouterr().err

    def test_unknown_format(self, project, capsys):
        source, listing = project
        with pytest.raises(SystemExit) as exc_info:
            main([str(source), "--listing", str(listing), "--formats", "pdf"])
        assert exc_info.value.code == 1
        assert "Unknown format 'pdf'" in capsys.readouterr().err

    def test_malformed_listing(self, project, capsys):
        source, listing = project
        listing.write_text(
            "; File {}\n_TEXT\tSEGMENT\n; 3x : bad\n".format(source), encoding="utf-8"
        )
        with pytest.raises(SystemExit) as exc_info:
            main([str(source), "--listing", str(listing)])
        assert exc_info.value.code == 1
        assert "Malformed line-number directive" in capsys.readouterr().err

    def test_invalid_palette(self, project, monkeypatch, capsys):
        source, listing = project
        monkeypatch.setenv("ASME_PALETTE", "not-a-color")
        with pytest.raises(SystemExit):
            main([str(source), "--listing", str(listing)])
        assert "ASME_PALETTE" in capsys.readouterr().err

    def test_unsupported_compiler(self, project, capsys):
        source, _ = project
        with pytest.raises(SystemExit) as exc_info:
            main([str(source), "--command", "gcc -c main.c"])
        assert exc_info.value.code == 1
        assert "not supported" in capsys.readouterr().err

    def test_unknown_compiler(self, project, capsys):
        source, _ = project
        with pytest.raises(SystemExit):
            main([str(source), "--command", "tcc -c main.c"])
        assert "Unknown compiler: tcc" in capsys.readouterr().err


class TestCommandMode:

    def test_compiles_and_correlates(self, tmp_path, fake_cl):
        source = tmp_path / "main.c"
        source.write_text("int f(void) {\n    return 1;\n}\n", encoding="utf-8")
        main([
            str(source),
            "--command", "{} /Zi -c main.c".format(fake_cl),
            "--working-dir", str(tmp_path),
            "--formats", "json",
        ])
        data = json.loads((tmp_path / "main-listing.json").read_text(encoding="utf-8"))
        assert [e["line"] for e in data["entries"]] == [1, 2, 3]
        assert (tmp_path / "main.asme.asm").is_file()
        assert not (tmp_path / ".asme-main.c").exists()

    def test_compile_error_shows_output(self, tmp_path, fake_cl, capsys):
        source = tmp_path / "main.c"
        source.write_text("int f(void);\n", encoding="utf-8")
        with pytest.raises(SystemExit):
            main([
                str(source),
                "--command", "{} --fail -c main.c".format(fake_cl),
                "--working-dir", str(tmp_path),
            ])
        err = capsys.readouterr().err
        assert "C2143" in err
        assert "Compiler exited with status 2" in err


def test_resolve_output_path_counter(tmp_path):
    (tmp_path / "main-listing.json").write_text("{}")
    (tmp_path / "main-listing-2.json").write_text("{}")
    assert _resolve_output_path("main", "-listing.json", tmp_path).name == "main-listing-3.json"
