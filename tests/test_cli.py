"""Tests for the CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import MAIN_SOURCE, position_of

from cpp2ls import __version__
from cpp2ls.cli import app

runner = CliRunner()


def _pos(needle: str, occurrence: int = 0, offset: int = 0) -> list[str]:
    line, col = position_of(MAIN_SOURCE, needle, occurrence)
    return [str(line), str(col + offset)]


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestIndex:
    def test_index_no_source_files(self, workspace_root: Path) -> None:
        result = runner.invoke(app, ["index", str(workspace_root)])
        assert result.exit_code == 0
        assert "no source files" in result.output.lower()

    def test_index_writes_cache_and_summary(
        self, workspace_root: Path, two_file_project: tuple[Path, Path]
    ) -> None:
        result = runner.invoke(app, ["index", str(workspace_root)])
        assert result.exit_code == 0
        assert "4 symbols" in result.output
        assert (workspace_root / ".cache" / "cpp2ls" / "index.json").is_file()

    def test_index_defaults_to_cwd(
        self,
        workspace_root: Path,
        two_file_project: tuple[Path, Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(workspace_root)
        result = runner.invoke(app, ["index", "--force"])
        assert result.exit_code == 0
        assert "2 files" in result.output

    def test_index_bad_config(self, workspace_root: Path) -> None:
        (workspace_root / ".cpp2ls").mkdir()
        (workspace_root / ".cpp2ls" / "config.toml").write_text('log_level = "LOUD"\n', encoding="utf-8")
        result = runner.invoke(app, ["index", str(workspace_root)])
        assert result.exit_code == 1
        assert "Invalid log_level" in result.output


class TestCheck:
    def test_clean_file(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        result = runner.invoke(app, ["check", str(main), "--root", str(workspace_root)])
        assert result.exit_code == 0
        assert "No problems found." in result.output

    def test_file_with_errors(self, workspace_root: Path) -> None:
        bad = workspace_root / "bad.cpp2"
        bad.write_text("f: () = {\n    a := 1\n}\n", encoding="utf-8")
        result = runner.invoke(app, ["check", str(bad), "--root", str(workspace_root)])
        assert result.exit_code == 1
        assert "expected ';'" in result.output

    def test_missing_file(self, workspace_root: Path) -> None:
        result = runner.invoke(
            app, ["check", str(workspace_root / "nope.cpp2"), "--root", str(workspace_root)]
        )
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestSymbols:
    def test_found(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        result = runner.invoke(app, ["symbols", "add", "--root", str(workspace_root)])
        assert result.exit_code == 0
        assert "add: (x: int, y: int) -> int" in result.output
        assert "utils.h2:2:0" in result.output

    def test_not_found(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        result = runner.invoke(app, ["symbols", "nothing", "--root", str(workspace_root)])
        assert result.exit_code == 1


class TestQueries:
    def test_definition_across_files(
        self, workspace_root: Path, two_file_project: tuple[Path, Path]
    ) -> None:
        _, main = two_file_project
        args = ["definition", str(main), *_pos("add(1, 2)"), "--root", str(workspace_root)]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "utils.h2:2:0" in result.output

    def test_hover(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        args = ["hover", str(main), *_pos("scale(total)"), "--root", str(workspace_root)]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "scale: (v: int) -> int" in result.output

    def test_hover_on_nothing(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        result = runner.invoke(app, ["hover", str(main), "1", "0", "--root", str(workspace_root)])
        assert result.exit_code == 1

    def test_references(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        args = ["references", str(main), *_pos("total"), "--root", str(workspace_root)]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        hits = [line for line in result.output.splitlines() if "main.cpp2:" in line]
        assert len(hits) == 5

        result = runner.invoke(app, [*args, "--no-declaration"])
        hits = [line for line in result.output.splitlines() if "main.cpp2:" in line]
        assert len(hits) == 4

    def test_complete(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        args = ["complete", str(main), *_pos("return"), "--root", str(workspace_root)]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "total" in result.output
        assert "scale" in result.output

    def test_signature(self, workspace_root: Path, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        args = [
            "signature",
            str(main),
            *_pos("add(1, ", offset=len("add(1, ")),
            "--root",
            str(workspace_root),
        ]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "add: (x: int, y: int) -> int" in result.output
        assert "> y: int" in result.output
