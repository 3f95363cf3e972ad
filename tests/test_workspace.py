"""Tests for the workspace facade: notifications, cascading and queries."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import MAIN_SOURCE, position_of, uri_of

from cpp2ls.config import ServerConfig
from cpp2ls.document.results import DiagnosticInfo, Location
from cpp2ls.workspace import Workspace


class Recorder:
    """Collects published diagnostics."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[DiagnosticInfo]]] = []

    def __call__(self, uri: str, diagnostics: list[DiagnosticInfo]) -> None:
        self.calls.append((uri, diagnostics))

    @property
    def uris(self) -> list[str]:
        return [uri for uri, _ in self.calls]


@pytest.fixture
def chain(workspace_root: Path) -> dict[str, Path]:
    """c.cpp2 includes b.cpp2, which includes a.h2."""
    paths = {
        "a": workspace_root / "a.h2",
        "b": workspace_root / "b.cpp2",
        "c": workspace_root / "c.cpp2",
    }
    paths["a"].write_text("helper: () -> int = 1;\n", encoding="utf-8")
    paths["b"].write_text('#include "a.h2"\nuse: () -> int = helper();\n', encoding="utf-8")
    paths["c"].write_text('#include "b.cpp2"\nmain: () = { }\n', encoding="utf-8")
    return paths


def _open_all(ws: Workspace, paths: dict[str, Path]) -> None:
    for path in paths.values():
        ws.did_open(uri_of(path), path.read_text(encoding="utf-8"))


class TestNotifications:
    def test_open_publishes_diagnostics(self, config: ServerConfig) -> None:
        recorder = Recorder()
        ws = Workspace(config, publish=recorder)
        ws.did_open("file:///w/main.cpp2", "f: () = {\n    a := 1\n}\n")
        [(uri, diagnostics)] = recorder.calls
        assert uri == "file:///w/main.cpp2"
        assert any("expected ';'" in d.message for d in diagnostics)

    def test_change_of_include_rediagnoses_direct_dependents_only(
        self, config: ServerConfig, chain: dict[str, Path]
    ) -> None:
        recorder = Recorder()
        ws = Workspace(config, publish=recorder)
        _open_all(ws, chain)
        recorder.calls.clear()

        ws.did_change(uri_of(chain["a"]), "helper: () -> int = 2;\n")
        assert recorder.uris == [uri_of(chain["a"]), uri_of(chain["b"])]

    def test_closed_dependent_is_not_rediagnosed(
        self, config: ServerConfig, chain: dict[str, Path]
    ) -> None:
        recorder = Recorder()
        ws = Workspace(config, publish=recorder)
        _open_all(ws, chain)
        ws.did_close(uri_of(chain["b"]))
        recorder.calls.clear()

        ws.did_change(uri_of(chain["a"]), "helper: () -> int = 2;\n")
        assert recorder.uris == [uri_of(chain["a"])]

    def test_close_clears_diagnostics_but_keeps_index_record(self, config: ServerConfig) -> None:
        recorder = Recorder()
        ws = Workspace(config, publish=recorder)
        ws.did_open("file:///w/a.cpp2", "f: () = { }\n")
        ws.did_close("file:///w/a.cpp2")
        assert recorder.calls[-1] == ("file:///w/a.cpp2", [])
        assert ws.session("file:///w/a.cpp2") is None
        assert ws.index.lookup_function("f") is not None

    def test_change_of_unknown_document_is_ignored(self, config: ServerConfig) -> None:
        recorder = Recorder()
        ws = Workspace(config, publish=recorder)
        ws.did_change("file:///w/ghost.cpp2", "f: () = { }\n")
        ws.did_close("file:///w/ghost.cpp2")
        assert recorder.calls == []

    def test_live_edits_reach_the_index(self, config: ServerConfig) -> None:
        ws = Workspace(config)
        ws.did_open("file:///w/a.h2", "f: () = { }\n")
        ws.did_change("file:///w/a.h2", "f: () = { }\ng: (n: int) -> int = n;\n")
        found = ws.index.lookup_function("g")
        assert found is not None and found.signature == "g: (n: int) -> int"

    def test_broken_edit_keeps_last_good_symbols(self, config: ServerConfig) -> None:
        ws = Workspace(config)
        ws.did_open("file:///w/a.cpp2", "keep: () -> int = 1;\n")
        ws.did_change("file:///w/a.cpp2", "keep: () -> int = 1;\nnew: () = {\n")
        assert ws.index.lookup_function("keep") is not None
        assert ws.index.lookup("new") == []


class TestQueries:
    def test_cross_file_definition_and_hover(
        self, config: ServerConfig, two_file_project: tuple[Path, Path]
    ) -> None:
        utils, main = two_file_project
        ws = Workspace(config)
        ws.initialize()
        session = ws.open_from_disk(uri_of(main))
        line, col = position_of(MAIN_SOURCE, "add(1, 2)")

        assert ws.definition(session.uri, line, col) == Location(uri_of(utils), 2, 0)
        hover = ws.hover(session.uri, line, col)
        assert hover is not None
        assert "add: (x: int, y: int) -> int" in hover.contents
        assert hover.contents.endswith("*from utils.h2*")

    def test_local_definition(self, config: ServerConfig, two_file_project: tuple[Path, Path]) -> None:
        _, main = two_file_project
        ws = Workspace(config)
        ws.initialize()
        session = ws.open_from_disk(uri_of(main))
        line, col = position_of(MAIN_SOURCE, "total", 3)
        assert ws.definition(session.uri, line, col) == Location(uri_of(main), 5, 4)

    def test_signature_help_from_index(
        self, config: ServerConfig, two_file_project: tuple[Path, Path]
    ) -> None:
        _, main = two_file_project
        ws = Workspace(config)
        ws.initialize()
        session = ws.open_from_disk(uri_of(main))
        line, col = position_of(MAIN_SOURCE, "add(1, ")
        help_ = ws.signature_help(session.uri, line, col + len("add(1, "))
        assert help_ is not None
        assert help_.parameters == ("x: int", "y: int")
        assert help_.active_parameter == 1

    def test_unknown_document(self, config: ServerConfig) -> None:
        ws = Workspace(config)
        uri = "file:///w/unknown.cpp2"
        assert ws.hover(uri, 0, 0) is None
        assert ws.definition(uri, 0, 0) is None
        assert ws.references(uri, 0, 0) == []
        assert ws.completion(uri, 0, 0) == []
        assert ws.signature_help(uri, 0, 0) is None
        assert ws.diagnostics(uri) == []

    def test_open_documents(self, config: ServerConfig) -> None:
        ws = Workspace(config)
        ws.did_open("file:///w/b.cpp2", "")
        ws.did_open("file:///w/a.cpp2", "")
        assert ws.open_documents() == ["file:///w/a.cpp2", "file:///w/b.cpp2"]


class TestInitialize:
    def test_second_start_uses_cache(
        self, config: ServerConfig, two_file_project: tuple[Path, Path]
    ) -> None:
        assert not Workspace(config).initialize()
        assert config.cache_path.is_file()
        assert Workspace(config).initialize()
        assert not Workspace(config).initialize(force=True)

    def test_shutdown_persists_live_edits(self, config: ServerConfig, workspace_root: Path) -> None:
        ws = Workspace(config)
        ws.initialize()
        ws.did_open(uri_of(workspace_root / "live.cpp2"), "fresh: () = { }\n")
        ws.shutdown()

        reloaded = Workspace(config)
        assert reloaded.index.load_from_cache()
        assert reloaded.index.lookup_function("fresh") is not None

    def test_from_root_loads_config(self, workspace_root: Path) -> None:
        ws = Workspace.from_root(workspace_root)
        assert ws.config.workspace_root == workspace_root
