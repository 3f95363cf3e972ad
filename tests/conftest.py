"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from cpp2ls.config import ServerConfig
from cpp2ls.document.session import DocumentSession
from cpp2ls.frontend import Cpp2Frontend
from cpp2ls.frontend.model import ParseResult
from cpp2ls.uris import path_to_uri

UTILS_SOURCE = """\
// arithmetic helpers

add: (x: int, y: int) -> int = x + y;

scale: (v: int) -> int = {
    return v * 2;
}
"""

MAIN_SOURCE = """\
#include "utils.h2"

counter: int = 0;

main: () -> int = {
    total := 0;
    total = total + 1;
    counter = total;
    n := scale(total);
    return add(1, 2);
}
"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user-level config files and CPP2LS_* variables out of every test."""
    monkeypatch.setattr("cpp2ls.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.toml")
    for name in (
        "CPP2LS_CACHE_DIR",
        "CPP2LS_CACHE_ENABLED",
        "CPP2LS_SOURCE_EXTENSIONS",
        "CPP2LS_HEADER_EXTENSION",
        "CPP2LS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """A resolved, empty workspace directory."""
    root = tmp_path / "ws"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def config(workspace_root: Path) -> ServerConfig:
    """Configuration for workspace_root without touching user config files."""
    return ServerConfig(workspace_root=workspace_root)


@pytest.fixture
def two_file_project(workspace_root: Path) -> tuple[Path, Path]:
    """utils.h2 declaring helpers and main.cpp2 including and calling them."""
    utils = workspace_root / "utils.h2"
    main = workspace_root / "main.cpp2"
    utils.write_text(UTILS_SOURCE, encoding="utf-8")
    main.write_text(MAIN_SOURCE, encoding="utf-8")
    return utils, main


def uri_of(path: Path) -> str:
    return path_to_uri(path.resolve())


def make_session(text: str, uri: str = "file:///w/test.cpp2") -> DocumentSession:
    session = DocumentSession(uri)
    session.update(text)
    return session


def position_of(text: str, needle: str, occurrence: int = 0) -> tuple[int, int]:
    """0-based (line, column) of the n-th occurrence of needle."""
    offset = -1
    for _ in range(occurrence + 1):
        offset = text.index(needle, offset + 1)
    line = text.count("\n", 0, offset)
    return line, offset - (text.rfind("\n", 0, offset) + 1)


class ExplodingFrontend:
    """Front-end double that raises while ``error`` is set and parses normally otherwise."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0
        self._real = Cpp2Frontend()

    def analyze(self, text: str) -> ParseResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self._real.analyze(text)
