"""Workspace walker that discovers Cpp2 source files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from cpp2ls.exceptions import IndexerError
from cpp2ls.uris import path_to_uri

console = Console(stderr=True)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A discovered source file.

    Attributes:
        path: Absolute path of the file.
        uri: file:// URI of the file.
        mtime_ns: Modification time in nanoseconds since the epoch.
    """

    path: Path
    uri: str
    mtime_ns: int


class FileScanner:
    """Finds source files under a workspace root.

    Any path with a hidden segment (a directory or file name starting with
    ``.``) relative to the root is skipped, as is every file whose
    extension is not a configured source extension.

    Usage::

        scanner = FileScanner(Path("/w"), (".cpp2", ".h2"))
        files = scanner.scan()
    """

    def __init__(self, workspace_root: Path, extensions: tuple[str, ...]) -> None:
        """Initialize the scanner.

        Args:
            workspace_root: Root directory to walk.
            extensions: Recognized source extensions, lowercase with dot.

        Raises:
            IndexerError: If workspace_root does not exist.
        """
        self._root = workspace_root.resolve()
        if not self._root.is_dir():
            raise IndexerError(f"Workspace directory does not exist: {self._root}")
        self._extensions = frozenset(ext.lower() for ext in extensions)

    def scan(self) -> list[SourceFile]:
        """Walk the workspace and return its source files sorted by path."""
        results: list[SourceFile] = []
        try:
            for dirpath_str, dirnames, filenames in os.walk(self._root, topdown=True):
                dirpath = Path(dirpath_str)
                dirnames[:] = sorted(d for d in dirnames if not self._is_hidden(d))

                for fname in filenames:
                    if self._is_hidden(fname) or not self.is_source(Path(fname)):
                        continue
                    full = dirpath / fname
                    try:
                        mtime_ns = full.stat().st_mtime_ns
                    except OSError as exc:
                        console.print(f"[yellow]Warning[/yellow]: Skipping {full}: {exc}")
                        continue
                    results.append(SourceFile(full, path_to_uri(full), mtime_ns))
        except OSError as exc:
            raise IndexerError(f"Failed to scan workspace: {exc}") from exc

        results.sort(key=lambda sf: sf.path)
        return results

    def is_source(self, path: Path) -> bool:
        return path.suffix.lower() in self._extensions

    @staticmethod
    def _is_hidden(name: str) -> bool:
        return name.startswith(".")
