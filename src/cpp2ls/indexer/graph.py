"""Direct-include dependency graph between workspace files."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from cpp2ls.uris import path_to_uri, uri_to_path


class DependencyGraph:
    """Forward (includes) and reverse (included-by) edges keyed by file URI.

    ``reverse`` is kept as the exact inverse of ``forward`` by every
    mutation. Only direct edges are stored; nothing here walks more than
    one hop, so include cycles are harmless.

    Usage::

        graph = DependencyGraph(Path("/w"))
        graph.update("file:///w/main.cpp2", ["utils.h2"])
        graph.dependents("file:///w/utils.h2")  # {"file:///w/main.cpp2"}
    """

    def __init__(self, workspace_root: Path, header_extension: str = ".h2") -> None:
        self._root = workspace_root
        self._header_extension = header_extension
        self._forward: dict[str, set[str]] = {}
        self._reverse: dict[str, set[str]] = {}

    @property
    def forward(self) -> Mapping[str, frozenset[str]]:
        return {uri: frozenset(targets) for uri, targets in self._forward.items()}

    @property
    def reverse(self) -> Mapping[str, frozenset[str]]:
        return {uri: frozenset(sources) for uri, sources in self._reverse.items()}

    def resolve_include(self, name: str, from_uri: str) -> str | None:
        """Resolve an include name to the URI of an existing file.

        Tries the including file's directory, then the workspace root, and
        repeats both with the header extension appended when the name has
        no extension. First existing file wins.

        Returns:
            The file URI, or None when nothing matches.
        """
        base_dir = uri_to_path(from_uri).parent
        candidates = [base_dir / name, self._root / name]
        if not PurePosixPath(name).suffix:
            with_ext = name + self._header_extension
            candidates += [base_dir / with_ext, self._root / with_ext]
        for candidate in candidates:
            if candidate.is_file():
                return path_to_uri(candidate.resolve())
        return None

    def update(self, uri: str, include_names: Iterable[str]) -> set[str]:
        """Recompute uri's forward edges from its raw include names.

        Unresolved names produce no edge.

        Returns:
            The resolved target URIs.
        """
        targets: set[str] = set()
        for name in include_names:
            resolved = self.resolve_include(name, uri)
            if resolved is not None and resolved != uri:
                targets.add(resolved)
        self.set_edges(uri, targets)
        return targets

    def set_edges(self, uri: str, targets: Iterable[str]) -> None:
        """Replace uri's forward edges with already-resolved targets."""
        for old in self._forward.pop(uri, set()):
            sources = self._reverse.get(old)
            if sources is not None:
                sources.discard(uri)
                if not sources:
                    del self._reverse[old]
        new_targets = set(targets)
        if new_targets:
            self._forward[uri] = new_targets
        for target in new_targets:
            self._reverse.setdefault(target, set()).add(uri)

    def remove(self, uri: str) -> None:
        """Drop uri's outgoing edges. Incoming edges stay, their owners still include it."""
        self.set_edges(uri, ())

    def dependents(self, uri: str) -> set[str]:
        """Files that directly include uri."""
        return set(self._reverse.get(uri, ()))

    def dependencies(self, uri: str) -> set[str]:
        """Files that uri directly includes."""
        return set(self._forward.get(uri, ()))
