"""Project-wide symbol index with disk-backed persistence."""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any

from rich.console import Console

from cpp2ls.config import ServerConfig
from cpp2ls.document.session import DocumentSession
from cpp2ls.frontend.adapter import Cpp2Frontend, FrontendAdapter
from cpp2ls.indexer.cache import dump_snapshot, read_cache, write_cache
from cpp2ls.indexer.graph import DependencyGraph
from cpp2ls.indexer.scanner import FileScanner, SourceFile
from cpp2ls.symbols import FileRecord, IndexedSymbol, SymbolKind
from cpp2ls.uris import uri_to_path

console = Console(stderr=True)


class ProjectIndex:
    """File-scope symbols of every workspace file, looked up by name.

    Each file owns one ``FileRecord`` that is replaced wholesale on
    re-index. The name map is rebuilt in full from the records after any
    change; lookups only read it.

    Usage::

        index = ProjectIndex(load_config(Path("/w")))
        if not index.load_from_cache():
            index.scan_and_index()
        index.lookup("add")
    """

    def __init__(self, config: ServerConfig, frontend: FrontendAdapter | None = None) -> None:
        """Initialize an empty index.

        Args:
            config: Server configuration (workspace root, extensions, cache).
            frontend: Front-end used to index files from disk.
        """
        self._config = config
        self._frontend: FrontendAdapter = frontend if frontend is not None else Cpp2Frontend()
        self._files: dict[str, FileRecord] = {}
        self._names: dict[str, list[IndexedSymbol]] = {}
        self._all: list[IndexedSymbol] = []
        self._dirty = False
        self.graph = DependencyGraph(config.workspace_root, config.header_extension)

    @property
    def is_dirty(self) -> bool:
        """True if records changed since the last cache load or save."""
        return self._dirty

    # Mutation

    def update_file(
        self, uri: str, symbols: Iterable[IndexedSymbol], includes: Iterable[str] = ()
    ) -> FileRecord:
        """Replace uri's record with symbols from an in-memory document.

        The record's mtime is set to now, so an older on-disk copy is not
        re-read by the next scan.

        Args:
            uri: File URI.
            symbols: File-scope symbols of the document.
            includes: Raw include names of the document.

        Returns:
            The new record.
        """
        targets = self.graph.update(uri, includes)
        record = FileRecord(uri, time.time_ns(), list(symbols), targets)
        self._files[uri] = record
        self._changed()
        return record

    def remove_file(self, uri: str) -> None:
        """Forget uri's record and outgoing include edges."""
        if self._files.pop(uri, None) is None:
            return
        self.graph.remove(uri)
        self._changed()

    def scan_and_index(self) -> bool:
        """Bring the index up to date with the workspace on disk.

        Files are re-read only when their modification time is strictly
        newer than the recorded one. Records of files that no longer
        exist are dropped.

        Returns:
            True if any record was added, replaced or removed.

        Raises:
            IndexerError: If the workspace cannot be walked.
        """
        root = self._config.workspace_root
        console.print(f"[bold blue]Indexer[/bold blue] scanning {root}...")
        scanner = FileScanner(root, self._config.source_extensions)

        reindexed = 0
        for source in scanner.scan():
            if self.needs_reindex(source.uri, source.mtime_ns) and self._index_from_disk(source):
                reindexed += 1

        missing = [uri for uri in self._files if not uri_to_path(uri).is_file()]
        for uri in missing:
            del self._files[uri]
            self.graph.remove(uri)

        changed = bool(reindexed or missing)
        if changed:
            self._changed()
        console.print(
            f"[green]Indexer[/green] indexed [bold]{len(self._all)}[/bold] symbols across "
            f"[bold]{len(self._files)}[/bold] files ({reindexed} updated, {len(missing)} removed)"
        )
        return changed

    def needs_reindex(self, uri: str, mtime_ns: int | None = None) -> bool:
        """True if the on-disk file is newer than its record (or unrecorded).

        Args:
            uri: File URI.
            mtime_ns: Known modification time; read from disk when omitted.
        """
        if mtime_ns is None:
            try:
                mtime_ns = uri_to_path(uri).stat().st_mtime_ns
            except OSError:
                return False
        record = self._files.get(uri)
        return record is None or mtime_ns > record.mtime_ns

    def _index_from_disk(self, source: SourceFile) -> bool:
        try:
            text = source.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            console.print(f"[yellow]Warning[/yellow]: Skipping {source.path}: {exc}")
            return False
        session = DocumentSession(source.uri, self._frontend)
        session.update(text)
        targets = self.graph.update(source.uri, session.includes())
        self._files[source.uri] = FileRecord(
            source.uri, source.mtime_ns, session.indexed_symbols(), targets
        )
        return True

    def _changed(self) -> None:
        self._rebuild()
        self._dirty = True

    def _rebuild(self) -> None:
        """Recompute the name map from scratch."""
        names: dict[str, list[IndexedSymbol]] = {}
        everything: list[IndexedSymbol] = []
        for uri in sorted(self._files):
            for sym in self._files[uri].symbols:
                names.setdefault(sym.name, []).append(sym)
                everything.append(sym)
        self._names = names
        self._all = everything

    # Queries

    def lookup(self, name: str) -> list[IndexedSymbol]:
        """All symbols with this name, ordered by file URI."""
        return list(self._names.get(name, ()))

    def lookup_function(self, name: str) -> IndexedSymbol | None:
        """First function symbol with this name."""
        for sym in self._names.get(name, ()):
            if sym.kind is SymbolKind.FUNCTION:
                return sym
        return None

    def resolve(
        self, name: str, from_uri: str, *, functions_only: bool = False
    ) -> IndexedSymbol | None:
        """Pick the symbol a name in from_uri most likely refers to.

        Preference: a symbol of from_uri itself, then one from a file that
        from_uri includes directly, then the first match anywhere.
        """
        candidates = [
            sym
            for sym in self._names.get(name, ())
            if not functions_only or sym.kind is SymbolKind.FUNCTION
        ]
        if not candidates:
            return None
        includes = self.graph.dependencies(from_uri)
        for wanted in ({from_uri}, includes):
            for sym in candidates:
                if sym.file_uri in wanted:
                    return sym
        return candidates[0]

    def all_symbols(self) -> list[IndexedSymbol]:
        return list(self._all)

    def files(self) -> list[FileRecord]:
        return [self._files[uri] for uri in sorted(self._files)]

    def get_file(self, uri: str) -> FileRecord | None:
        return self._files.get(uri)

    # Persistence

    def snapshot(self) -> dict[str, Any]:
        """Serializable projection of every record."""
        return dump_snapshot(self.files())

    def matches(self, snapshot: dict[str, Any]) -> bool:
        """True if snapshot covers exactly the live (uri, mtime) pairs."""
        theirs = {(f.get("uri"), f.get("mtime")) for f in snapshot.get("files", [])}
        ours = {(r.uri, r.mtime_ns) for r in self._files.values()}
        return theirs == ours

    def load_from_cache(self) -> bool:
        """Replace all records with the cached ones.

        Returns:
            False (leaving the index untouched) when caching is disabled or
            the cache is missing, malformed or of another version.
        """
        if not self._config.cache_enabled:
            return False
        records = read_cache(self._config.cache_path)
        if records is None:
            console.print("[dim]Indexer: no usable cache, full scan required[/dim]")
            return False
        self._files = {r.uri: r for r in records}
        self.graph = DependencyGraph(self._config.workspace_root, self._config.header_extension)
        for record in records:
            self.graph.set_edges(record.uri, record.direct_includes)
        self._rebuild()
        self._dirty = False
        console.print(
            f"[green]Indexer[/green] loaded [bold]{len(self._files)}[/bold] files from cache"
        )
        return True

    def save_to_cache(self) -> bool:
        """Write the records to disk if they changed.

        Returns:
            True if the cache file was written.

        Raises:
            CacheError: If the cache file cannot be written.
        """
        if not self._config.cache_enabled or not self._dirty:
            return False
        write_cache(self._config.cache_path, self.files())
        self._dirty = False
        return True
