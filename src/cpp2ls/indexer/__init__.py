"""Project index: workspace scanning, symbol lookup, include graph and cache."""

from __future__ import annotations

from cpp2ls.indexer.cache import INDEX_VERSION, read_cache, write_cache
from cpp2ls.indexer.graph import DependencyGraph
from cpp2ls.indexer.index import ProjectIndex
from cpp2ls.indexer.scanner import FileScanner, SourceFile
from cpp2ls.symbols import FileRecord, IndexedSymbol, SymbolKind

__all__ = [
    "INDEX_VERSION",
    "DependencyGraph",
    "FileRecord",
    "FileScanner",
    "IndexedSymbol",
    "ProjectIndex",
    "SourceFile",
    "SymbolKind",
    "read_cache",
    "write_cache",
]
