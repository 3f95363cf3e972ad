"""Project-wide symbol records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SymbolKind(str, Enum):
    """Kind of a file-scope symbol; values are the cache wire names."""

    FUNCTION = "function"
    TYPE = "type"
    NAMESPACE = "namespace"
    VARIABLE = "variable"
    ALIAS = "alias"

    @classmethod
    def parse(cls, value: str) -> SymbolKind:
        """Map a wire name to a kind; unknown names read as functions."""
        try:
            return cls(value)
        except ValueError:
            return cls.FUNCTION


@dataclass(frozen=True, slots=True)
class IndexedSymbol:
    """A file-scope declaration known to the project index.

    Attributes:
        name: Declared name.
        kind: Symbol kind.
        signature: Printable signature (functions only, else empty).
        file_uri: URI of the owning file.
        line: 0-based line of the name.
        column: 0-based column of the name.
    """

    name: str
    kind: SymbolKind
    signature: str = ""
    file_uri: str = ""
    line: int = 0
    column: int = 0


@dataclass
class FileRecord:
    """Everything the index knows about one file.

    Replaced wholesale on every re-index, never merged.

    Attributes:
        uri: File URI.
        mtime_ns: Modification time in nanoseconds since the epoch.
        symbols: File-scope symbols, in source order.
        direct_includes: URIs of the files this file includes directly.
    """

    uri: str
    mtime_ns: int
    symbols: list[IndexedSymbol] = field(default_factory=list)
    direct_includes: set[str] = field(default_factory=set)
