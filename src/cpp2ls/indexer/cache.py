"""On-disk persistence of the project index.

Wire format (JSON)::

    {"version": "2",
     "files": [{"uri": "...", "mtime": <ns>, "includes": ["<uri>", ...],
                "symbols": [{"name": "...", "kind": "function",
                             "signature": "...", "line": 0, "column": 0}]}]}

``includes`` is optional. A cache whose version differs from
``INDEX_VERSION`` is never read; the caller rescans instead.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from cpp2ls.exceptions import CacheError
from cpp2ls.symbols import FileRecord, IndexedSymbol, SymbolKind

INDEX_VERSION = "2"


def dump_snapshot(records: list[FileRecord]) -> dict[str, Any]:
    """Project file records onto the cache schema."""
    files: list[dict[str, Any]] = []
    for record in sorted(records, key=lambda r: r.uri):
        entry: dict[str, Any] = {
            "uri": record.uri,
            "mtime": record.mtime_ns,
            "symbols": [
                {
                    "name": sym.name,
                    "kind": sym.kind.value,
                    "signature": sym.signature,
                    "line": sym.line,
                    "column": sym.column,
                }
                for sym in record.symbols
            ],
        }
        if record.direct_includes:
            entry["includes"] = sorted(record.direct_includes)
        files.append(entry)
    return {"version": INDEX_VERSION, "files": files}


def load_snapshot(data: Any) -> list[FileRecord] | None:
    """Rebuild file records from cache data.

    Returns:
        The records, or None if the data has a foreign version or does
        not follow the schema.
    """
    if not isinstance(data, dict) or data.get("version") != INDEX_VERSION:
        return None
    try:
        records: list[FileRecord] = []
        for entry in data.get("files", []):
            uri = str(entry["uri"])
            symbols = [
                IndexedSymbol(
                    name=str(s["name"]),
                    kind=SymbolKind.parse(str(s.get("kind", ""))),
                    signature=str(s.get("signature") or ""),
                    file_uri=uri,
                    line=int(s["line"]),
                    column=int(s["column"]),
                )
                for s in entry.get("symbols", [])
            ]
            records.append(
                FileRecord(
                    uri=uri,
                    mtime_ns=int(entry["mtime"]),
                    symbols=symbols,
                    direct_includes={str(i) for i in entry.get("includes", [])},
                )
            )
    except (KeyError, TypeError, ValueError):
        return None
    return records


def read_cache(path: Path) -> list[FileRecord] | None:
    """Read the cache file; None when it is missing, malformed or foreign."""
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        return None
    return load_snapshot(data)


def write_cache(path: Path, records: list[FileRecord]) -> None:
    """Serialize records to path.

    Raises:
        CacheError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(dump_snapshot(records), indent=2, ensure_ascii=False), encoding="utf-8"
        )
    except OSError as exc:
        raise CacheError(f"Cannot write index cache: {exc}") from exc
