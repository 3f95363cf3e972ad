"""Document sessions: parse snapshots, position queries and completion."""

from __future__ import annotations

from cpp2ls.document.completion import CompletionEngine
from cpp2ls.document.results import (
    CompletionItem,
    CompletionKind,
    DiagnosticInfo,
    HoverInfo,
    Location,
    SignatureHelp,
)
from cpp2ls.document.session import DocumentSession
from cpp2ls.document.snapshot import ParseSnapshot, SnapshotSlots

__all__ = [
    "CompletionEngine",
    "CompletionItem",
    "CompletionKind",
    "DiagnosticInfo",
    "DocumentSession",
    "HoverInfo",
    "Location",
    "ParseSnapshot",
    "SignatureHelp",
    "SnapshotSlots",
]
