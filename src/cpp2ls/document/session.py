"""Per-document parse state and position queries.

A ``DocumentSession`` owns one file's text and its current / last-good
parse snapshots. Queries arrive in 0-based editor coordinates and are
answered from whichever snapshot is available, falling back to the
project index for names the document itself cannot resolve.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cpp2ls.document.completion import CompletionEngine
from cpp2ls.document.results import (
    CompletionItem,
    DiagnosticInfo,
    HoverInfo,
    Location,
    SignatureHelp,
)
from cpp2ls.document.snapshot import ParseSnapshot, SnapshotSlots
from cpp2ls.document.textscan import find_call_context, split_parameters
from cpp2ls.exceptions import FrontendError
from cpp2ls.frontend.adapter import Cpp2Frontend, FrontendAdapter
from cpp2ls.frontend.model import (
    AliasInfo,
    Declaration,
    Diagnostic,
    FunctionInfo,
    NamespaceInfo,
    ObjectInfo,
    Token,
    TypeInfo,
)
from cpp2ls.symbols import IndexedSymbol, SymbolKind
from cpp2ls.uris import uri_basename

if TYPE_CHECKING:
    from cpp2ls.indexer.index import ProjectIndex

_ROLE_NOTES = {
    "parameter": "*(parameter)*",
    "member": "*(member)*",
    "return": "*(return value)*",
}


class DocumentSession:
    """Parse state and queries for a single document.

    Usage::

        session = DocumentSession("file:///w/main.cpp2")
        session.update("main: () = { x := 1; }")
        hover = session.get_hover(0, 16)
    """

    def __init__(self, uri: str, frontend: FrontendAdapter | None = None) -> None:
        """Initialize an empty session.

        Args:
            uri: URI of the document.
            frontend: Front-end adapter. Defaults to ``Cpp2Frontend``.
        """
        self._uri = uri
        self._frontend: FrontendAdapter = frontend if frontend is not None else Cpp2Frontend()
        self._slots = SnapshotSlots()
        self._text = ""
        self._failure: Diagnostic | None = None

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def text(self) -> str:
        return self._text

    @property
    def current(self) -> ParseSnapshot | None:
        return self._slots.current

    @property
    def last_good(self) -> ParseSnapshot | None:
        return self._slots.last_good

    @property
    def is_valid(self) -> bool:
        """True when the latest update parsed without errors."""
        latest = self._slots.latest()
        return self._failure is None and latest is not None and not latest.result.has_errors

    # Updates

    def update(self, text: str) -> bool:
        """Re-analyze the document with new full text.

        Failures of the front-end never escape: they are recorded as one
        synthetic diagnostic and the existing snapshots stay as they were.

        Args:
            text: Complete new document text.

        Returns:
            True if the new snapshot was promoted to last-good.
        """
        self._text = text
        try:
            result = self._frontend.analyze(text)
        except (FrontendError, OSError) as exc:
            self._failure = Diagnostic(1, 1, str(exc))
            return False
        except Exception as exc:  # noqa: BLE001
            self._failure = Diagnostic(1, 1, f"Internal parser error: {exc}", is_internal=True)
            return False
        self._failure = None
        return self._slots.accept(ParseSnapshot(result))

    def diagnostics(self) -> list[DiagnosticInfo]:
        """Diagnostics of the latest update, 0-based.

        The generic fallback diagnostic is dropped whenever a more
        specific diagnostic exists.
        """
        if self._failure is not None:
            found = [self._failure]
        else:
            latest = self._slots.latest()
            found = list(latest.result.diagnostics) if latest is not None else []
        if any(not d.is_fallback for d in found):
            found = [d for d in found if not d.is_fallback]
        return [
            DiagnosticInfo(
                line=max(d.line - 1, 0),
                column=max(d.column - 1, 0),
                message=d.message,
                severity=d.severity,
                is_internal=d.is_internal,
            )
            for d in found
        ]

    def indexed_symbols(self) -> list[IndexedSymbol]:
        """File-scope declarations of the active snapshot as index symbols."""
        snapshot = self._slots.active()
        if snapshot is None:
            return []
        symbols: list[IndexedSymbol] = []
        for decl in snapshot.declarations:
            if not decl.is_global or not decl.name:
                continue
            signature = decl.kind.signature if isinstance(decl.kind, FunctionInfo) else ""
            symbols.append(
                IndexedSymbol(
                    name=decl.name,
                    kind=_symbol_kind(decl),
                    signature=signature,
                    file_uri=self._uri,
                    line=decl.line - 1,
                    column=decl.column - 1,
                )
            )
        return symbols

    def includes(self) -> tuple[str, ...]:
        """Raw include names of the most recent snapshot."""
        latest = self._slots.latest()
        return latest.result.includes if latest is not None else ()

    # Queries

    def get_hover(
        self, line: int, column: int, index: ProjectIndex | None = None
    ) -> HoverInfo | None:
        """Hover text for the identifier at a 0-based position."""
        found = self._identifier_at(line, column)
        if found is None:
            return None
        snapshot, token_index, tok = found
        start, end = tok.column - 1, tok.column - 1 + tok.length

        decl = snapshot.declaration_of(token_index)
        if decl is not None:
            contents = _hover_markdown(describe_declaration(decl), _role_note(decl))
            return HoverInfo(contents, tok.line - 1, start, tok.line - 1, end, self._uri)

        sym = self._resolve_in_index(tok.text, index)
        if sym is None:
            return None
        note = f"*from {uri_basename(sym.file_uri)}*" if sym.file_uri != self._uri else ""
        contents = _hover_markdown(describe_symbol(sym), note)
        return HoverInfo(contents, tok.line - 1, start, tok.line - 1, end, sym.file_uri)

    def get_definition(
        self, line: int, column: int, index: ProjectIndex | None = None
    ) -> Location | None:
        """Declaration site of the identifier at a 0-based position."""
        found = self._identifier_at(line, column)
        if found is None:
            return None
        snapshot, token_index, tok = found
        decl = snapshot.declaration_of(token_index)
        if decl is not None:
            return Location(self._uri, decl.line - 1, decl.column - 1)
        sym = self._resolve_in_index(tok.text, index)
        if sym is None:
            return None
        return Location(sym.file_uri, sym.line, sym.column)

    def get_references(
        self,
        line: int,
        column: int,
        include_declaration: bool = True,
        index: ProjectIndex | None = None,
    ) -> list[Location]:
        """Same-file occurrences of the entity at a 0-based position.

        Occurrences are matched by resolved declaration, never by name, so
        a shadowing local does not pick up uses of the outer entity. Names
        that only the index knows yield their unresolved same-file uses
        plus the index declaration site.
        """
        found = self._identifier_at(line, column)
        if found is None:
            return []
        snapshot, token_index, tok = found

        decl = snapshot.declaration_of(token_index)
        if decl is not None:
            return [
                Location(self._uri, ref.line - 1, ref.column - 1)
                for _, ref in snapshot.references_to(decl.id)
                if include_declaration or (ref.line, ref.column) != decl.position
            ]

        sym = self._resolve_in_index(tok.text, index)
        if sym is None:
            return []
        locations: list[Location] = []
        if include_declaration:
            locations.append(Location(sym.file_uri, sym.line, sym.column))
        for i, other in enumerate(snapshot.tokens):
            if other.text == tok.text and snapshot.declaration_of(i) is None:
                locations.append(Location(self._uri, other.line - 1, other.column - 1))
        return locations

    def get_completions(
        self, line: int, column: int, index: ProjectIndex | None = None
    ) -> list[CompletionItem]:
        """Completion items at a 0-based position."""
        active = self._slots.active()
        if active is None:
            return []
        engine = CompletionEngine(active, self._slots.latest(), self._text, index)
        return engine.complete(line, column)

    def get_signature_help(
        self, line: int, column: int, index: ProjectIndex | None = None
    ) -> SignatureHelp | None:
        """Signature of the call whose argument list contains the cursor."""
        snapshot = self._slots.active()
        if snapshot is None:
            return None
        call = find_call_context(self._text, line, column)
        if call is None:
            return None

        func = self._callee_declaration(snapshot, call.callee, call.line, call.column)
        if func is not None and isinstance(func.kind, FunctionInfo):
            labels = tuple(p.label for p in func.kind.parameters)
            return SignatureHelp(func.kind.signature, labels, call.active_parameter)

        sym = self._resolve_in_index(call.callee, index, functions_only=True)
        if sym is None:
            return None
        return SignatureHelp(sym.signature, split_parameters(sym.signature), call.active_parameter)

    # Helpers

    def _identifier_at(self, line: int, column: int) -> tuple[ParseSnapshot, int, Token] | None:
        snapshot = self._slots.active()
        if snapshot is None:
            return None
        found = snapshot.token_at(line + 1, column + 1)
        if found is None:
            return None
        token_index, tok = found
        if not (tok.is_identifier or tok.text == "this"):
            return None
        return snapshot, token_index, tok

    @staticmethod
    def _callee_declaration(
        snapshot: ParseSnapshot, callee: str, line: int, column: int
    ) -> Declaration | None:
        """Resolve a callee through the front-end, else by name in the file."""
        found = snapshot.token_at(line + 1, column + 1)
        if found is not None and found[1].text == callee:
            decl = snapshot.declaration_of(found[0])
            if decl is not None and decl.is_function:
                return decl
        for decl in snapshot.declarations:
            if decl.name == callee and decl.is_function:
                return decl
        return None

    def _resolve_in_index(
        self, name: str, index: ProjectIndex | None, *, functions_only: bool = False
    ) -> IndexedSymbol | None:
        if index is None:
            return None
        return index.resolve(name, self._uri, functions_only=functions_only)


def _symbol_kind(decl: Declaration) -> SymbolKind:
    match decl.kind:
        case FunctionInfo():
            return SymbolKind.FUNCTION
        case TypeInfo():
            return SymbolKind.TYPE
        case NamespaceInfo():
            return SymbolKind.NAMESPACE
        case ObjectInfo():
            return SymbolKind.VARIABLE
        case AliasInfo():
            return SymbolKind.ALIAS


def describe_declaration(decl: Declaration) -> str:
    """Cpp2 source text summarizing a declaration."""
    name = decl.name or "_"
    match decl.kind:
        case FunctionInfo(signature=signature):
            return signature
        case ObjectInfo() as info:
            return f"{name}: {info.static_type or '_'}"
        case TypeInfo(metafunctions=metas) if metas:
            return f"{name}: {' '.join('@' + m for m in metas)} type"
        case TypeInfo():
            return f"{name}: type"
        case NamespaceInfo():
            return f"{name}: namespace"
        case AliasInfo(alias_of="object", target=target):
            return f"{name} == {target}"
        case AliasInfo(alias_of=alias_of, target=target):
            return f"{name}: {alias_of} == {target}"


def describe_symbol(sym: IndexedSymbol) -> str:
    """Cpp2 source text summarizing an index symbol."""
    match sym.kind:
        case SymbolKind.FUNCTION:
            return sym.signature or f"{sym.name}: ()"
        case SymbolKind.TYPE:
            return f"{sym.name}: type"
        case SymbolKind.NAMESPACE:
            return f"{sym.name}: namespace"
        case SymbolKind.ALIAS:
            return f"{sym.name}: alias"
        case SymbolKind.VARIABLE:
            return sym.name


def _role_note(decl: Declaration) -> str:
    match decl.kind:
        case ObjectInfo(role=role):
            return _ROLE_NOTES.get(role, "")
        case _:
            return ""


def _hover_markdown(code: str, note: str = "") -> str:
    text = f"```cpp2\n{code}\n```"
    return f"{text}\n{note}" if note else text
