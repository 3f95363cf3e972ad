"""Completion engine for one document.

Two mutually exclusive modes, chosen from the text just before the cursor:

- member access (``obj.``, ``obj..``, ``obj->``): members of the object's
  static type, plus for ``.`` the free functions whose first parameter
  has that type (unified function call syntax)
- general: declarations visible at the cursor, then project index
  symbols, then keywords

Both modes deduplicate by bare name, first writer wins. A function and an
unrelated type that share a name therefore collapse into one item; this
is a known limitation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cpp2ls.document.results import CompletionItem, CompletionKind
from cpp2ls.document.snapshot import ParseSnapshot
from cpp2ls.document.textscan import AccessContext, find_access_context, first_parameter_type
from cpp2ls.frontend.model import (
    ACCESSORS,
    AliasInfo,
    Declaration,
    FunctionInfo,
    NamespaceInfo,
    ObjectInfo,
    TypeInfo,
)
from cpp2ls.frontend.parser import Parser, exact_type_name
from cpp2ls.symbols import IndexedSymbol, SymbolKind

if TYPE_CHECKING:
    from cpp2ls.indexer.index import ProjectIndex

KEYWORD_SNIPPETS: tuple[tuple[str, str], ...] = (
    ("if", "if () { }"),
    ("else", "else { }"),
    ("while", "while () { }"),
    ("for", "for  do { }"),
    ("do", "do { } while ();"),
    ("return", "return"),
    ("break", "break"),
    ("continue", "continue"),
    ("in", "in"),
    ("out", "out"),
    ("inout", "inout"),
    ("copy", "copy"),
    ("move", "move"),
    ("forward", "forward"),
    ("type", "type"),
    ("namespace", "namespace"),
    ("true", "true"),
    ("false", "false"),
    ("nullptr", "nullptr"),
    ("this", "this"),
    ("that", "that"),
    ("inspect", "inspect"),
    ("is", "is"),
    ("as", "as"),
    ("throws", "throws"),
    ("pre", "pre"),
    ("post", "post"),
    ("assert", "assert"),
    ("public", "public"),
    ("protected", "protected"),
    ("private", "private"),
    ("virtual", "virtual"),
    ("override", "override"),
    ("final", "final"),
    ("implicit", "implicit"),
)


@dataclass(frozen=True, slots=True)
class FunctionScope:
    """Line span of a function body, used to find the cursor's function."""

    decl: Declaration
    start_line: int
    end_line: int | None
    depth: int

    def contains(self, line: int) -> bool:
        if line < self.start_line:
            return False
        return self.end_line is None or line <= self.end_line


def function_scopes(declarations: tuple[Declaration, ...]) -> list[FunctionScope]:
    scopes: list[FunctionScope] = []
    for decl in declarations:
        match decl.kind:
            case FunctionInfo(body_end_line=end):
                scopes.append(FunctionScope(decl, decl.line, end, decl.depth))
    return scopes


def innermost_function(declarations: tuple[Declaration, ...], line: int) -> Declaration | None:
    """Innermost function whose span contains the 1-based line.

    Greatest nesting depth wins; ties go to the latest start line.
    """
    candidates = [fs for fs in function_scopes(declarations) if fs.contains(line)]
    if not candidates:
        return None
    best = max(candidates, key=lambda fs: (fs.depth, fs.start_line))
    return best.decl


class CompletionEngine:
    """Computes completion items for one request.

    Args:
        snapshot: Snapshot that serves declarations (may be stale).
        live: Snapshot from the latest edit, used for accessor detection.
        text: Latest document text.
        index: Project index for cross-file symbols, if any.
    """

    def __init__(
        self,
        snapshot: ParseSnapshot | None,
        live: ParseSnapshot | None,
        text: str,
        index: ProjectIndex | None,
    ) -> None:
        self._snapshot = snapshot
        self._live = live
        self._text = text
        self._index = index

    def complete(self, line: int, column: int) -> list[CompletionItem]:
        """Completion items at a 0-based position."""
        access = self.detect_access(line, column)
        if access is not None:
            return self._member_completions(access, line + 1, column + 1)
        return self._general_completions(line + 1)

    # Mode detection

    def detect_access(self, line: int, column: int) -> AccessContext | None:
        """Find ``obj<accessor>`` before the cursor.

        Tokens from the latest edit are tried first; if they yield nothing
        the raw line text is scanned instead.
        """
        found = self._access_from_tokens(line + 1, column + 1)
        if found is not None:
            return found
        return find_access_context(self._text, line, column)

    def _access_from_tokens(self, line: int, column: int) -> AccessContext | None:
        snapshot = self._live
        if snapshot is None:
            return None
        before = [
            (i, tok)
            for i, tok in enumerate(snapshot.tokens)
            if tok.line == line and tok.column + tok.length <= column
        ]
        if not before:
            return None
        index, last = before[-1]
        prefix = ""
        if last.is_identifier and index >= 1 and snapshot.tokens[index - 1].text in ACCESSORS:
            prefix = last.text
            index -= 1
            last = snapshot.tokens[index]
        if last.text not in ACCESSORS or index < 1:
            return None
        obj = snapshot.tokens[index - 1]
        if not (obj.is_identifier or obj.text == "this"):
            return None
        return AccessContext(obj.text, last.text, prefix)

    # Member-access mode

    def _member_completions(
        self, access: AccessContext, line: int, column: int
    ) -> list[CompletionItem]:
        located = self._object_type(access.object_name, line, column)
        if located is None:
            return []
        snapshot, type_decl, type_name = located

        items: list[CompletionItem] = []
        seen: set[str] = set()

        def add(item: CompletionItem) -> None:
            if item.label not in seen:
                seen.add(item.label)
                items.append(item)

        if type_decl is not None:
            for member in snapshot.result.children(type_decl.id):
                item = _member_item(member)
                if item is not None:
                    add(item)

        if access.accessor == ".":
            wanted = exact_type_name(type_name)
            for decl in snapshot.declarations:
                if self._is_ufcs_candidate(snapshot, decl, wanted):
                    add(_declaration_item(decl))
            if self._index is not None:
                for sym in self._index.all_symbols():
                    if (
                        sym.kind is SymbolKind.FUNCTION
                        and exact_type_name(first_parameter_type(sym.signature)) == wanted
                    ):
                        add(_symbol_item(sym))
        return items

    def _object_type(
        self, name: str, line: int, column: int
    ) -> tuple[ParseSnapshot, Declaration | None, str] | None:
        """Static type of the object named before the accessor.

        Returns the snapshot used, the type declaration (if found in that
        snapshot) and the printable type name.
        """
        for snapshot in self._tables():
            if name == "this":
                func = innermost_function(snapshot.declarations, line)
                owner = snapshot.result.declaration(func.parent) if func is not None else None
                if owner is not None and owner.is_type:
                    return snapshot, owner, owner.name or ""
                continue

            nearest = _nearest_declaration(snapshot.declarations, name, line, column)
            if nearest is None:
                continue
            match nearest.kind:
                case ObjectInfo() as info:
                    type_name = info.static_type
                case _:
                    continue
            if not type_name:
                continue
            return snapshot, Parser.find_type(snapshot.declarations, type_name), type_name
        return None

    def _tables(self) -> list[ParseSnapshot]:
        tables: list[ParseSnapshot] = []
        for snapshot in (self._live, self._snapshot):
            if snapshot is not None and all(snapshot is not t for t in tables):
                tables.append(snapshot)
        return tables

    @staticmethod
    def _is_ufcs_candidate(snapshot: ParseSnapshot, decl: Declaration, wanted: str) -> bool:
        match decl.kind:
            case FunctionInfo(parameters=params, is_member=False) if params:
                owner = snapshot.result.declaration(decl.parent)
                if owner is not None and owner.is_type:
                    return False
                return exact_type_name(params[0].type_name) == wanted
            case _:
                return False

    # General mode

    def _general_completions(self, line: int) -> list[CompletionItem]:
        items: list[CompletionItem] = []
        seen: set[str] = set()

        snapshot = self._snapshot
        if snapshot is not None:
            containing = innermost_function(snapshot.declarations, line)
            for decl in snapshot.declarations:
                if not decl.name or decl.name in seen:
                    continue
                if not self._is_visible(snapshot, decl, line, containing):
                    continue
                seen.add(decl.name)
                items.append(_declaration_item(decl))

        if self._index is not None:
            for sym in self._index.all_symbols():
                if sym.name in seen:
                    continue
                seen.add(sym.name)
                items.append(_symbol_item(sym))

        for keyword, detail in KEYWORD_SNIPPETS:
            if keyword not in seen:
                items.append(CompletionItem(keyword, CompletionKind.KEYWORD, detail))
        return items

    @staticmethod
    def _is_visible(
        snapshot: ParseSnapshot,
        decl: Declaration,
        line: int,
        containing: Declaration | None,
    ) -> bool:
        match decl.kind:
            case FunctionInfo() | TypeInfo() | NamespaceInfo():
                # file-scope entities may be referenced before their declaration
                return decl.is_global
            case ObjectInfo():
                if decl.line > line:
                    return False
                if containing is None:
                    return decl.is_global
                return snapshot.result.belongs_to(decl, containing.id)
            case AliasInfo():
                return False


def _nearest_declaration(
    declarations: tuple[Declaration, ...], name: str, line: int, column: int
) -> Declaration | None:
    nearest: Declaration | None = None
    for decl in declarations:
        if decl.name != name or decl.position >= (line, column):
            continue
        if nearest is None or decl.position > nearest.position:
            nearest = decl
    return nearest


def _declaration_item(decl: Declaration) -> CompletionItem:
    name = decl.name or ""
    match decl.kind:
        case FunctionInfo(signature=signature):
            return CompletionItem(name, CompletionKind.FUNCTION, signature, f"{name}(")
        case ObjectInfo(role="parameter" | "return", type_name=type_name):
            return CompletionItem(name, CompletionKind.PARAMETER, f"(parameter) {type_name}")
        case ObjectInfo(role="member", type_name=type_name):
            return CompletionItem(name, CompletionKind.FIELD, type_name)
        case ObjectInfo(type_name=type_name):
            return CompletionItem(name, CompletionKind.VARIABLE, type_name)
        case TypeInfo():
            return CompletionItem(name, CompletionKind.TYPE, "type")
        case NamespaceInfo():
            return CompletionItem(name, CompletionKind.NAMESPACE, "namespace")
        case AliasInfo(alias_of=alias_of):
            return CompletionItem(name, CompletionKind.TYPE, f"{alias_of} alias")


def _member_item(decl: Declaration) -> CompletionItem | None:
    if not decl.name:
        return None
    return _declaration_item(decl)


def _symbol_item(sym: IndexedSymbol) -> CompletionItem:
    match sym.kind:
        case SymbolKind.FUNCTION:
            return CompletionItem(sym.name, CompletionKind.FUNCTION, sym.signature, f"{sym.name}(")
        case SymbolKind.TYPE:
            return CompletionItem(sym.name, CompletionKind.TYPE, "type")
        case SymbolKind.NAMESPACE:
            return CompletionItem(sym.name, CompletionKind.NAMESPACE, "namespace")
        case SymbolKind.VARIABLE:
            return CompletionItem(sym.name, CompletionKind.VARIABLE, "variable")
        case SymbolKind.ALIAS:
            return CompletionItem(sym.name, CompletionKind.TYPE, "alias")
