"""Data produced by the Cpp2 front-end: tokens, declarations, diagnostics.

All positions in this module are 1-based, as reported by the front-end.
Conversion to the 0-based editor space happens in the document session.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Literal

TokenKind = Literal["identifier", "keyword", "number", "string", "punctuator"]
ObjectRole = Literal["global", "local", "member", "parameter", "return"]
AliasOf = Literal["type", "namespace", "object"]
Severity = Literal["error", "warning"]

ACCESSORS: frozenset[str] = frozenset({".", "..", "->"})


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexed token.

    Attributes:
        text: Source text of the token.
        line: 1-based line number.
        column: 1-based column of the first character.
        kind: Lexical category.
    """

    text: str
    line: int
    column: int
    kind: TokenKind

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def is_identifier(self) -> bool:
        return self.kind == "identifier"

    def contains(self, line: int, column: int) -> bool:
        """Return True if the 1-based point lies inside this token."""
        return line == self.line and self.column <= column < self.column + self.length


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A problem found while lexing, parsing or resolving.

    Attributes:
        line: 1-based line number.
        column: 1-based column number.
        message: Human-readable description.
        severity: "error" or "warning".
        is_internal: True for failures of the front-end itself.
        is_fallback: True for the generic low-value diagnostic that is
            suppressed when a more specific one exists.
    """

    line: int
    column: int
    message: str
    severity: Severity = "error"
    is_internal: bool = False
    is_fallback: bool = False


@dataclass(frozen=True, slots=True)
class Parameter:
    """A declared function parameter."""

    name: str
    type_name: str
    passing: str | None = None

    @property
    def label(self) -> str:
        prefix = f"{self.passing} " if self.passing else ""
        return f"{prefix}{self.name}: {self.type_name}"


# Declaration kinds. Exactly one of these is attached to every declaration
# and consumers dispatch on it with ``match``.


@dataclass(frozen=True, slots=True)
class FunctionInfo:
    """Payload of a function declaration.

    Attributes:
        signature: Printable signature, e.g. ``add: (x: int, y: int) -> int``.
        parameters: Declared parameters, excluding ``this``.
        return_type: Printable return type, empty when none is declared.
        body_end_line: Closing-brace line of a block body, terminating-``;``
            line of an expression body, or None when no body was parsed.
        is_member: True when the function takes a ``this`` parameter.
    """

    signature: str
    parameters: tuple[Parameter, ...] = ()
    return_type: str = ""
    body_end_line: int | None = None
    is_member: bool = False


@dataclass(frozen=True, slots=True)
class ObjectInfo:
    """Payload of an object (variable, parameter, member) declaration."""

    type_name: str
    role: ObjectRole = "local"
    initializer_head: str | None = None

    @property
    def static_type(self) -> str:
        """Declared type, or the constructor name of a deduced initializer."""
        if self.type_name and self.type_name != "_":
            return self.type_name
        return self.initializer_head or ""


@dataclass(frozen=True, slots=True)
class TypeInfo:
    """Payload of a user-defined type declaration."""

    metafunctions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NamespaceInfo:
    """Payload of a namespace declaration."""


@dataclass(frozen=True, slots=True)
class AliasInfo:
    """Payload of a type, namespace or object alias (``==`` declarations)."""

    alias_of: AliasOf
    target: str


DeclarationKind = FunctionInfo | ObjectInfo | TypeInfo | NamespaceInfo | AliasInfo


@dataclass(frozen=True, slots=True)
class Declaration:
    """One entry of the declaration arena.

    Attributes:
        id: Index of this declaration in ``ParseResult.declarations``.
        name: Declared name, or None for unnamed declarations.
        line: 1-based line of the name.
        column: 1-based column of the name.
        kind: Per-kind payload.
        parent: Id of the enclosing declaration, None at file scope.
        depth: Number of enclosing declarations.
    """

    id: int
    name: str | None
    line: int
    column: int
    kind: DeclarationKind
    parent: int | None = None
    depth: int = 0

    @property
    def is_function(self) -> bool:
        return isinstance(self.kind, FunctionInfo)

    @property
    def is_object(self) -> bool:
        return isinstance(self.kind, ObjectInfo)

    @property
    def is_type(self) -> bool:
        return isinstance(self.kind, TypeInfo)

    @property
    def is_namespace(self) -> bool:
        return isinstance(self.kind, NamespaceInfo)

    @property
    def is_alias(self) -> bool:
        return isinstance(self.kind, AliasInfo)

    @property
    def is_global(self) -> bool:
        return self.parent is None

    @property
    def position(self) -> tuple[int, int]:
        return (self.line, self.column)


@dataclass(frozen=True)
class ParseResult:
    """Everything the front-end produced for one piece of source text.

    Attributes:
        tokens: Token stream in source order.
        declarations: Declaration arena; ``declarations[i].id == i``.
        declaration_of: Token index -> declaration id for every resolved
            identifier, including each declaration's own name token.
        diagnostics: Problems in the order they were found.
        includes: Raw names of ``#include`` directives, in source order.
    """

    tokens: tuple[Token, ...] = ()
    declarations: tuple[Declaration, ...] = ()
    declaration_of: Mapping[int, int] = field(default_factory=dict)
    diagnostics: tuple[Diagnostic, ...] = ()
    includes: tuple[str, ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(d.severity == "error" for d in self.diagnostics)

    def declaration(self, decl_id: int | None) -> Declaration | None:
        if decl_id is None or not 0 <= decl_id < len(self.declarations):
            return None
        return self.declarations[decl_id]

    def children(self, decl_id: int) -> list[Declaration]:
        """Declarations whose parent is decl_id, in source order."""
        return [d for d in self.declarations if d.parent == decl_id]

    def ancestors(self, decl: Declaration) -> Iterator[Declaration]:
        """Walk parent links outward from decl (exclusive).

        The walk is bounded by the arena size so a corrupt parent chain
        cannot loop forever.
        """
        seen: set[int] = {decl.id}
        current = self.declaration(decl.parent)
        while current is not None and current.id not in seen:
            yield current
            seen.add(current.id)
            current = self.declaration(current.parent)

    def belongs_to(self, decl: Declaration, owner_id: int) -> bool:
        """True if owner_id is one of decl's enclosing declarations."""
        return any(a.id == owner_id for a in self.ancestors(decl))
