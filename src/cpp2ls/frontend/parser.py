"""Declaration parser and name resolver for Cpp2.

The parser walks the token stream once, building the declaration arena
and a tree of lexical scopes, and records every identifier use together
with the scope it appeared in. A second pass resolves each use to a
declaration id:

- function and block scopes only see declarations that precede the use
- namespace, type and file scopes see all their declarations (forward
  reference is allowed there)
- ``a::b`` looks ``b`` up among the children of ``a``
- ``obj.m``, ``obj..m`` and ``obj->m`` look ``m`` up among the members of
  ``obj``'s static type; ``.`` falls back to a free function (UFCS)

The parser never raises on malformed input. Problems become diagnostics
and parsing resumes at the next statement or declaration.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from cpp2ls.frontend.model import (
    ACCESSORS,
    AliasInfo,
    Declaration,
    DeclarationKind,
    Diagnostic,
    FunctionInfo,
    NamespaceInfo,
    ObjectInfo,
    ObjectRole,
    Parameter,
    Token,
    TypeInfo,
)

ScopeKind = Literal["global", "namespace", "type", "function", "block"]

PASSING_MODES: frozenset[str] = frozenset(
    {"in", "out", "inout", "copy", "move", "forward", "in_ref", "forward_ref"}
)
_ACCESS_SPECIFIERS = frozenset({"public", "protected", "private"})
_LOOP_KEYWORDS = frozenset({"while", "for", "do"})
_CONTRACT_KEYWORDS = frozenset({"pre", "post", "assert"})
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())

FALLBACK_MESSAGE = "ill-formed declaration"


@dataclass
class _Scope:
    kind: ScopeKind
    owner: int | None
    parent: _Scope | None
    names: dict[str, list[int]] = field(default_factory=dict)

    @property
    def is_ordered(self) -> bool:
        return self.kind in ("function", "block")


@dataclass(frozen=True, slots=True)
class _Use:
    token_index: int
    scope: _Scope
    qualifier: int | None = None
    accessor: str | None = None


@dataclass
class ParseOutput:
    """Declarations, resolved uses and diagnostics of one parse."""

    declarations: list[Declaration]
    declaration_of: dict[int, int]
    diagnostics: list[Diagnostic]


class Parser:
    """Builds the declaration arena for one token stream.

    Usage::

        output = Parser(tokens).parse()
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._decls: list[Declaration] = []
        self._name_token: dict[int, int] = {}
        self._uses: list[_Use] = []
        self._diagnostics: list[Diagnostic] = []
        self._global = _Scope("global", None, None)

    def parse(self) -> ParseOutput:
        self._parse_scope_body(self._global, None)
        declaration_of = self._resolve()
        return ParseOutput(self._decls, declaration_of, self._diagnostics)

    # Token helpers

    def _peek(self, offset: int = 0) -> Token | None:
        index = self._pos + offset
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        return None

    def _at(self, text: str, offset: int = 0) -> bool:
        tok = self._peek(offset)
        return tok is not None and tok.text == text

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _last_token(self) -> Token | None:
        if self._pos == 0 or not self._tokens:
            return None
        return self._tokens[min(self._pos, len(self._tokens)) - 1]

    def _error(self, tok: Token | None, message: str, *, fallback: bool = False) -> None:
        line, column = (tok.line, tok.column) if tok is not None else (1, 1)
        diag = Diagnostic(line, column, message, is_fallback=fallback)
        if diag not in self._diagnostics:
            self._diagnostics.append(diag)

    def _error_after(self, tok: Token | None, message: str) -> None:
        """Report a problem just past the end of tok (missing punctuation)."""
        if tok is None:
            self._error(None, message)
            return
        self._error(Token(tok.text, tok.line, tok.column + tok.length, tok.kind), message)

    # Declarations

    def _read_declaration_name(self) -> tuple[str, int, int] | None:
        """Return (name, name index, separator index) if a declaration starts here.

        Nothing is consumed.
        """
        tok = self._peek()
        if tok is None:
            return None
        if tok.is_identifier:
            nxt = self._peek(1)
            if nxt is not None and nxt.text in (":", ":=", "=="):
                return tok.text, self._pos, self._pos + 1
            return None
        if tok.text == "operator":
            # operator=, operator==, operator() ... followed by ':'
            name = "operator"
            for offset in (1, 2):
                part = self._peek(offset)
                if part is None or part.kind != "punctuator":
                    return None
                if part.text == ":" and offset > 1:
                    return name, self._pos, self._pos + offset
                name += part.text
            if self._at(":", 3):
                return name, self._pos, self._pos + 3
        return None

    def _role_for(self, scope: _Scope) -> ObjectRole:
        if scope.kind == "type":
            return "member"
        if scope.is_ordered:
            return "local"
        return "global"

    def _add(
        self, name: str | None, token_index: int, kind: DeclarationKind, scope: _Scope
    ) -> int:
        tok = self._tokens[token_index]
        parent = scope.owner
        depth = self._decls[parent].depth + 1 if parent is not None else 0
        decl_id = len(self._decls)
        self._decls.append(Declaration(decl_id, name, tok.line, tok.column, kind, parent, depth))
        self._name_token[decl_id] = token_index
        if name:
            scope.names.setdefault(name, []).append(decl_id)
        return decl_id

    def _set_kind(self, decl_id: int, kind: DeclarationKind) -> None:
        self._decls[decl_id] = replace(self._decls[decl_id], kind=kind)

    def _parse_scope_body(self, scope: _Scope, open_tok: Token | None) -> Token | None:
        """Parse declarations of a file, namespace or type body.

        Returns the closing brace, or None at end of input.
        """
        while True:
            tok = self._peek()
            if tok is None:
                if open_tok is not None:
                    self._error(open_tok, "missing '}' to close this scope")
                return None
            if tok.text == "}":
                self._advance()
                if open_tok is None:
                    self._error(tok, "unexpected '}' at file scope")
                    continue
                return tok
            if tok.text == ";" or tok.text in _ACCESS_SPECIFIERS:
                self._advance()
                continue
            if self._read_declaration_name() is not None:
                self._parse_declaration(scope)
                continue
            self._error(tok, FALLBACK_MESSAGE, fallback=True)
            self._recover()

    def _recover(self) -> None:
        """Skip to the end of the current statement.

        Consumes at least one token. Stops after a ``;`` or before a ``}``
        at nesting depth zero.
        """
        depth = 0
        first = True
        while (tok := self._peek()) is not None:
            if not first and depth == 0 and tok.text == "}":
                return
            first = False
            self._advance()
            if tok.text in _OPENERS:
                depth += 1
            elif tok.text in _CLOSERS:
                depth = max(0, depth - 1)
            elif tok.text == ";" and depth == 0:
                return

    def _parse_declaration(self, scope: _Scope) -> None:
        found = self._read_declaration_name()
        if found is None:
            return
        name, name_index, sep_index = found
        self._pos = sep_index
        sep = self._advance()
        role = self._role_for(scope)

        if sep.text == ":=":
            head = self._initializer_head()
            self._add(name, name_index, ObjectInfo("_", role, head), scope)
            self._parse_expression(scope)
            return

        if sep.text == "==":
            decl_id = self._add(name, name_index, AliasInfo("object", ""), scope)
            target, _ = self._parse_expression(scope)
            self._set_kind(decl_id, AliasInfo("object", target))
            return

        metafunctions: list[str] = []
        while self._at("@"):
            self._advance()
            tok = self._peek()
            if tok is not None and tok.kind in ("identifier", "keyword"):
                metafunctions.append(self._advance().text)
        if self._at("<"):
            self._skip_angle_group()

        tok = self._peek()
        if tok is None:
            self._error_after(sep, f"expected a declaration body for '{name}'")
            self._add(name, name_index, ObjectInfo("_", role), scope)
            return
        if tok.text == "(":
            self._parse_function(name, name_index, scope)
        elif tok.text == "type":
            self._parse_type(name, name_index, scope, tuple(metafunctions))
        elif tok.text == "namespace":
            self._parse_namespace(name, name_index, scope)
        else:
            self._parse_object(name, name_index, scope, role)

    def _initializer_head(self) -> str | None:
        """Constructor-like name at the start of an initializer: ``T(...)``."""
        tok = self._peek()
        if tok is None or not tok.is_identifier:
            return None
        offset = 1
        name = tok.text
        while self._at("::", offset):
            part = self._peek(offset + 1)
            if part is None or not part.is_identifier:
                return None
            name += "::" + part.text
            offset += 2
        return name if self._at("(", offset) else None

    def _parse_function(self, name: str, name_index: int, scope: _Scope) -> None:
        decl_id = self._add(name, name_index, FunctionInfo(signature=name), scope)
        fscope = _Scope("function", decl_id, scope)
        params, labels, is_member = self._parse_parameter_list(fscope, decl_id, "parameter")

        throws = ""
        if self._at("throws"):
            self._advance()
            throws = " throws"

        return_type = ""
        if self._at("->"):
            self._advance()
            if self._at("("):
                _, ret_labels, _ = self._parse_parameter_list(fscope, decl_id, "return")
                return_type = f"({', '.join(ret_labels)})"
            else:
                passing = ""
                tok = self._peek()
                if tok is not None and tok.text in ("forward", "move"):
                    passing = self._advance().text + " "
                return_type = passing + self._parse_type_text(
                    fscope, {"=", "==", ";", "pre", "post"}
                )

        while (tok := self._peek()) is not None and tok.text in _CONTRACT_KEYWORDS:
            self._advance()
            if self._at("<"):
                self._skip_angle_group()
            if self._at("("):
                self._parse_balanced(fscope)

        signature = f"{name}: ({', '.join(labels)}){throws}"
        if return_type:
            signature += f" -> {return_type}"

        body_end: int | None = None
        tok = self._peek()
        if tok is not None and tok.text in ("=", "=="):
            self._advance()
            if self._at("{"):
                open_tok = self._advance()
                close = self._parse_block(fscope, open_tok)
                body_end = close.line if close is not None else None
            else:
                _, end = self._parse_expression(fscope)
                body_end = end.line if end is not None else None
        elif tok is not None and tok.text == ";":
            self._advance()
        elif tok is not None and tok.text == "{":
            self._error(tok, f"expected '=' before the body of '{name}'")
            open_tok = self._advance()
            close = self._parse_block(fscope, open_tok)
            body_end = close.line if close is not None else None
        else:
            self._error_after(self._last_token(), f"expected '=' or ';' after the signature of '{name}'")
            if tok is not None and tok.text != "}":
                self._recover()

        self._set_kind(
            decl_id,
            FunctionInfo(
                signature=signature,
                parameters=tuple(params),
                return_type=return_type,
                body_end_line=body_end,
                is_member=is_member,
            ),
        )

    def _parse_parameter_list(
        self, fscope: _Scope, owner_id: int, role: ObjectRole
    ) -> tuple[list[Parameter], list[str], bool]:
        """Parse ``( ... )`` declaring each parameter into fscope.

        Returns the parameters, their display labels (including ``this``)
        and whether a ``this`` parameter was present.
        """
        open_tok = self._advance()
        params: list[Parameter] = []
        labels: list[str] = []
        is_member = False

        while True:
            tok = self._peek()
            if tok is None or tok.text in (";", "{", "}"):
                self._error(open_tok, "missing ')' to close parameter list")
                break
            if tok.text == ")":
                self._advance()
                break

            passing: str | None = None
            nxt = self._peek(1)
            if (
                tok.text in PASSING_MODES
                and nxt is not None
                and (nxt.is_identifier or nxt.text in ("this", "that"))
            ):
                passing = self._advance().text
                tok = self._peek()

            if tok is not None and tok.text == "this":
                self._advance()
                is_member = True
                labels.append(f"{passing} this" if passing else "this")
            elif tok is not None and (tok.is_identifier or tok.text == "that"):
                name_index = self._pos
                self._advance()
                type_name = "_"
                if self._at(":"):
                    self._advance()
                    type_name = self._parse_type_text(fscope, {",", ")", "="}) or "_"
                param = Parameter(tok.text, type_name, passing)
                params.append(param)
                labels.append(param.label)
                self._add(tok.text, name_index, ObjectInfo(type_name, role), fscope)
            elif tok is not None and tok.text == "...":
                self._advance()
                labels.append("...")
            else:
                self._error(tok, "expected a parameter name")

            if self._at("="):
                self._advance()
                self._parse_expression(fscope, stops=frozenset({",", ")"}))

            if self._at(","):
                self._advance()
            elif not self._at(")"):
                tok = self._peek()
                if tok is None or tok.text in (";", "{", "}"):
                    continue
                self._error(tok, "expected ',' or ')' in parameter list")
                self._skip_until(frozenset({",", ")"}))
                if self._at(","):
                    self._advance()

        return params, labels, is_member

    def _parse_type(
        self, name: str, name_index: int, scope: _Scope, metafunctions: tuple[str, ...]
    ) -> None:
        self._advance()  # "type"
        if self._at("=="):
            self._advance()
            decl_id = self._add(name, name_index, AliasInfo("type", ""), scope)
            target, _ = self._parse_expression(scope)
            self._set_kind(decl_id, AliasInfo("type", target))
            return
        decl_id = self._add(name, name_index, TypeInfo(metafunctions), scope)
        if self._at(";"):
            self._advance()
            return
        if not self._at("="):
            self._error_after(self._last_token(), f"expected '=' after 'type' in the declaration of '{name}'")
            self._recover()
            return
        self._advance()
        if not self._at("{"):
            self._error_after(self._last_token(), f"expected '{{' to begin the body of type '{name}'")
            self._recover()
            return
        open_tok = self._advance()
        self._parse_scope_body(_Scope("type", decl_id, scope), open_tok)

    def _parse_namespace(self, name: str, name_index: int, scope: _Scope) -> None:
        self._advance()  # "namespace"
        if self._at("=="):
            self._advance()
            decl_id = self._add(name, name_index, AliasInfo("namespace", ""), scope)
            target, _ = self._parse_expression(scope)
            self._set_kind(decl_id, AliasInfo("namespace", target))
            return
        decl_id = self._add(name, name_index, NamespaceInfo(), scope)
        if not self._at("="):
            self._error_after(self._last_token(), f"expected '=' after 'namespace' in the declaration of '{name}'")
            self._recover()
            return
        self._advance()
        if not self._at("{"):
            self._error_after(self._last_token(), f"expected '{{' to begin namespace '{name}'")
            self._recover()
            return
        open_tok = self._advance()
        self._parse_scope_body(_Scope("namespace", decl_id, scope), open_tok)

    def _parse_object(self, name: str, name_index: int, scope: _Scope, role: ObjectRole) -> None:
        decl_id = self._add(name, name_index, ObjectInfo("_", role), scope)
        type_name = self._parse_type_text(scope, {"=", "==", ";"}) or "_"
        tok = self._peek()
        if tok is not None and tok.text == "==":
            self._advance()
            target, _ = self._parse_expression(scope)
            self._set_kind(decl_id, AliasInfo("object", target))
        elif tok is not None and tok.text == "=":
            self._advance()
            head = self._initializer_head()
            self._set_kind(decl_id, ObjectInfo(type_name, role, head))
            self._parse_expression(scope)
        elif tok is not None and tok.text == ";":
            self._advance()
            self._set_kind(decl_id, ObjectInfo(type_name, role))
        else:
            self._set_kind(decl_id, ObjectInfo(type_name, role))
            self._error_after(self._last_token(), f"expected '=' or ';' in the declaration of '{name}'")
            if tok is not None and tok.text != "}":
                self._recover()

    # Bodies and expressions

    def _parse_block(self, scope: _Scope, open_tok: Token) -> Token | None:
        """Parse statements up to the matching ``}``.

        Returns the closing brace, or None at end of input.
        """
        statement_start = True
        pending: Token | None = None
        while True:
            tok = self._peek()
            if tok is None:
                if pending is not None:
                    self._error_after(pending, "expected ';' at end of statement")
                self._error(open_tok, "missing '}' to close this block")
                return None
            if tok.text == "}":
                if pending is not None:
                    self._error_after(pending, "expected ';' at end of statement")
                return self._advance()
            if tok.text == "{":
                inner_open = self._advance()
                self._parse_block(_Scope("block", scope.owner, scope), inner_open)
                statement_start, pending = True, None
                continue
            if tok.text == ";":
                self._advance()
                statement_start, pending = True, None
                continue
            if statement_start and tok.is_identifier and self._at(":", 1):
                nxt = self._peek(2)
                if nxt is not None and nxt.text in _LOOP_KEYWORDS:
                    self._advance()
                    self._advance()
                    continue
            if statement_start and self._read_declaration_name() is not None and not self._at("==", 1):
                self._parse_declaration(scope)
                statement_start, pending = True, None
                continue
            if tok.text == "do" and self._at("(", 1):
                self._advance()
                loop_scope = _Scope("block", scope.owner, scope)
                if scope.owner is not None:
                    self._parse_parameter_list(loop_scope, scope.owner, "parameter")
                else:
                    self._parse_balanced(scope)
                if self._at("{"):
                    loop_open = self._advance()
                    self._parse_block(loop_scope, loop_open)
                else:
                    self._parse_expression(loop_scope)
                statement_start, pending = True, None
                continue

            self._note_token(scope)
            pending = self._advance()
            statement_start = False

    def _parse_expression(
        self, scope: _Scope, stops: frozenset[str] = frozenset({";"})
    ) -> tuple[str, Token | None]:
        """Consume an expression up to a stop token at depth zero.

        A terminating ``;`` is consumed and returned; other stop tokens
        are left in place. Returns the rendered text and the ``;`` token.
        """
        depth = 0
        collected: list[Token] = []
        while True:
            tok = self._peek()
            if tok is None:
                if ";" in stops:
                    self._error_after(self._last_token(), "expected ';' at end of declaration")
                return _render(collected), None
            if depth == 0 and tok.text in stops:
                if tok.text == ";":
                    self._advance()
                    return _render(collected), tok
                return _render(collected), None
            if depth == 0 and tok.text in _CLOSERS:
                if tok.text == "}":
                    if ";" in stops:
                        self._error_after(self._last_token(), "expected ';' at end of declaration")
                    return _render(collected), None
                self._error(tok, f"unexpected '{tok.text}'")
                self._advance()
                continue
            if tok.text in _OPENERS:
                depth += 1
            elif tok.text in _CLOSERS:
                depth -= 1
            self._note_token(scope)
            collected.append(self._advance())

    def _parse_balanced(self, scope: _Scope) -> None:
        """Consume a parenthesized group, recording uses inside it."""
        open_tok = self._advance()
        depth = 1
        while (tok := self._peek()) is not None:
            if tok.text in _OPENERS:
                depth += 1
            elif tok.text in _CLOSERS:
                depth -= 1
                if depth == 0:
                    self._advance()
                    return
            self._note_token(scope)
            self._advance()
        self._error(open_tok, f"missing '{_OPENERS.get(open_tok.text, ')')}'")

    def _parse_type_text(self, scope: _Scope, stops: set[str]) -> str:
        """Consume a type-id up to a stop token outside brackets."""
        collected: list[Token] = []
        depth = 0
        while (tok := self._peek()) is not None:
            if depth == 0 and (tok.text in stops or tok.text in (";", "{", "}")):
                break
            if tok.text in ("<", "(", "["):
                depth += 1
            elif tok.text in (">", ")", "]"):
                if depth == 0:
                    break
                depth -= 1
            self._note_token(scope)
            collected.append(self._advance())
        return _render(collected)

    def _skip_angle_group(self) -> None:
        open_tok = self._advance()
        depth = 1
        while (tok := self._peek()) is not None:
            self._advance()
            if tok.text == "<":
                depth += 1
            elif tok.text == ">":
                depth -= 1
                if depth == 0:
                    return
            elif tok.text in (";", "{", "}"):
                break
        self._error(open_tok, "missing '>' to close template parameter list")

    def _skip_until(self, stops: frozenset[str]) -> None:
        depth = 0
        while (tok := self._peek()) is not None:
            if depth == 0 and (tok.text in stops or tok.text in (";", "{", "}")):
                return
            if tok.text in _OPENERS:
                depth += 1
            elif tok.text in _CLOSERS:
                depth -= 1
            self._advance()

    def _note_token(self, scope: _Scope) -> None:
        """Record the token at the cursor as a use if it is an identifier."""
        tok = self._tokens[self._pos]
        if tok.text in ACCESSORS:
            nxt = self._peek(1)
            if nxt is None or not (nxt.is_identifier or nxt.text == "operator"):
                self._error_after(tok, f"expected a member name after '{tok.text}'")
            return
        if not tok.is_identifier:
            return
        index = self._pos
        prev = self._tokens[index - 1] if index > 0 else None
        if prev is not None and prev.text in ACCESSORS:
            qualifier = index - 2 if index >= 2 else None
            self._uses.append(_Use(index, scope, qualifier, prev.text))
        elif prev is not None and prev.text == "::":
            left = self._tokens[index - 2] if index >= 2 else None
            qualifier = index - 2 if left is not None and left.is_identifier else None
            self._uses.append(_Use(index, scope, qualifier, "::"))
        else:
            self._uses.append(_Use(index, scope))

    # Resolution

    def _resolve(self) -> dict[int, int]:
        resolved: dict[int, int] = {
            token_index: decl_id for decl_id, token_index in self._name_token.items()
        }
        for use in self._uses:
            target = self._resolve_use(use, resolved)
            if target is not None:
                resolved[use.token_index] = target
        return resolved

    def _resolve_use(self, use: _Use, resolved: dict[int, int]) -> int | None:
        name = self._tokens[use.token_index].text
        if use.accessor in ACCESSORS:
            type_decl = self._type_of_qualifier(use, resolved)
            if type_decl is not None:
                member = self._child_named(type_decl.id, name)
                if member is not None:
                    return member
            if use.accessor == ".":
                found = self._lookup(name, use.scope, use.token_index)
                if found is not None and self._decls[found].is_function:
                    return found
            return None
        if use.accessor == "::":
            if use.qualifier is None:
                ids = self._global.names.get(name)
                return ids[0] if ids else None
            left = resolved.get(use.qualifier)
            if left is None:
                return None
            return self._child_named(left, name)
        return self._lookup(name, use.scope, use.token_index)

    def _lookup(self, name: str, scope: _Scope | None, use_index: int) -> int | None:
        while scope is not None:
            ids = scope.names.get(name)
            if ids:
                if not scope.is_ordered:
                    return ids[0]
                visible = [i for i in ids if self._name_token[i] < use_index]
                if visible:
                    return visible[-1]
            scope = scope.parent
        return None

    def _type_of_qualifier(self, use: _Use, resolved: dict[int, int]) -> Declaration | None:
        if use.qualifier is None or use.qualifier < 0:
            return None
        if self._tokens[use.qualifier].text == "this":
            return self._enclosing_type(use.scope)
        obj_id = resolved.get(use.qualifier)
        if obj_id is None:
            return None
        match self._decls[obj_id].kind:
            case ObjectInfo() as info:
                return self.find_type(self._decls, info.static_type)
            case _:
                return None

    def _enclosing_type(self, scope: _Scope | None) -> Declaration | None:
        while scope is not None:
            if scope.kind == "type" and scope.owner is not None:
                return self._decls[scope.owner]
            scope = scope.parent
        return None

    def _child_named(self, owner_id: int, name: str) -> int | None:
        for decl in self._decls:
            if decl.parent == owner_id and decl.name == name:
                match decl.kind:
                    case ObjectInfo(role="parameter" | "return"):
                        continue
                    case _:
                        return decl.id
        return None

    @staticmethod
    def find_type(declarations: list[Declaration] | tuple[Declaration, ...], type_name: str) -> Declaration | None:
        """Find the type declaration a printable type name refers to.

        Qualifiers, pointer/reference markers and template arguments are
        ignored; a type alias is followed once.
        """
        bare = normalize_type_name(type_name)
        if not bare:
            return None
        for decl in declarations:
            if decl.name != bare:
                continue
            match decl.kind:
                case TypeInfo():
                    return decl
                case AliasInfo(alias_of="type", target=target):
                    aliased = normalize_type_name(target)
                    for other in declarations:
                        if other.name == aliased and other.is_type:
                            return other
        return None


def normalize_type_name(type_name: str) -> str:
    """Reduce a printable type to its bare name: ``*ns::Point<T>`` -> ``Point``."""
    bare = type_name.strip().lstrip("*&").strip()
    for prefix in PASSING_MODES:
        if bare.startswith(prefix + " "):
            bare = bare[len(prefix) + 1 :].strip()
    bare = bare.split("<", 1)[0]
    return bare.rsplit("::", 1)[-1].strip()


def exact_type_name(type_name: str) -> str:
    """Printable type with only a passing mode and extra whitespace removed.

    Unlike ``normalize_type_name`` this keeps pointer markers, qualifiers
    and template arguments, so ``*T``, ``ns::T`` and ``T`` stay distinct.
    """
    words = type_name.split()
    if words and words[0] in PASSING_MODES:
        words = words[1:]
    return " ".join(words)


_TIGHT_BEFORE = frozenset({"::", "<", ">", ",", "(", ")", "[", "]", ".", "..", "->", ";"})
_TIGHT_AFTER = frozenset({"::", "<", "(", "[", ".", "..", "->", "*", "&", "@"})


def _render(tokens: list[Token]) -> str:
    """Join tokens into readable source text."""
    out: list[str] = []
    prev: Token | None = None
    for tok in tokens:
        if prev is not None:
            if prev.text == "," or not (tok.text in _TIGHT_BEFORE or prev.text in _TIGHT_AFTER):
                out.append(" ")
        out.append(tok.text)
        prev = tok
    return "".join(out)
