"""Raw-text scanning for queries that must work on half-typed code.

These helpers look only at the document text, never at tokens, so they
keep working while an edit leaves the token stream unusable.
Positions are 0-based.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_IDENT_TAIL = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")
_ACCESSOR_TAIL = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*(\.\.|->|\.)\s*([A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass(frozen=True, slots=True)
class AccessContext:
    """``object<accessor>prefix`` immediately before the cursor."""

    object_name: str
    accessor: str
    prefix: str = ""


@dataclass(frozen=True, slots=True)
class CallContext:
    """Innermost unfinished call around the cursor.

    Attributes:
        callee: Name of the called function.
        line: 0-based line of the callee name.
        column: 0-based column of the callee name.
        active_parameter: Number of top-level commas between ``(`` and the cursor.
    """

    callee: str
    line: int
    column: int
    active_parameter: int


def offset_of(text: str, line: int, column: int) -> int | None:
    """Character offset of a 0-based position, clamped to the line end."""
    lines = text.split("\n")
    if line < 0 or line >= len(lines) or column < 0:
        return None
    return sum(len(part) + 1 for part in lines[:line]) + min(column, len(lines[line]))


def position_of(text: str, offset: int) -> tuple[int, int]:
    """0-based (line, column) of a character offset."""
    line = text.count("\n", 0, offset)
    return line, offset - (text.rfind("\n", 0, offset) + 1)


def line_prefix(text: str, line: int, column: int) -> str:
    """Text of a line up to (not including) the cursor column."""
    lines = text.split("\n")
    if line < 0 or line >= len(lines):
        return ""
    return lines[line][: max(column, 0)]


def find_access_context(text: str, line: int, column: int) -> AccessContext | None:
    """Detect ``obj.``, ``obj..`` or ``obj->`` (optionally with a partial name) before the cursor."""
    code = _code_before_cursor(line_prefix(text, line, column))
    if code is None:
        return None
    match = _ACCESSOR_TAIL.search(code)
    if match is None:
        return None
    return AccessContext(match.group(1), match.group(2), match.group(3) or "")


def _code_before_cursor(prefix: str) -> str | None:
    """Line prefix with any ``//`` comment cut off.

    Returns None when the cursor sits inside a comment or an unterminated
    string or character literal.
    """
    quote: str | None = None
    i = 0
    while i < len(prefix):
        ch = prefix[i]
        if quote is not None:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch == '"' or (ch == "'" and not (i > 0 and prefix[i - 1].isalnum())):
            # a quote after a digit is a separator: 1'000
            quote = ch
        elif prefix.startswith("//", i):
            return None
        i += 1
    return None if quote is not None else prefix


def find_call_context(text: str, line: int, column: int) -> CallContext | None:
    """Scan backwards from the cursor for the nearest unmatched ``(``.

    Returns None when a statement or block boundary is reached first, or
    when no identifier precedes the parenthesis.
    """
    offset = offset_of(text, line, column)
    if offset is None:
        return None

    depth = 0
    commas = 0
    i = offset - 1
    while i >= 0:
        ch = text[i]
        if ch in "\"'":
            start = text.rfind(ch, 0, i)
            i = start - 1 if start >= 0 else -1
            continue
        if ch in ")]":
            depth += 1
        elif ch in "([":
            if depth > 0:
                depth -= 1
            elif ch == "(":
                return _callee_before(text, i, commas)
        elif depth == 0 and ch == ",":
            commas += 1
        elif depth == 0 and ch in ";{}":
            return None
        i -= 1
    return None


def _callee_before(text: str, paren: int, commas: int) -> CallContext | None:
    end = paren
    while end > 0 and text[end - 1] in " \t":
        end -= 1
    if end > 0 and text[end - 1] == ">":
        # skip explicit template arguments: f<int>(
        depth = 0
        j = end - 1
        while j >= 0:
            if text[j] == ">":
                depth += 1
            elif text[j] == "<":
                depth -= 1
                if depth == 0:
                    break
            j -= 1
        end = j if j >= 0 else end
    match = _IDENT_TAIL.search(text, 0, end)
    if match is None:
        return None
    line, column = position_of(text, match.start())
    return CallContext(match.group(0), line, column, commas)


def split_parameters(signature: str) -> tuple[str, ...]:
    """Parameter labels of a printable signature such as ``f: (x: int, y: int) -> int``.

    ``this`` parameters are left out.
    """
    start = signature.find("(")
    if start < 0:
        return ()
    depth = 0
    current: list[str] = []
    params: list[str] = []
    for ch in signature[start + 1 :]:
        if ch in "(<[":
            depth += 1
        elif ch in ")>]":
            if depth == 0:
                break
            depth -= 1
        elif ch == "," and depth == 0:
            params.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    params.append("".join(current).strip())
    return tuple(p for p in params if p and p.split()[-1] != "this")


def first_parameter_type(signature: str) -> str:
    """Declared type of the first parameter of a printable signature."""
    params = split_parameters(signature)
    if not params or ":" not in params[0]:
        return ""
    return params[0].split(":", 1)[1].strip()
