"""Query results returned by document sessions.

All positions here are 0-based (editor space).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class DiagnosticInfo:
    """A diagnostic ready to be published."""

    line: int
    column: int
    message: str
    severity: str = "error"
    is_internal: bool = False


@dataclass(frozen=True, slots=True)
class Location:
    """A position inside a (possibly different) file."""

    uri: str
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class HoverInfo:
    """Markdown hover text and the range of the hovered token.

    Attributes:
        contents: Markdown text.
        start_line: 0-based line of the token.
        start_column: 0-based first column of the token.
        end_line: 0-based line of the token end.
        end_column: 0-based column just past the token.
        defined_in: URI of the file declaring the hovered symbol.
    """

    contents: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    defined_in: str = ""


class CompletionKind(str, Enum):
    FUNCTION = "function"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    FIELD = "field"
    TYPE = "type"
    NAMESPACE = "namespace"
    KEYWORD = "keyword"


@dataclass(frozen=True, slots=True)
class CompletionItem:
    """One completion proposal."""

    label: str
    kind: CompletionKind
    detail: str = ""
    insert_text: str = ""


@dataclass(frozen=True, slots=True)
class SignatureHelp:
    """Signature of the call surrounding the cursor.

    Attributes:
        label: Printable signature of the callee.
        parameters: Display label of each parameter.
        active_parameter: 0-based index of the parameter being typed.
    """

    label: str
    parameters: tuple[str, ...] = field(default_factory=tuple)
    active_parameter: int = 0
