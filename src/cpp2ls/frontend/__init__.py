"""Cpp2 front-end: tokenizer, declaration parser and name resolution."""

from __future__ import annotations

from cpp2ls.frontend.adapter import Cpp2Frontend, FrontendAdapter
from cpp2ls.frontend.lexer import KEYWORDS, Lexer
from cpp2ls.frontend.model import (
    AliasInfo,
    Declaration,
    DeclarationKind,
    Diagnostic,
    FunctionInfo,
    NamespaceInfo,
    ObjectInfo,
    Parameter,
    ParseResult,
    Token,
    TypeInfo,
)
from cpp2ls.frontend.parser import Parser

__all__ = [
    "KEYWORDS",
    "AliasInfo",
    "Cpp2Frontend",
    "Declaration",
    "DeclarationKind",
    "Diagnostic",
    "FrontendAdapter",
    "FunctionInfo",
    "Lexer",
    "NamespaceInfo",
    "ObjectInfo",
    "Parameter",
    "ParseResult",
    "Parser",
    "Token",
    "TypeInfo",
]
