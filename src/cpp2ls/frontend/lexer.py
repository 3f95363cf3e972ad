"""Cpp2 tokenizer.

Turns source text into a flat token stream with 1-based positions.
Preprocessor lines are not tokenized; ``#include`` names are collected
separately so the dependency graph can resolve them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from cpp2ls.frontend.model import Diagnostic, Token

KEYWORDS: frozenset[str] = frozenset(
    {
        "as",
        "assert",
        "break",
        "continue",
        "copy",
        "do",
        "else",
        "false",
        "final",
        "for",
        "forward",
        "forward_ref",
        "if",
        "implicit",
        "in",
        "in_ref",
        "inout",
        "inspect",
        "is",
        "move",
        "namespace",
        "next",
        "nullptr",
        "operator",
        "out",
        "override",
        "post",
        "pre",
        "private",
        "protected",
        "public",
        "return",
        "that",
        "this",
        "throws",
        "true",
        "type",
        "virtual",
        "while",
    }
)

# Longest punctuators first so the alternation prefers them.
_PUNCTUATORS: tuple[str, ...] = (
    "<=>",
    "...",
    "..=",
    "..<",
    "<<=",
    ">>=",
    "::",
    "->",
    "..",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "++",
    "--",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<",
    ":=",
)

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"(?:0[xX][0-9a-fA-F']+|0[bB][01']+|\d[\d']*(?:\.\d[\d']*)?(?:[eE][+-]?\d+)?)[A-Za-z]*")
_INCLUDE_RE = re.compile(r"^\s*#\s*include\s*[<\"]([^>\"]+)[>\"]")
_SINGLE_PUNCT = set("{}()[]<>;:,.=+-*/%&|^!~?@$#")


@dataclass
class LexResult:
    """Output of a single lexing pass."""

    tokens: list[Token] = field(default_factory=list)
    includes: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class Lexer:
    """Splits Cpp2 source into tokens.

    Usage::

        result = Lexer().lex(text)
    """

    def lex(self, text: str) -> LexResult:
        result = LexResult()
        lines = text.splitlines()
        in_block_comment: tuple[int, int] | None = None

        for lineno, line in enumerate(lines, start=1):
            col = 0
            if in_block_comment is None and line.lstrip().startswith("#"):
                match = _INCLUDE_RE.match(line)
                if match is not None:
                    result.includes.append(match.group(1).strip())
                continue

            while col < len(line):
                if in_block_comment is not None:
                    end = line.find("*/", col)
                    if end < 0:
                        col = len(line)
                        continue
                    in_block_comment = None
                    col = end + 2
                    continue

                ch = line[col]
                if ch.isspace():
                    col += 1
                    continue
                if line.startswith("//", col):
                    break
                if line.startswith("/*", col):
                    in_block_comment = (lineno, col + 1)
                    col += 2
                    continue

                if ch == '"' or ch == "'":
                    end = self._scan_quoted(line, col, ch)
                    if end is None:
                        result.diagnostics.append(
                            Diagnostic(
                                lineno,
                                col + 1,
                                "unterminated string literal"
                                if ch == '"'
                                else "unterminated character literal",
                            )
                        )
                        end = len(line)
                    result.tokens.append(Token(line[col:end], lineno, col + 1, "string"))
                    col = end
                    continue

                ident = _IDENT_RE.match(line, col)
                if ident is not None:
                    word = ident.group(0)
                    kind = "keyword" if word in KEYWORDS else "identifier"
                    result.tokens.append(Token(word, lineno, col + 1, kind))
                    col = ident.end()
                    continue

                number = _NUMBER_RE.match(line, col)
                if number is not None:
                    result.tokens.append(Token(number.group(0), lineno, col + 1, "number"))
                    col = number.end()
                    continue

                punct = self._match_punctuator(line, col)
                if punct is not None:
                    result.tokens.append(Token(punct, lineno, col + 1, "punctuator"))
                    col += len(punct)
                    continue

                result.diagnostics.append(
                    Diagnostic(lineno, col + 1, f"unexpected character '{ch}'")
                )
                col += 1

        if in_block_comment is not None:
            line, column = in_block_comment
            result.diagnostics.append(Diagnostic(line, column, "unterminated block comment"))
        return result

    @staticmethod
    def _scan_quoted(line: str, start: int, quote: str) -> int | None:
        """Return the index just past the closing quote, or None."""
        i = start + 1
        while i < len(line):
            if line[i] == "\\":
                i += 2
                continue
            if line[i] == quote:
                return i + 1
            i += 1
        return None

    @staticmethod
    def _match_punctuator(line: str, col: int) -> str | None:
        for punct in _PUNCTUATORS:
            if line.startswith(punct, col):
                return punct
        if line[col] in _SINGLE_PUNCT:
            return line[col]
        return None
