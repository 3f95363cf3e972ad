"""Tests for the Cpp2 tokenizer."""

from __future__ import annotations

from cpp2ls.frontend.lexer import Lexer


def _texts(source: str) -> list[str]:
    return [t.text for t in Lexer().lex(source).tokens]


class TestTokens:
    def test_declaration_tokens(self) -> None:
        assert _texts("add: (x: int) -> int = x;") == [
            "add", ":", "(", "x", ":", "int", ")", "->", "int", "=", "x", ";",
        ]

    def test_positions_are_one_based(self) -> None:
        tokens = Lexer().lex("a := 1;\n  bb := 2;").tokens
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        bb = next(t for t in tokens if t.text == "bb")
        assert (bb.line, bb.column) == (2, 3)
        assert bb.length == 2

    def test_keywords_and_identifiers(self) -> None:
        tokens = Lexer().lex("f: (inout this) = { return; }").tokens
        kinds = {t.text: t.kind for t in tokens}
        assert kinds["f"] == "identifier"
        assert kinds["inout"] == "keyword"
        assert kinds["this"] == "keyword"
        assert kinds["return"] == "keyword"

    def test_longest_punctuator_wins(self) -> None:
        assert _texts("a..b a.b p->q x::y z==w") == [
            "a", "..", "b", "a", ".", "b", "p", "->", "q", "x", "::", "y", "z", "==", "w",
        ]

    def test_string_and_number_literals(self) -> None:
        tokens = Lexer().lex('s := "a \\" b"; n := 1\'000;').tokens
        assert tokens[2].kind == "string"
        assert tokens[2].text == '"a \\" b"'
        number = next(t for t in tokens if t.kind == "number")
        assert number.text == "1'000"


class TestCommentsAndDirectives:
    def test_comments_are_skipped(self) -> None:
        assert _texts("a // trailing\n/* block\n still */ b") == ["a", "b"]

    def test_includes_are_collected(self) -> None:
        result = Lexer().lex('#include "utils.h2"\n#include <vector>\nmain: () = { }')
        assert result.includes == ["utils.h2", "vector"]
        assert result.tokens[0].text == "main"
        assert result.tokens[0].line == 3

    def test_unterminated_block_comment(self) -> None:
        result = Lexer().lex("a\n/* never closed")
        assert [d.message for d in result.diagnostics] == ["unterminated block comment"]
        assert result.diagnostics[0].line == 2

    def test_unterminated_string(self) -> None:
        result = Lexer().lex('s := "oops;')
        assert result.diagnostics[0].message == "unterminated string literal"

    def test_unexpected_character(self) -> None:
        result = Lexer().lex("a := `;")
        assert result.diagnostics[0].message == "unexpected character '`'"
        assert result.diagnostics[0].column == 6
