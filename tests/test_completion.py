"""Tests for completion: member access, UFCS and general-mode visibility."""

from __future__ import annotations

from conftest import ExplodingFrontend, make_session, position_of

from cpp2ls.config import ServerConfig
from cpp2ls.document.completion import innermost_function
from cpp2ls.document.results import CompletionKind
from cpp2ls.document.session import DocumentSession
from cpp2ls.document.textscan import find_access_context, find_call_context, split_parameters
from cpp2ls.exceptions import FrontendError
from cpp2ls.frontend import Cpp2Frontend
from cpp2ls.indexer.index import ProjectIndex
from cpp2ls.symbols import IndexedSymbol, SymbolKind

POINT = """\
Point: type = {
    x: int = 0;
    len: (this) -> int = x;
}

scale: (p: Point, k: int) -> Point = p;
twice: (n: int) -> int = n * 2;

main: () = {
    obj: Point = ();
    obj.
}
"""


def _labels(items) -> list[str]:
    return [item.label for item in items]


def _cursor_after(text: str, needle: str) -> tuple[int, int]:
    line, col = position_of(text, needle)
    return line, col + len(needle)


class TestMemberAccess:
    def test_dot_offers_members_then_ufcs_functions(self) -> None:
        session = make_session(POINT)
        line, col = _cursor_after(POINT, "obj.")
        labels = _labels(session.get_completions(line, col))
        assert labels == ["x", "len", "scale"]

    def test_double_dot_is_member_only(self) -> None:
        text = POINT.replace("obj.\n", "obj..\n")
        session = make_session(text)
        line, col = _cursor_after(text, "obj..")
        assert _labels(session.get_completions(line, col)) == ["x", "len"]

    def test_arrow_is_member_only(self) -> None:
        text = POINT.replace("obj.\n", "obj->\n")
        session = make_session(text)
        line, col = _cursor_after(text, "obj->")
        assert _labels(session.get_completions(line, col)) == ["x", "len"]

    def test_member_item_kinds(self) -> None:
        session = make_session(POINT)
        line, col = _cursor_after(POINT, "obj.")
        items = {item.label: item for item in session.get_completions(line, col)}
        assert items["x"].kind is CompletionKind.FIELD
        assert items["len"].kind is CompletionKind.FUNCTION
        assert items["len"].insert_text == "len("

    def test_ufcs_includes_index_functions(self, config: ServerConfig) -> None:
        index = ProjectIndex(config)
        index.update_file(
            "file:///w/geometry.h2",
            [
                IndexedSymbol("norm", SymbolKind.FUNCTION, "norm: (p: Point) -> int", "file:///w/geometry.h2"),
                IndexedSymbol("other", SymbolKind.FUNCTION, "other: (s: int) -> int", "file:///w/geometry.h2"),
                IndexedSymbol("deref", SymbolKind.FUNCTION, "deref: (p: *Point) -> int", "file:///w/geometry.h2"),
                IndexedSymbol(
                    "qualified", SymbolKind.FUNCTION, "qualified: (p: geo::Point) -> int", "file:///w/geometry.h2"
                ),
                IndexedSymbol("bump", SymbolKind.FUNCTION, "bump: (inout p: Point)", "file:///w/geometry.h2"),
            ],
        )
        session = make_session(POINT)
        line, col = _cursor_after(POINT, "obj.")
        labels = _labels(session.get_completions(line, col, index))
        assert labels == ["x", "len", "scale", "norm", "bump"]

    def test_ufcs_requires_exact_first_parameter_type(self) -> None:
        text = (
            "T: type = {\n"
            "    m: int = 0;\n"
            "}\n"
            "byptr: (p: *T) -> int = 0;\n"
            "other: (p: ns::T) -> int = 0;\n"
            "exact: (inout p: T) = { }\n"
            "main: () = {\n"
            "    obj: T = ();\n"
            "    obj.\n"
            "}\n"
        )
        session = make_session(text)
        line, col = _cursor_after(text, "obj.")
        assert _labels(session.get_completions(line, col)) == ["m", "exact"]

    def test_ufcs_keeps_template_arguments(self) -> None:
        text = (
            "vec_int: (v: std::vector<int>) -> int = 0;\n"
            "vec_str: (v: std::vector<std::string>) -> int = 0;\n"
            "main: () = {\n"
            "    vs: std::vector<std::string> = ();\n"
            "    vs.\n"
            "}\n"
        )
        session = make_session(text)
        line, col = _cursor_after(text, "vs.")
        assert _labels(session.get_completions(line, col)) == ["vec_str"]

    def test_accessor_inside_comment_is_general_mode(self) -> None:
        text = "main: () = {\n    obj: int = 0;\n    // see obj.\n}\n"
        session = make_session(text)
        line, col = _cursor_after(text, "see obj.")
        labels = _labels(session.get_completions(line, col))
        assert "return" in labels

    def test_works_after_clean_parse_with_partial_name(self) -> None:
        text = POINT.replace("obj.\n", "obj.l;\n")
        session = make_session(text)
        line, col = _cursor_after(text, "obj.l")
        assert _labels(session.get_completions(line, col)) == ["x", "len", "scale"]

    def test_raw_text_fallback_when_tokens_miss(self) -> None:
        frontend = ExplodingFrontend()
        session = DocumentSession("file:///w/test.cpp2", frontend)
        session.update(POINT.replace("    obj.\n", ""))
        frontend.error = FrontendError("Failed to create temporary file for parsing")
        session.update(POINT)
        line, col = _cursor_after(POINT, "obj.")
        assert _labels(session.get_completions(line, col)) == ["x", "len", "scale"]

    def test_this_uses_enclosing_type(self) -> None:
        text = "Box: type = {\n    w: int = 0;\n    area: (this) -> int = {\n        return this.\n    }\n}\n"
        session = make_session(text)
        line, col = _cursor_after(text, "this.")
        assert _labels(session.get_completions(line, col)) == ["w", "area"]

    def test_unknown_object_gives_nothing(self) -> None:
        text = "main: () = {\n    ghost.\n}\n"
        session = make_session(text)
        line, col = _cursor_after(text, "ghost.")
        assert session.get_completions(line, col) == []


class TestGeneralMode:
    VISIBILITY = """\
g: () = {
    a := 1;
    b := 2;
}

h: (p: int) = {
    c := 3;

    d := 4;
}

late: () = { }
"""

    def test_other_function_locals_are_hidden(self) -> None:
        session = make_session(self.VISIBILITY)
        labels = _labels(session.get_completions(7, 4))
        assert "a" not in labels
        assert "b" not in labels
        assert "c" in labels
        assert "p" in labels

    def test_later_locals_are_hidden(self) -> None:
        session = make_session(self.VISIBILITY)
        labels = _labels(session.get_completions(7, 4))
        assert "d" not in labels

    def test_file_scope_functions_visible_before_declaration(self) -> None:
        session = make_session(self.VISIBILITY)
        labels = _labels(session.get_completions(1, 4))
        assert {"g", "h", "late"} <= set(labels)

    def test_keywords_come_last(self) -> None:
        session = make_session(self.VISIBILITY)
        items = session.get_completions(7, 4)
        kinds = [item.kind for item in items]
        first_keyword = kinds.index(CompletionKind.KEYWORD)
        assert all(k is CompletionKind.KEYWORD for k in kinds[first_keyword:])
        assert "return" in _labels(items)

    def test_index_symbols_follow_local_ones(self, config: ServerConfig) -> None:
        index = ProjectIndex(config)
        index.update_file(
            "file:///w/other.h2",
            [
                IndexedSymbol("helper", SymbolKind.FUNCTION, "helper: ()", "file:///w/other.h2"),
                IndexedSymbol("g", SymbolKind.TYPE, "", "file:///w/other.h2"),
            ],
        )
        session = make_session(self.VISIBILITY)
        items = session.get_completions(7, 4, index)
        labels = _labels(items)
        assert labels.index("helper") > labels.index("late")
        # same name, first writer wins
        assert labels.count("g") == 1
        assert next(i for i in items if i.label == "g").kind is CompletionKind.FUNCTION

    def test_global_variables_at_file_scope(self) -> None:
        text = "limit: int = 10;\n\nmain: () = { }\n"
        session = make_session(text)
        assert "limit" in _labels(session.get_completions(1, 0))


class TestInnermostFunction:
    def test_nested_function_wins(self) -> None:
        text = "outer: () = {\n    inner: () = {\n        x := 1;\n    }\n}\n"
        result = Cpp2Frontend().analyze(text)
        found = innermost_function(result.declarations, 3)
        assert found is not None and found.name == "inner"
        assert innermost_function(result.declarations, 5).name == "outer"
        assert innermost_function(result.declarations, 6) is None


class TestTextScan:
    def test_access_context(self) -> None:
        ctx = find_access_context("    obj..na", 0, 11)
        assert ctx is not None
        assert (ctx.object_name, ctx.accessor, ctx.prefix) == ("obj", "..", "na")

    def test_access_context_absent(self) -> None:
        assert find_access_context("    x := 1", 0, 10) is None

    def test_access_context_ignores_comments_and_strings(self) -> None:
        assert find_access_context("    // see obj.", 0, 15) is None
        assert find_access_context('    s := "obj.', 0, 14) is None

    def test_access_context_after_digit_separator(self) -> None:
        ctx = find_access_context("    n := 1'000; obj.", 0, 20)
        assert ctx is not None
        assert (ctx.object_name, ctx.accessor) == ("obj", ".")

    def test_call_context_skips_nested_calls(self) -> None:
        ctx = find_call_context("r := f(g(1, 2), ", 0, 16)
        assert ctx is not None
        assert (ctx.callee, ctx.active_parameter) == ("f", 1)

    def test_call_context_with_template_arguments(self) -> None:
        ctx = find_call_context("r := make<int>(", 0, 15)
        assert ctx is not None
        assert ctx.callee == "make"

    def test_split_parameters_drops_this(self) -> None:
        assert split_parameters("f: (inout this, v: std::map<int, int>) -> int") == (
            "v: std::map<int, int>",
        )
