"""Front-end adapter: the single seam between the language server and the parser.

Document sessions only ever talk to a ``FrontendAdapter``. The concrete
``Cpp2Frontend`` lexes, parses and resolves a piece of text; tests and
embedders can substitute any object with the same ``analyze`` method.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Protocol

from cpp2ls.exceptions import FrontendError
from cpp2ls.frontend.lexer import Lexer
from cpp2ls.frontend.model import ParseResult
from cpp2ls.frontend.parser import Parser


class FrontendAdapter(Protocol):
    """Anything that can turn source text into a ParseResult."""

    def analyze(self, text: str) -> ParseResult:
        """Lex, parse and resolve text.

        Raises:
            FrontendError: If the text could not be prepared for parsing.
        """
        ...


class Cpp2Frontend:
    """Cpp2 front-end that reads its input from a materialized file.

    The parser works on file contents, so every call writes the text to a
    scratch file first and reads it back.

    Usage::

        result = Cpp2Frontend().analyze("main: () = { }")
    """

    SCRATCH_NAME = "cpp2ls_input.cpp2"

    def __init__(self, scratch_dir: Path | None = None) -> None:
        """Initialize the front-end.

        Args:
            scratch_dir: Directory for the scratch file. Defaults to a
                fresh temporary directory per call.
        """
        self._scratch_dir = scratch_dir
        self._lexer = Lexer()

    def analyze(self, text: str) -> ParseResult:
        source = self._load(text)
        lexed = self._lexer.lex(source)
        parsed = Parser(lexed.tokens).parse()
        return ParseResult(
            tokens=tuple(lexed.tokens),
            declarations=tuple(parsed.declarations),
            declaration_of=parsed.declaration_of,
            diagnostics=tuple(lexed.diagnostics + parsed.diagnostics),
            includes=tuple(lexed.includes),
        )

    def _load(self, text: str) -> str:
        """Round-trip text through a scratch file."""
        try:
            if self._scratch_dir is not None:
                return self._round_trip(self._scratch_dir / self.SCRATCH_NAME, text)
            with tempfile.TemporaryDirectory(prefix="cpp2ls-") as tmp:
                return self._round_trip(Path(tmp) / self.SCRATCH_NAME, text)
        except OSError as exc:
            raise FrontendError(f"Failed to create temporary file for parsing: {exc}") from exc

    @staticmethod
    def _round_trip(path: Path, text: str) -> str:
        path.write_text(text, encoding="utf-8", newline="")
        try:
            return path.read_text(encoding="utf-8")
        finally:
            path.unlink(missing_ok=True)
