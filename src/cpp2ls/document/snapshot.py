"""Parse snapshots and the two-slot current / last-good holder."""

from __future__ import annotations

from dataclasses import dataclass

from cpp2ls.frontend.model import Declaration, ParseResult, Token


@dataclass(frozen=True)
class ParseSnapshot:
    """One front-end result with point lookups over it (1-based)."""

    result: ParseResult

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self.result.tokens

    @property
    def declarations(self) -> tuple[Declaration, ...]:
        return self.result.declarations

    @property
    def is_clean(self) -> bool:
        """Error-free with at least one declaration."""
        return not self.result.has_errors and bool(self.result.declarations)

    def token_at(self, line: int, column: int) -> tuple[int, Token] | None:
        """Return (index, token) of the token containing the 1-based point."""
        for index, tok in enumerate(self.result.tokens):
            if tok.line > line:
                break
            if tok.contains(line, column):
                return index, tok
        return None

    def declaration_of(self, token_index: int) -> Declaration | None:
        return self.result.declaration(self.result.declaration_of.get(token_index))

    def references_to(self, decl_id: int) -> list[tuple[int, Token]]:
        """Every token resolved to decl_id, in source order."""
        return [
            (index, self.result.tokens[index])
            for index, target in sorted(self.result.declaration_of.items())
            if target == decl_id
        ]


class SnapshotSlots:
    """Holds the ``current`` and ``last_good`` snapshots of one document.

    A clean snapshot is moved into ``last_good`` and ``current`` is
    cleared. Anything else becomes ``current`` and ``last_good`` is left
    untouched; it is never discarded except by promotion.
    """

    def __init__(self) -> None:
        self.current: ParseSnapshot | None = None
        self.last_good: ParseSnapshot | None = None

    def accept(self, snapshot: ParseSnapshot) -> bool:
        """Store snapshot; return True if it was promoted to last_good."""
        if snapshot.is_clean:
            self.last_good = snapshot
            self.current = None
            return True
        self.current = snapshot
        return False

    def active(self) -> ParseSnapshot | None:
        """Snapshot that position queries should read.

        ``current`` wins unless it has errors and a last-good snapshot is
        available to serve instead.
        """
        if self.current is None:
            return self.last_good
        if self.last_good is not None and self.current.result.has_errors:
            return self.last_good
        return self.current

    def latest(self) -> ParseSnapshot | None:
        """Most recent snapshot regardless of quality."""
        return self.current if self.current is not None else self.last_good
