"""Transport-free request handling for one workspace.

``Workspace`` owns the project index and the open document sessions and
implements the protocol surface (open / change / close notifications and
position queries) as plain method calls. Diagnostics leave through the
``publish`` callback. Everything runs on the caller's thread, one request
at a time.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from rich.console import Console

from cpp2ls.config import ServerConfig, load_config
from cpp2ls.document.results import (
    CompletionItem,
    DiagnosticInfo,
    HoverInfo,
    Location,
    SignatureHelp,
)
from cpp2ls.document.session import DocumentSession
from cpp2ls.frontend.adapter import Cpp2Frontend, FrontendAdapter
from cpp2ls.indexer.index import ProjectIndex
from cpp2ls.uris import uri_to_path

console = Console(stderr=True)

PublishFn = Callable[[str, list[DiagnosticInfo]], None]


def _discard(uri: str, diagnostics: list[DiagnosticInfo]) -> None:
    pass


class Workspace:
    """Open documents plus the project index of one workspace root.

    Usage::

        ws = Workspace(load_config(root), publish=send_diagnostics)
        ws.initialize()
        ws.did_open(uri, text)
        ws.definition(uri, 9, 4)
    """

    def __init__(
        self,
        config: ServerConfig,
        publish: PublishFn | None = None,
        frontend: FrontendAdapter | None = None,
    ) -> None:
        """Initialize the workspace.

        Args:
            config: Server configuration.
            publish: Receives ``(uri, diagnostics)`` whenever a document's
                diagnostics change. Defaults to dropping them.
            frontend: Front-end shared by every session and the index.
        """
        self.config = config
        self._publish = publish or _discard
        self._frontend: FrontendAdapter = frontend if frontend is not None else Cpp2Frontend()
        self.index = ProjectIndex(config, self._frontend)
        self._sessions: dict[str, DocumentSession] = {}

    @classmethod
    def from_root(cls, root: Path, publish: PublishFn | None = None) -> Workspace:
        """Build a workspace with configuration loaded for root."""
        return cls(load_config(root), publish=publish)

    # Lifecycle

    def initialize(self, force: bool = False) -> bool:
        """Load the cached index, catch up with disk and save.

        Args:
            force: Ignore any cache and rescan every file.

        Returns:
            True if the cache was used as the starting point.
        """
        from_cache = not force and self.index.load_from_cache()
        self.index.scan_and_index()
        self.index.save_to_cache()
        return from_cache

    def shutdown(self) -> None:
        """Persist the index."""
        self.index.save_to_cache()

    # Notifications

    def did_open(self, uri: str, text: str) -> None:
        session = DocumentSession(uri, self._frontend)
        self._sessions[uri] = session
        self._refresh(session, text)

    def did_change(self, uri: str, text: str) -> None:
        """Replace the whole text of an open document."""
        session = self._sessions.get(uri)
        if session is None:
            return
        self._refresh(session, text)

    def did_close(self, uri: str) -> None:
        """Drop the session and clear its diagnostics; the index record stays."""
        if self._sessions.pop(uri, None) is None:
            return
        self._publish(uri, [])

    def _refresh(self, session: DocumentSession, text: str) -> None:
        session.update(text)
        self.index.update_file(session.uri, session.indexed_symbols(), session.includes())
        self._publish(session.uri, session.diagnostics())

        for dependent in sorted(self.index.graph.dependents(session.uri)):
            other = self._sessions.get(dependent)
            if other is None:
                continue
            if self.config.verbose:
                console.print(f"[dim]re-diagnosing {dependent}[/dim]")
            other.update(other.text)
            self._publish(dependent, other.diagnostics())

    # Queries

    def session(self, uri: str) -> DocumentSession | None:
        return self._sessions.get(uri)

    def open_documents(self) -> list[str]:
        return sorted(self._sessions)

    def diagnostics(self, uri: str) -> list[DiagnosticInfo]:
        session = self._sessions.get(uri)
        return session.diagnostics() if session is not None else []

    def hover(self, uri: str, line: int, column: int) -> HoverInfo | None:
        self._trace("hover", uri, line, column)
        session = self._sessions.get(uri)
        return session.get_hover(line, column, self.index) if session is not None else None

    def definition(self, uri: str, line: int, column: int) -> Location | None:
        self._trace("definition", uri, line, column)
        session = self._sessions.get(uri)
        return session.get_definition(line, column, self.index) if session is not None else None

    def references(
        self, uri: str, line: int, column: int, include_declaration: bool = True
    ) -> list[Location]:
        self._trace("references", uri, line, column)
        session = self._sessions.get(uri)
        if session is None:
            return []
        return session.get_references(line, column, include_declaration, self.index)

    def completion(self, uri: str, line: int, column: int) -> list[CompletionItem]:
        self._trace("completion", uri, line, column)
        session = self._sessions.get(uri)
        return session.get_completions(line, column, self.index) if session is not None else []

    def signature_help(self, uri: str, line: int, column: int) -> SignatureHelp | None:
        self._trace("signatureHelp", uri, line, column)
        session = self._sessions.get(uri)
        if session is None:
            return None
        return session.get_signature_help(line, column, self.index)

    def open_from_disk(self, uri: str) -> DocumentSession:
        """Open a document with its current on-disk content.

        Raises:
            OSError: If the file cannot be read.
        """
        text = uri_to_path(uri).read_text(encoding="utf-8")
        self.did_open(uri, text)
        return self._sessions[uri]

    def _trace(self, request: str, uri: str, line: int, column: int) -> None:
        if self.config.verbose:
            console.print(f"[dim]{request} {uri}:{line}:{column}[/dim]")
