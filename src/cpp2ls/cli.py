"""Typer CLI entry point for cpp2ls.

Each command builds a workspace for the given root, brings its index up to
date and answers one query. Positions are 0-based, as at the protocol
boundary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cpp2ls import __version__
from cpp2ls.document.session import DocumentSession
from cpp2ls.exceptions import Cpp2lsError
from cpp2ls.uris import path_to_uri, uri_to_path
from cpp2ls.workspace import Workspace

app = typer.Typer(
    name="cpp2ls",
    help="cpp2ls: Cpp2 symbol index and cross-file resolution.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

RootOption = Annotated[
    Path | None, typer.Option("--root", "-r", help="Workspace root (defaults to the current directory)")
]
FileArg = Annotated[Path, typer.Argument(help="Source file to query")]
LineArg = Annotated[int, typer.Argument(help="0-based line")]
ColArg = Annotated[int, typer.Argument(help="0-based column")]


def _error_exit(message: str, hint: str | None = None) -> None:
    """Print a styled error and exit."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")
    raise typer.Exit(code=1)


def _open(root: Path | None, file: Path) -> tuple[Workspace, DocumentSession]:
    """Build an indexed workspace and open file in it."""
    if not file.is_file():
        _error_exit(f"File not found: {file}")
    workspace = Workspace.from_root((root or Path.cwd()).resolve())
    workspace.initialize()
    try:
        session = workspace.open_from_disk(path_to_uri(file.resolve()))
    except (OSError, UnicodeDecodeError) as exc:
        _error_exit(f"Cannot read {file}: {exc}")
    return workspace, session


def _display(uri: str) -> str:
    return str(uri_to_path(uri))


@app.command()
def version() -> None:
    """Show the cpp2ls version."""
    console.print(f"cpp2ls {__version__}")


@app.command()
def index(
    root: Annotated[Path, typer.Argument(help="Workspace root")] = Path("."),
    force: Annotated[bool, typer.Option("--force", help="Ignore the cache and rescan")] = False,
) -> None:
    """Scan the workspace, save the index cache and summarize it."""
    try:
        workspace = Workspace.from_root(root.resolve())
        workspace.initialize(force=force)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return

    records = workspace.index.files()
    if not records:
        console.print("[yellow]No source files found.[/yellow]")
        return

    table = Table(title="cpp2ls index", border_style="cyan", header_style="bold cyan")
    table.add_column("File", style="bold")
    table.add_column("Symbols", justify="right")
    table.add_column("Includes", justify="right")
    for record in records:
        table.add_row(
            escape(_display(record.uri)), str(len(record.symbols)), str(len(record.direct_includes))
        )
    console.print(table)
    console.print(
        f"[green]{sum(len(r.symbols) for r in records)} symbols[/green] "
        f"in [green]{len(records)} files[/green]"
    )


@app.command()
def check(file: FileArg, root: RootOption = None) -> None:
    """Print the diagnostics of a file; exit 1 if it has errors."""
    try:
        _, session = _open(root, file)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return

    diagnostics = session.diagnostics()
    if not diagnostics:
        console.print("[green]No problems found.[/green]")
        return
    for diag in diagnostics:
        style = "red" if diag.severity == "error" else "yellow"
        console.print(
            f"{escape(str(file))}:{diag.line}:{diag.column}: "
            f"[{style}]{diag.severity}[/{style}]: {escape(diag.message)}",
            soft_wrap=True,
        )
    if any(d.severity == "error" for d in diagnostics):
        raise typer.Exit(code=1)


@app.command()
def symbols(
    name: Annotated[str, typer.Argument(help="Symbol name")],
    root: RootOption = None,
) -> None:
    """Look a name up in the project index."""
    try:
        workspace = Workspace.from_root((root or Path.cwd()).resolve())
        workspace.initialize()
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return

    found = workspace.index.lookup(name)
    if not found:
        console.print(f"[yellow]No symbol named '{escape(name)}'.[/yellow]")
        raise typer.Exit(code=1)
    for sym in found:
        console.print(
            f"{sym.kind.value} {escape(sym.signature or sym.name)}  "
            f"{escape(_display(sym.file_uri))}:{sym.line}:{sym.column}",
            soft_wrap=True,
        )


@app.command()
def hover(file: FileArg, line: LineArg, col: ColArg, root: RootOption = None) -> None:
    """Show hover text at a position."""
    try:
        workspace, session = _open(root, file)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return
    info = workspace.hover(session.uri, line, col)
    if info is None:
        console.print("[dim]No hover information.[/dim]")
        raise typer.Exit(code=1)
    console.print(info.contents, markup=False, soft_wrap=True)


@app.command()
def definition(file: FileArg, line: LineArg, col: ColArg, root: RootOption = None) -> None:
    """Show where the symbol at a position is declared."""
    try:
        workspace, session = _open(root, file)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return
    location = workspace.definition(session.uri, line, col)
    if location is None:
        console.print("[dim]No definition found.[/dim]")
        raise typer.Exit(code=1)
    console.print(
        f"{escape(_display(location.uri))}:{location.line}:{location.column}", soft_wrap=True
    )


@app.command()
def references(
    file: FileArg,
    line: LineArg,
    col: ColArg,
    root: RootOption = None,
    no_declaration: Annotated[
        bool, typer.Option("--no-declaration", help="Leave out the declaration site")
    ] = False,
) -> None:
    """List same-file references to the symbol at a position."""
    try:
        workspace, session = _open(root, file)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return
    found = workspace.references(session.uri, line, col, include_declaration=not no_declaration)
    if not found:
        console.print("[dim]No references found.[/dim]")
        raise typer.Exit(code=1)
    for location in found:
        console.print(
            f"{escape(_display(location.uri))}:{location.line}:{location.column}", soft_wrap=True
        )


@app.command()
def complete(file: FileArg, line: LineArg, col: ColArg, root: RootOption = None) -> None:
    """List completion proposals at a position."""
    try:
        workspace, session = _open(root, file)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return
    items = workspace.completion(session.uri, line, col)
    if not items:
        console.print("[dim]No completions.[/dim]")
        return
    table = Table(border_style="cyan", header_style="bold cyan")
    table.add_column("Label", style="bold")
    table.add_column("Kind")
    table.add_column("Detail")
    for item in items:
        table.add_row(escape(item.label), item.kind.value, escape(item.detail))
    console.print(table)


@app.command()
def signature(file: FileArg, line: LineArg, col: ColArg, root: RootOption = None) -> None:
    """Show the signature of the call around a position."""
    try:
        workspace, session = _open(root, file)
    except Cpp2lsError as exc:
        _error_exit(str(exc))
        return
    help_ = workspace.signature_help(session.uri, line, col)
    if help_ is None:
        console.print("[dim]No signature help.[/dim]")
        raise typer.Exit(code=1)
    console.print(escape(help_.label), soft_wrap=True)
    for i, param in enumerate(help_.parameters):
        marker = "[bold cyan]>[/bold cyan]" if i == help_.active_parameter else " "
        console.print(f"{marker} {escape(param)}", soft_wrap=True)
