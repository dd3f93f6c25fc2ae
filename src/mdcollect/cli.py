"""Command line interface for mdcollect."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mdcollect.config import AppConfig
from mdcollect.errors import ContentError
from mdcollect.index.indexer import CollectionSet, load_collection
from mdcollect.models import Document


console = Console()
app = typer.Typer(help="mdcollect - load, validate and order Markdown content")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load(root: Optional[Path], extension: str) -> CollectionSet:
    config = AppConfig(content_dir=root, extension=extension)
    resolved = config.resolve_content_dir(Path.cwd())
    try:
        return load_collection(resolved, extension=config.extension)
    except ContentError as exc:
        console.print(f"[bold red]{exc.kind}[/bold red] {escape(str(exc.path))}: {escape(exc.message)}")
        raise typer.Exit(code=1) from exc


def _format_date(document: Document) -> str:
    date = document.metadata.date
    return date.isoformat() if date is not None else ""


@app.command()
def check(
    root: Optional[Path] = typer.Argument(None, help="Content directory (default: ./content)"),
    extension: str = typer.Option(AppConfig().extension, help="Content file extension"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Load every document and report the first error, if any."""
    _setup_logging(verbose)
    collection = _load(root, extension)
    drafts = len(collection.drafts())
    console.print(
        f"OK: {len(collection)} documents in {len(collection.sections())} sections "
        f"({drafts} drafts)"
    )


@app.command("list")
def list_documents(
    root: Optional[Path] = typer.Argument(None, help="Content directory (default: ./content)"),
    section: Optional[str] = typer.Option(None, "--section", "-s", help="Only this section"),
    drafts: bool = typer.Option(AppConfig().show_drafts, "--drafts/--no-drafts", help="Include drafts"),
    extension: str = typer.Option(AppConfig().extension, help="Content file extension"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show documents in listing order."""
    _setup_logging(verbose)
    collection = _load(root, extension)

    if section is not None and section not in collection.sections():
        console.print(f"[yellow]Unknown section: {escape(section)}[/yellow]")
        raise typer.Exit(code=1)

    names = [section] if section is not None else sorted(collection.sections())

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Section")
    table.add_column("Weight", justify="right")
    table.add_column("Date")
    table.add_column("Path")
    table.add_column("Title")

    for name in names:
        for document in collection.list(name):
            if document.is_draft and not drafts:
                continue
            title = escape(document.title)
            if document.is_draft:
                title += " [dim](draft)[/dim]"
            table.add_row(
                escape(name) or "/",
                str(document.metadata.weight),
                _format_date(document),
                escape(document.key),
                title,
            )

    console.print(table)


@app.command()
def show(
    path: str = typer.Argument(..., help="Document path relative to the content root"),
    root: Optional[Path] = typer.Option(None, "--root", help="Content directory (default: ./content)"),
    extension: str = typer.Option(AppConfig().extension, help="Content file extension"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print the metadata of a single document."""
    _setup_logging(verbose)
    collection = _load(root, extension)
    if path not in collection:
        console.print(f"[yellow]Document not found: {escape(path)}[/yellow]")
        raise typer.Exit(code=1)

    document = collection.get(path)
    metadata = document.metadata
    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("path", escape(document.key))
    table.add_row("section", escape(document.section))
    table.add_row("title", escape(metadata.title))
    table.add_row("description", escape(metadata.description))
    table.add_row("date", _format_date(document))
    table.add_row("weight", str(metadata.weight))
    table.add_row("draft", str(metadata.draft).lower())
    table.add_row("author", escape(metadata.author or ""))
    table.add_row("keywords", escape(", ".join(metadata.keywords)))
    for key, value in metadata.extra.items():
        table.add_row(escape(key), escape(str(value)))
    table.add_row("body", f"{len(document.body)} characters")
    console.print(table)
