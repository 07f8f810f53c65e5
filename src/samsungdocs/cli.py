"""Command line entry point: serve (default), populate, clear."""

from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from samsungdocs import __version__
from samsungdocs.config import Settings
from samsungdocs.errors import SamsungDocsError
from samsungdocs.maintenance import clear_cache
from samsungdocs.models.page import PopulateSummary
from samsungdocs.populate import populate
from samsungdocs.scraper import ENTRY_POINTS
from samsungdocs.server import open_state, serve, setup_logging

console = Console(stderr=True)

app = typer.Typer(
    name="samsungdocs",
    help="Samsung Smart TV documentation cache and MCP server.",
    add_completion=False,
    invoke_without_command=True,
)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]samsungdocs[/bold] version {__version__}")
        raise typer.Exit()


def _print_summary(summary: PopulateSummary) -> None:
    table = Table(title="Populate summary", show_header=False)
    for name, outcome in summary.sections.items():
        table.add_row(name, str(outcome))
    table.add_row("discovered", str(summary.discovered))
    table.add_row("registered", str(summary.registered))
    table.add_row("fetched", str(summary.fetched))
    table.add_row("fresh", str(summary.fresh))
    table.add_row("errors", str(summary.errors))
    console.print(table)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Run the MCP server when no command is given."""
    if ctx.invoked_subcommand is None:
        serve()


@app.command("populate")
def populate_command(
    concurrency: Annotated[
        Optional[int],
        typer.Option("--concurrency", "-c", min=1, help="Pages fetched per batch"),
    ] = None,
    section: Annotated[
        Optional[str],
        typer.Option("--section", "-s", help=f"One of {', '.join(ENTRY_POINTS)} or all"),
    ] = None,
    ttl_hours: Annotated[
        Optional[float],
        typer.Option("--ttl-hours", min=0, help="Refetch pages older than this"),
    ] = None,
) -> None:
    """Discover and fetch every stale page, then exit."""
    settings = Settings()
    setup_logging(settings)
    ttl_ms = None if ttl_hours is None else int(ttl_hours * 3600 * 1000)

    async def _run() -> PopulateSummary:
        async with open_state(settings) as state:
            return await populate(state, concurrency=concurrency, section=section, ttl_ms=ttl_ms)

    try:
        summary = asyncio.run(_run())
    except SamsungDocsError as exc:
        console.print(f"[red]{exc.message}[/red] {exc.suggestion}")
        raise typer.Exit(2) from exc
    _print_summary(summary)
    if summary.aborted:
        console.print("[red]Every entry point failed discovery.[/red]")
        raise typer.Exit(1)


@app.command("clear")
def clear_command() -> None:
    """Delete the cached pages, the page registry and the search index."""
    settings = Settings()
    setup_logging(settings)

    async def _run() -> int:
        async with open_state(settings) as state:
            return await clear_cache(state)

    removed = asyncio.run(_run())
    console.print(f"Removed {removed} cached pages from {settings.cache.path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
