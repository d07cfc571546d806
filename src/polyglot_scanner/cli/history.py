"""History CLI command: per-file churn and authorship from git alone."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
import typer

from ..exceptions import ConfigurationError, ScannerError
from ..logging_config import setup_logging
from ..progress import CancellationToken
from ..temporal import GitRepository, HistoryResult, mine_history
from . import app
from ._common import EXIT_FATAL, EXIT_PARTIAL, cancel_on_interrupt, console, resolve_config

_SORT_KEYS = {
    "changes": lambda s: s.total_change_count,
    "authors": lambda s: s.author_count,
    "churn": lambda s: s.lines_added + s.lines_deleted,
    "recent": lambda s: s.last_changed,
}


@app.command()
def history(
    path: Path = typer.Argument(
        Path("."),
        help="Repository to inspect",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    since: Optional[str] = typer.Option(
        None,
        "--since",
        help="Only walk commits after this ISO 8601 date",
    ),
    rename_threshold: Optional[int] = typer.Option(
        None,
        "--rename-threshold",
        help="Similarity percentage for rename detection",
        min=0,
        max=100,
    ),
    include_merges: bool = typer.Option(
        False,
        "--include-merges",
        help="Count merge commits' first-parent diffs as changes",
    ),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of files to list",
        min=1,
    ),
    sort: str = typer.Option(
        "changes",
        "--sort",
        help="Order by: changes | authors | churn | recent",
        click_type=click.Choice(sorted(_SORT_KEYS), case_sensitive=False),
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    List the most frequently changed files, following renames.

    [bold cyan]Examples:[/bold cyan]

      polyglot-scanner history

      polyglot-scanner history --sort churn -n 10

      polyglot-scanner history --since 2024-01-01 --json
    """
    logger = setup_logging(verbose=verbose, quiet=json_output and not verbose)

    try:
        settings = resolve_config(
            config=config,
            since=since,
            rename_threshold=rename_threshold,
            include_merges=include_merges,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        if e.hint:
            console.print(f"[dim]Hint: {e.hint}[/dim]")
        raise typer.Exit(EXIT_FATAL)

    token = CancellationToken()
    try:
        with cancel_on_interrupt(token):
            result = mine_history(GitRepository(path), settings, cancel=token)
    except ScannerError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e.message}")
        if e.hint:
            console.print(f"[dim]Hint: {e.hint}[/dim]")
        raise typer.Exit(EXIT_FATAL)

    ranked = sorted(
        result.stats.values(),
        key=lambda s: (-_SORT_KEYS[sort.lower()](s), s.path),
    )[:limit]

    if json_output:
        _output_json(result, ranked)
    else:
        _output_rich(result, ranked)

    if not result.complete:
        raise typer.Exit(EXIT_PARTIAL)


def _output_json(result: HistoryResult, ranked) -> None:
    """Machine-readable JSON output."""
    rows = [
        {
            "path": s.path,
            "changes": s.total_change_count,
            "authors": s.author_count,
            "lines_added": s.lines_added,
            "lines_deleted": s.lines_deleted,
            "first_seen": s.first_seen,
            "last_changed": s.last_changed,
        }
        for s in ranked
    ]
    typer.echo(
        json.dumps(
            {"commits": result.commit_count, "complete": result.complete, "files": rows},
            indent=2,
            sort_keys=True,
        )
    )


def _format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def _output_rich(result: HistoryResult, ranked) -> None:
    """Human-readable Rich table output."""
    from rich.console import Console
    from rich.table import Table

    out = Console()

    table = Table(
        title=f"File History ({result.commit_count} commits)",
        show_lines=False,
        pad_edge=True,
    )
    table.add_column("File", style="cyan")
    table.add_column("Changes", justify="right", style="bold")
    table.add_column("Authors", justify="right")
    table.add_column("+/-", justify="right", style="green")
    table.add_column("First seen", style="dim")
    table.add_column("Last changed", style="dim")

    for s in ranked:
        table.add_row(
            s.path,
            str(s.total_change_count),
            str(s.author_count),
            f"+{s.lines_added}/-{s.lines_deleted}",
            _format_time(s.first_seen),
            _format_time(s.last_changed),
        )

    out.print()
    out.print(table)
    if not result.complete:
        console.print("[yellow]History walk cancelled; counts are partial[/yellow]")
    out.print()
