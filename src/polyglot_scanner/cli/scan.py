"""Scan CLI command: write the metrics tree for a repository."""

from contextlib import nullcontext
from pathlib import Path
from typing import Optional

import typer

from ..core import scan_repository
from ..exceptions import ConfigurationError, PartialScan, ScannerError
from ..logging_config import setup_logging
from ..progress import CancellationToken, NullProgress
from ..tree import ScanResult, dumps, write
from . import app
from ._common import EXIT_FATAL, EXIT_PARTIAL, cancel_on_interrupt, console, resolve_config
from .progress import RichProgress, create_summary_table


@app.command()
def scan(
    path: Path = typer.Argument(
        Path("."),
        help="Repository to scan (any directory inside its work tree)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the JSON tree here instead of stdout",
        dir_okay=False,
    ),
    since: Optional[str] = typer.Option(
        None,
        "--since",
        help="Only walk commits after this ISO 8601 date (e.g. 2024-01-01)",
    ),
    top_coupled: Optional[int] = typer.Option(
        None,
        "--top-coupled",
        help="Coupled files kept per file",
        min=0,
    ),
    coupling_ceiling: Optional[int] = typer.Option(
        None,
        "--coupling-ceiling",
        help="Commits touching more files than this add no coupling",
        min=2,
    ),
    rename_threshold: Optional[int] = typer.Option(
        None,
        "--rename-threshold",
        help="Similarity percentage for rename detection",
        min=0,
        max=100,
    ),
    exclude: Optional[list[str]] = typer.Option(
        None,
        "--exclude",
        "-x",
        help="gitignore-style pattern to leave out (repeatable)",
    ),
    include_merges: bool = typer.Option(
        False,
        "--include-merges",
        help="Count merge commits' first-parent diffs as changes",
    ),
    include_untracked: bool = typer.Option(
        False,
        "--include-untracked",
        help="Also scan untracked files that are not ignored",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel file-scan workers (default: auto-detect)",
        min=1,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide the progress bars"),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Append debug-level logs to this file",
        dir_okay=False,
    ),
):
    """
    Scan a repository and its history into a JSON metrics tree.

    Press Ctrl-C once to stop early: the tree built so far is still
    written, marked incomplete, and the exit code is 2.

    [bold cyan]Examples:[/bold cyan]

      polyglot-scanner scan -o tree.json

      polyglot-scanner scan ../project --since 2024-01-01 --top-coupled 5

      polyglot-scanner scan -x "vendor/" -x "*.min.js" > tree.json
    """
    logger = setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        settings = resolve_config(
            config=config,
            since=since,
            rename_threshold=rename_threshold,
            coupling_ceiling=coupling_ceiling,
            top_coupled=top_coupled,
            workers=workers,
            include_untracked=include_untracked,
            include_merges=include_merges,
            exclude=exclude,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        if e.hint:
            console.print(f"[dim]Hint: {e.hint}[/dim]")
        raise typer.Exit(EXIT_FATAL)

    token = CancellationToken()
    display = RichProgress(console) if not (quiet or no_progress) else nullcontext(NullProgress())
    partial: Optional[PartialScan] = None

    try:
        with cancel_on_interrupt(token), display as sink:
            try:
                result = scan_repository(path, settings, progress=sink, cancel=token)
            except PartialScan as e:
                partial = e
                result = e.result
        _emit(result, output)

    except ScannerError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        stage = e.stage or "none"
        console.print(f"[red]Error:[/red] {e.message}")
        if e.hint:
            console.print(f"[dim]Hint: {e.hint}[/dim]")
        console.print(f"[dim]Last completed stage: {stage}[/dim]")
        raise typer.Exit(EXIT_FATAL)

    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted[/yellow]")
        raise typer.Exit(130)

    if partial is not None:
        console.print(
            f"[yellow]Partial scan:[/yellow] {partial.files_done}/{partial.files_total} files, "
            f"{partial.commits_done} commits"
        )
        raise typer.Exit(EXIT_PARTIAL)

    if not quiet:
        console.print(
            create_summary_table(
                files=result.file_count,
                commits=result.commit_count,
                complete=result.complete,
                output=str(output) if output else "stdout",
            )
        )


def _emit(result: ScanResult, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(dumps(result), nl=False)
    else:
        write(result, output)
