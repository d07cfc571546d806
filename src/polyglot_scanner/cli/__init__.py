"""CLI entry point: registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="polyglot-scanner",
    help="Polyglot Scanner - metrics trees from source code and git history",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(
            f"[bold cyan]Polyglot Scanner[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)


@app.callback()
def _root(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """
    Scan a repository into a JSON metrics tree for treemap and sunburst views.
    """


# Import subcommands to register them
from .scan import scan as _scan  # noqa: F401, E402
from .history import history as _history  # noqa: F401, E402


def main() -> None:
    app()
