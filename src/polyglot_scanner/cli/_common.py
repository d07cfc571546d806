"""Shared CLI helpers."""

import signal
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Iterator, Optional

from rich.console import Console

from ..config import ScanConfig, load_config
from ..progress import CancellationToken

# Messages go to stderr; stdout is reserved for the JSON document
console = Console(stderr=True)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def resolve_config(
    config: Optional[Path] = None,
    since: Optional[str] = None,
    rename_threshold: Optional[int] = None,
    coupling_ceiling: Optional[int] = None,
    top_coupled: Optional[int] = None,
    workers: Optional[int] = None,
    include_untracked: Optional[bool] = None,
    include_merges: Optional[bool] = None,
    exclude: Optional[list[str]] = None,
) -> ScanConfig:
    """Build a ScanConfig from CLI options on top of files and environment.

    ``--exclude`` patterns add to any patterns from config files.
    """
    settings = load_config(
        config_file=config,
        since=since,
        rename_threshold=rename_threshold,
        coupling_ceiling=coupling_ceiling,
        top_coupled=top_coupled,
        workers=workers,
        include_untracked=include_untracked or None,
        include_merges=include_merges or None,
    )
    if exclude:
        settings = replace(settings, exclude_patterns=[*settings.exclude_patterns, *exclude])
    return settings


@contextmanager
def cancel_on_interrupt(token: CancellationToken) -> Iterator[CancellationToken]:
    """First Ctrl-C cancels ``token``; a second one interrupts for real."""

    def _handler(signum, frame):
        if token.cancelled:
            signal.signal(signal.SIGINT, previous)
            raise KeyboardInterrupt
        console.print("\n[yellow]Cancelling... finishing work in flight[/yellow]")
        token.cancel()

    previous = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, _handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
