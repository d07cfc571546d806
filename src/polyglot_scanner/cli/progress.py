"""Rich progress display implementing the ProgressSink protocol."""

from __future__ import annotations

import threading
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from ..progress import ScanStage

STAGE_LABELS = {
    ScanStage.FILES: "Scanning files",
    ScanStage.HISTORY: "Walking history",
}


class RichProgress:
    """One progress row per stage; safe to tick from worker threads."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)
        self._lock = threading.Lock()
        self._tasks: dict[ScanStage, TaskID] = {}
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(bar_width=40, complete_style="cyan", finished_style="green"),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    def __enter__(self) -> RichProgress:
        self._progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._progress.stop()

    def start(self, stage: ScanStage, total: int | None = None) -> None:
        with self._lock:
            if stage not in self._tasks:
                label = STAGE_LABELS.get(stage, stage.value.capitalize())
                self._tasks[stage] = self._progress.add_task(label, total=total)

    def advance(self, stage: ScanStage, count: int = 1) -> None:
        with self._lock:
            task_id = self._tasks.get(stage)
        if task_id is not None:
            self._progress.advance(task_id, count)

    def finish(self, stage: ScanStage) -> None:
        with self._lock:
            task_id = self._tasks.get(stage)
        if task_id is None:
            return
        task = next(t for t in self._progress.tasks if t.id == task_id)
        # Streams of unknown length get a total once they end
        self._progress.update(task_id, total=task.completed, completed=task.completed)


def create_summary_table(files: int, commits: int, complete: bool, output: str) -> Table:
    """Create a summary table for a finished scan."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column(style="bold")

    table.add_row("Files", str(files))
    table.add_row("Commits", str(commits))
    table.add_row("Status", "[green]complete[/]" if complete else "[yellow]partial[/]")
    table.add_row("Output", output)
    return table
