"""Parallel file scanning over a bounded worker pool."""

from __future__ import annotations

import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import FileReadError
from ..logging_config import get_logger
from ..progress import CancellationToken
from .builder import FileMetrics, FileMetricsBuilder

logger = get_logger(__name__)

# In-flight files per worker; bounds memory held by queued reads
_WINDOW_PER_WORKER = 4


def default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass
class FileScanResult:
    """Metrics for every file that was scanned, keyed by path."""

    files: dict[str, FileMetrics] = field(default_factory=dict)
    total: int = 0
    complete: bool = True

    @property
    def failed(self) -> list[FileMetrics]:
        return [m for m in self.files.values() if m.error is not None]


class FileScanner:
    """Measure many files with a fixed number of worker threads.

    Per-file read failures are recovered here: the file is kept with empty
    metrics and its error recorded, and a warning is logged.
    """

    def __init__(self, builder: FileMetricsBuilder, workers: Optional[int] = None):
        self.builder = builder
        self.workers = workers or default_workers()

    def _measure(self, root: Path, path: str) -> FileMetrics:
        try:
            return self.builder.build(root, path)
        except FileReadError as e:
            logger.warning("Skipping contents of %s: %s", path, e.reason)
            return FileMetrics.failed(path, e.reason)

    def scan(
        self,
        root: Path,
        paths: list[str],
        cancel: Optional[CancellationToken] = None,
        on_file: Optional[Callable[[], None]] = None,
    ) -> FileScanResult:
        """Measure ``paths`` under ``root``.

        Cancellation stops new files from starting; files already in
        flight finish and are kept.
        """
        result = FileScanResult(total=len(paths))
        pending = iter(paths)
        window = self.workers * _WINDOW_PER_WORKER

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            in_flight: set[Future[FileMetrics]] = set()

            def fill() -> None:
                while len(in_flight) < window:
                    if cancel is not None and cancel.cancelled:
                        return
                    path = next(pending, None)
                    if path is None:
                        return
                    in_flight.add(executor.submit(self._measure, root, path))

            fill()
            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    in_flight.discard(future)
                    metrics = future.result()
                    result.files[metrics.path] = metrics
                    if on_file is not None:
                        on_file()
                fill()

        result.complete = len(result.files) == len(paths)
        logger.info(
            "Scanned %d/%d files (%d unreadable)",
            len(result.files),
            len(paths),
            len(result.failed),
        )
        return result
