"""Scan orchestration: file metrics and history in parallel, then the tree.

The working-tree scan runs on a worker pool while the history walk runs
on its own thread with its own git handle. They share nothing until both
finish and their results are joined by path.
"""

from __future__ import annotations

import concurrent.futures
from pathlib import Path
from typing import Optional

from . import __version__
from .config import ScanConfig
from .exceptions import InvalidPathError, PartialScan, ScannerError
from .logging_config import get_logger
from .progress import CancellationToken, NullProgress, ProgressSink, ScanStage, StageTracker
from .scanning.builder import FileMetricsBuilder
from .scanning.collector import LineCollector
from .scanning.scanner import FileScanner
from .scanning.walker import list_working_files
from .temporal.git import GitRepository
from .temporal.history import mine_history
from .temporal.models import HistoryResult
from .tree.builder import build_file_records, build_tree
from .tree.records import ScanResult

logger = get_logger(__name__)


class _CommitCounter:
    """Counts accumulated commits and forwards ticks to the progress sink."""

    def __init__(self, progress: ProgressSink):
        self.progress = progress
        self.count = 0

    def __call__(self) -> None:
        self.count += 1
        self.progress.advance(ScanStage.HISTORY)


def _history_job(
    root: Path,
    config: ScanConfig,
    cancel: CancellationToken,
    counter: _CommitCounter,
    tracker: StageTracker,
) -> HistoryResult:
    # GitRepository is not thread-safe; the history thread gets its own
    repo = GitRepository(root)
    counter.progress.start(ScanStage.HISTORY)
    result = mine_history(repo, config, cancel=cancel, on_commit=counter)
    counter.progress.finish(ScanStage.HISTORY)
    tracker.complete(ScanStage.HISTORY)
    return result


def scan_repository(
    path: str | Path,
    config: Optional[ScanConfig] = None,
    progress: Optional[ProgressSink] = None,
    cancel: Optional[CancellationToken] = None,
    collector: Optional[LineCollector] = None,
) -> ScanResult:
    """Scan a repository's work tree and history into a metrics tree.

    Args:
        path: Any path inside the repository's work tree
        config: Scan settings (defaults if None)
        progress: Receives progress ticks; purely observational
        cancel: Set from another thread (e.g. a signal handler) to stop
            early
        collector: Line collector to use instead of the default

    Returns:
        The finished ScanResult

    Raises:
        InvalidPathError: If ``path`` is not a directory
        RepositoryError: If the repository or its history is unreadable;
            ``details["stage"]`` names the last completed stage
        PartialScan: If cancelled; carries the tree built from the work
            that completed
    """
    config = config or ScanConfig()
    progress = progress or NullProgress()
    cancel = cancel or CancellationToken()
    tracker = StageTracker()

    root = Path(path).resolve()
    if not root.is_dir():
        raise InvalidPathError(root, "not a directory")

    try:
        return _scan(root, config, progress, cancel, tracker, collector)
    except PartialScan:
        raise
    except ScannerError as e:
        raise e.with_stage(tracker.last_completed)


def _scan(
    root: Path,
    config: ScanConfig,
    progress: ProgressSink,
    cancel: CancellationToken,
    tracker: StageTracker,
    collector: Optional[LineCollector],
) -> ScanResult:
    repo = GitRepository(root)
    repo.require_head()
    tracker.complete(ScanStage.CONFIG)

    paths = list_working_files(repo, config)
    tracker.complete(ScanStage.DISCOVER)

    builder = FileMetricsBuilder(
        collector=collector,
        tab_width=config.tab_width,
        max_file_size_bytes=config.max_file_size_bytes,
    )
    scanner = FileScanner(builder, workers=config.workers)
    counter = _CommitCounter(progress)

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="history"
    ) as executor:
        history_future = executor.submit(
            _history_job, repo.root, config, cancel, counter, tracker
        )
        try:
            progress.start(ScanStage.FILES, total=len(paths))
            files = scanner.scan(
                repo.root,
                paths,
                cancel=cancel,
                on_file=lambda: progress.advance(ScanStage.FILES),
            )
            progress.finish(ScanStage.FILES)
            if files.complete:
                tracker.complete(ScanStage.FILES)
        except BaseException:
            # Stop the history thread before the executor joins it
            cancel.cancel()
            raise
        history = history_future.result()

    records = build_file_records(files.files, history, config)
    tracker.complete(ScanStage.RECORDS)
    tree = build_tree(records, root_name=repo.root.name)
    tracker.complete(ScanStage.TREE)

    complete = files.complete and history.complete and not cancel.cancelled
    result = ScanResult(
        tree=tree,
        complete=complete,
        file_count=len(records),
        commit_count=history.commit_count,
        version=__version__,
    )
    logger.info(
        "Scan %s: %d files, %d commits",
        "complete" if complete else "cancelled",
        len(records),
        history.commit_count,
    )
    if not complete:
        raise PartialScan(
            result,
            files_done=len(files.files),
            files_total=files.total,
            commits_done=history.commit_count,
        )
    return result
