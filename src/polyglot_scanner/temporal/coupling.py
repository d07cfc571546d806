"""Accumulate per-file change history and co-change counts from events."""

from __future__ import annotations

from itertools import combinations
from typing import Optional

from ..logging_config import get_logger
from .arena import PathArena
from .models import ChangeEvent, CouplingEntry, FileHistoryStats, HistoryResult

logger = get_logger(__name__)


class CouplingAccumulator:
    """Fold ChangeEvents, in order, into file stats and pair counts.

    Everything is keyed by the arena's integer file ids while walking, so
    renames never split a file's history; ids are mapped back to their
    final paths in ``finish``.

    Not thread-safe: one history thread owns an accumulator until
    ``finish`` hands the result over.
    """

    def __init__(self, coupling_ceiling: int = 100):
        self.coupling_ceiling = coupling_ceiling
        self.commit_count = 0
        self.skipped_wide_commits = 0
        self._stats: dict[int, FileHistoryStats] = {}
        self._pairs: dict[tuple[int, int], int] = {}
        self._last_timestamp: Optional[int] = None

    @property
    def pair_count(self) -> int:
        return len(self._pairs)

    def add(self, event: ChangeEvent) -> None:
        """Record one commit.

        Every change increments its file's total change count. Every
        unordered pair of distinct files in the commit increments the pair
        count, unless the commit touches more files than the ceiling.
        """
        self.commit_count += 1
        if self._last_timestamp is not None and event.timestamp < self._last_timestamp:
            logger.debug(
                "Commit %s is older than its predecessor (%d < %d)",
                event.commit_id[:12],
                event.timestamp,
                self._last_timestamp,
            )
        self._last_timestamp = event.timestamp

        author_ids = event.author_ids
        for change in event.changes:
            stats = self._stats.get(change.file_id)
            if stats is None:
                stats = self._stats[change.file_id] = FileHistoryStats(path=change.new_path)
            stats.path = change.new_path
            stats.record(event.timestamp, author_ids, change)

        file_ids = event.file_ids
        if len(file_ids) < 2:
            return
        if len(file_ids) > self.coupling_ceiling:
            self.skipped_wide_commits += 1
            logger.debug(
                "Commit %s touches %d files, above the coupling ceiling of %d",
                event.commit_id[:12],
                len(file_ids),
                self.coupling_ceiling,
            )
            return
        for a, b in combinations(sorted(file_ids), 2):
            key = (a, b)
            self._pairs[key] = self._pairs.get(key, 0) + 1

    def finish(self, arena: PathArena, complete: bool = True) -> HistoryResult:
        """Map ids to the paths that exist after the walk.

        Files deleted by the end of the walk and pairs involving them are
        dropped.
        """
        live = arena.live_paths()
        stats: dict[str, FileHistoryStats] = {}
        for file_id, path in live.items():
            file_stats = self._stats.get(file_id)
            if file_stats is None:
                continue
            file_stats.path = path
            stats[path] = file_stats

        coupling: list[CouplingEntry] = []
        for (a, b), count in self._pairs.items():
            path_a = live.get(a)
            path_b = live.get(b)
            if path_a is None or path_b is None:
                continue
            if path_b < path_a:
                path_a, path_b = path_b, path_a
            coupling.append(CouplingEntry(path_a=path_a, path_b=path_b, co_change_count=count))
        coupling.sort(key=lambda e: (e.path_a, e.path_b))

        logger.info(
            "History: %d commits, %d files, %d coupled pairs (%d wide commits skipped)",
            self.commit_count,
            len(stats),
            len(coupling),
            self.skipped_wide_commits,
        )
        return HistoryResult(
            stats=stats,
            coupling=coupling,
            commit_count=self.commit_count,
            skipped_wide_commits=self.skipped_wide_commits,
            complete=complete,
        )
