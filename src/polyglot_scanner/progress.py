"""Runtime plumbing shared by all stages: stage names, cancellation, progress.

Progress sinks are purely observational; nothing they do can change a
scan's result.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Protocol


class ScanStage(str, Enum):
    """Stages of a scan, in completion order."""

    CONFIG = "config"
    DISCOVER = "discover"
    FILES = "files"
    HISTORY = "history"
    RECORDS = "records"
    TREE = "tree"
    SERIALIZE = "serialize"


class CancellationToken:
    """Thread-safe cancel flag checked between units of work."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self.cancelled


class ProgressSink(Protocol):
    """Receives monotonically increasing progress ticks."""

    def start(self, stage: ScanStage, total: int | None = None) -> None: ...

    def advance(self, stage: ScanStage, count: int = 1) -> None: ...

    def finish(self, stage: ScanStage) -> None: ...


class NullProgress:
    """No-op sink for tests, library use and --quiet mode."""

    def start(self, stage: ScanStage, total: int | None = None) -> None:
        pass

    def advance(self, stage: ScanStage, count: int = 1) -> None:
        pass

    def finish(self, stage: ScanStage) -> None:
        pass


class StageTracker:
    """Remembers the last stage that completed, for fatal error reports."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed: list[ScanStage] = []

    def complete(self, stage: ScanStage) -> None:
        with self._lock:
            if stage not in self._completed:
                self._completed.append(stage)

    @property
    def last_completed(self) -> str:
        with self._lock:
            return self._completed[-1].value if self._completed else "none"
