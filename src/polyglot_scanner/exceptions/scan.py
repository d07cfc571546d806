"""Scan-time exceptions: history, per-file reads, cancellation, output."""

from pathlib import Path
from typing import Any, Optional

from .base import ScannerError


class RepositoryError(ScannerError):
    """Raised when the repository history cannot be read.

    Fatal: a partial or corrupt history walk would silently produce wrong
    churn and coupling numbers, so the whole scan aborts.
    """

    def __init__(self, reason: str, repo_path: Optional[Path] = None, stage: Optional[str] = None):
        details = {"reason": reason}
        if repo_path is not None:
            details["repo"] = str(repo_path)
        if stage is not None:
            details["stage"] = stage
        super().__init__(f"Repository history unreadable: {reason}", details=details)
        self.reason = reason
        self.repo_path = repo_path


class HistoryUnavailable(RepositoryError):
    """Raised when the repository has no commits to walk."""

    hint = "Commit at least once before scanning"

    def __init__(self, repo_path: Optional[Path] = None, reason: str = "repository has no commits"):
        super().__init__(reason, repo_path=repo_path)


class FileReadError(ScannerError):
    """Raised when a single working-tree file cannot be measured.

    Recovered locally: the file is recorded with empty metrics and flagged.
    """

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot read file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class UnreadableFile(FileReadError):
    """Raised by the file metrics builder on I/O or decoding failure."""

    pass


class SerializationError(ScannerError):
    """Raised when the finished tree cannot be encoded.

    A malformed tree is a programming error, so this is never recovered.
    """

    def __init__(self, reason: str):
        super().__init__(f"Cannot serialize tree: {reason}", details={"reason": reason})
        self.reason = reason


class PartialScan(ScannerError):
    """Raised when a scan was cancelled before all units completed.

    Not a failure: ``result`` holds the tree built from completed units,
    marked incomplete.
    """

    def __init__(self, result: Any, files_done: int, files_total: int, commits_done: int):
        super().__init__(
            "Scan cancelled before completion",
            details={
                "files": f"{files_done}/{files_total}",
                "commits": str(commits_done),
            },
        )
        self.result = result
        self.files_done = files_done
        self.files_total = files_total
        self.commits_done = commits_done
