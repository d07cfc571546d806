"""Per-file records: static metrics joined with history and coupling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..scanning.digest import EMPTY_DIGEST, IndentationDigest
from ..temporal.models import FileHistory, FileHistoryStats

if TYPE_CHECKING:
    from .builder import DirectoryNode


@dataclass(frozen=True)
class CoupledFile:
    """A file that co-changed with the record's file.

    ``ratio`` is the co-change count over the record's own total change
    count, rounded to four places.
    """

    path: str
    co_change_count: int
    ratio: float


@dataclass(frozen=True)
class FileRecord:
    """Everything known about one working-tree file.

    Accumulator stats passed as ``history`` are frozen on the way in, so a
    record never shares mutable state with the history walk.
    """

    path: str
    language: str
    bytes: int = 0
    is_binary: bool = False
    read_error: Optional[str] = None
    digest: IndentationDigest = EMPTY_DIGEST
    history: Optional[FileHistory] = None
    coupled: tuple[CoupledFile, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.history, FileHistoryStats):
            object.__setattr__(self, "history", self.history.freeze())

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def total_changes(self) -> int:
        return self.history.total_change_count if self.history else 0

    @property
    def authors(self) -> frozenset[str]:
        return self.history.authors if self.history else frozenset()


@dataclass(frozen=True)
class ScanResult:
    """The finished tree plus what the scan covered."""

    tree: "DirectoryNode"
    complete: bool = True
    file_count: int = 0
    commit_count: int = 0
    version: str = ""
