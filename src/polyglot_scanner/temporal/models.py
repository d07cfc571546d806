"""Data models for history mining and coupling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ChangeKind(str, Enum):
    """The kinds of file change taken from a commit's first-parent diff."""

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"
    COPY = "copy"
    TYPE_CHANGE = "type_change"


@dataclass(frozen=True)
class User:
    """Simplified commit identity; blanks rather than None for missing parts."""

    name: str
    email: str

    @property
    def id(self) -> str:
        """Stable author identifier: email when known, else the name."""
        return self.email.lower() if self.email else self.name


@dataclass(frozen=True)
class FileChange:
    """One changed path in a commit.

    ``file_id`` is the logical file the change belongs to after rename
    resolution; a rename keeps the id of ``old_path``.
    """

    kind: ChangeKind
    new_path: str
    old_path: Optional[str] = None
    file_id: int = -1
    lines_added: int = 0
    lines_deleted: int = 0

    @property
    def path(self) -> str:
        return self.new_path


@dataclass(frozen=True)
class ChangeEvent:
    """Everything one commit contributes to file history."""

    commit_id: str
    author: User
    timestamp: int  # committer time, unix seconds
    changes: tuple[FileChange, ...]
    parent_ids: tuple[str, ...] = ()
    co_authors: tuple[User, ...] = ()
    summary: str = ""
    committer: Optional[User] = None
    author_time: Optional[int] = None

    @property
    def author_id(self) -> str:
        return self.author.id

    @property
    def author_ids(self) -> tuple[str, ...]:
        """Author first, then distinct co-authors."""
        ids = [self.author.id]
        for co_author in self.co_authors:
            if co_author.id and co_author.id not in ids:
                ids.append(co_author.id)
        return tuple(ids)

    @property
    def is_merge(self) -> bool:
        return len(self.parent_ids) > 1

    @property
    def file_ids(self) -> list[int]:
        """Distinct logical files touched, in first-seen order."""
        seen: dict[int, None] = {}
        for change in self.changes:
            seen.setdefault(change.file_id, None)
        return list(seen)


@dataclass
class FileHistoryStats:
    """Accumulated history for one logical file."""

    path: str
    first_seen: int = 0
    last_changed: int = 0
    total_change_count: int = 0
    author_change_counts: dict[str, int] = field(default_factory=dict)
    lines_added: int = 0
    lines_deleted: int = 0

    @property
    def authors(self) -> set[str]:
        return set(self.author_change_counts)

    @property
    def author_count(self) -> int:
        return len(self.author_change_counts)

    def record(self, timestamp: int, author_ids: tuple[str, ...], change: FileChange) -> None:
        """Fold one change into the stats."""
        if self.total_change_count == 0:
            self.first_seen = timestamp
            self.last_changed = timestamp
        else:
            self.first_seen = min(self.first_seen, timestamp)
            self.last_changed = max(self.last_changed, timestamp)
        self.total_change_count += 1
        for author_id in author_ids:
            self.author_change_counts[author_id] = self.author_change_counts.get(author_id, 0) + 1
        self.lines_added += change.lines_added
        self.lines_deleted += change.lines_deleted

    def freeze(self) -> FileHistory:
        """Immutable copy for records that outlive the accumulator."""
        return FileHistory(
            path=self.path,
            first_seen=self.first_seen,
            last_changed=self.last_changed,
            total_change_count=self.total_change_count,
            author_changes=tuple(sorted(self.author_change_counts.items())),
            lines_added=self.lines_added,
            lines_deleted=self.lines_deleted,
        )


@dataclass(frozen=True)
class FileHistory:
    """Frozen history of one file, as carried by tree records."""

    path: str
    first_seen: int = 0
    last_changed: int = 0
    total_change_count: int = 0
    author_changes: tuple[tuple[str, int], ...] = ()
    lines_added: int = 0
    lines_deleted: int = 0

    @property
    def author_change_counts(self) -> dict[str, int]:
        return dict(self.author_changes)

    @property
    def authors(self) -> frozenset[str]:
        return frozenset(author for author, _ in self.author_changes)

    @property
    def author_count(self) -> int:
        return len(self.author_changes)


@dataclass(frozen=True)
class CouplingEntry:
    """Co-change count for an unordered pair; ``path_a < path_b``."""

    path_a: str
    path_b: str
    co_change_count: int

    def other(self, path: str) -> str:
        return self.path_b if path == self.path_a else self.path_a


@dataclass
class HistoryResult:
    """Finished output of the coupling accumulator, keyed by live path."""

    stats: dict[str, FileHistoryStats]
    coupling: list[CouplingEntry]
    commit_count: int = 0
    skipped_wide_commits: int = 0
    complete: bool = True

    def coupling_by_path(self) -> dict[str, list[CouplingEntry]]:
        """Index coupling entries by each of their two paths."""
        index: dict[str, list[CouplingEntry]] = {}
        for entry in self.coupling:
            index.setdefault(entry.path_a, []).append(entry)
            index.setdefault(entry.path_b, []).append(entry)
        return index
