"""Directory aggregates and the reductions that produce them.

A directory's metrics are a pure function of its immediate children's
metrics. Each field names its reduction in ``REDUCTIONS``; every reduction
is associative and commutative, so any grouping of the same files gives
the same totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from ..scanning.digest import EMPTY_DIGEST, IndentationDigest
from .records import FileRecord


def _sum(values: Sequence[int]) -> int:
    return sum(values)


def _max(values: Sequence[Optional[int]]) -> Optional[int]:
    present = [v for v in values if v is not None]
    return max(present) if present else None


def _min(values: Sequence[Optional[int]]) -> Optional[int]:
    present = [v for v in values if v is not None]
    return min(present) if present else None


def _union(values: Sequence[frozenset[str]]) -> frozenset[str]:
    return frozenset().union(*values)


@dataclass(frozen=True)
class DirectoryMetrics:
    """Aggregated metrics for a subtree.

    Line totals and maximum indentation live in ``digest``, whose merge
    sums the line counts and histogram and takes the max depth.
    """

    file_count: int = 0
    binary_file_count: int = 0
    error_file_count: int = 0
    bytes: int = 0
    total_changes: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    first_seen: Optional[int] = None
    last_changed: Optional[int] = None
    digest: IndentationDigest = EMPTY_DIGEST
    authors: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of_file(cls, record: FileRecord) -> DirectoryMetrics:
        """Metrics of a single file, as the base case of the fold."""
        history = record.history
        return cls(
            file_count=1,
            binary_file_count=1 if record.is_binary else 0,
            error_file_count=1 if record.read_error is not None else 0,
            bytes=record.bytes,
            total_changes=record.total_changes,
            lines_added=history.lines_added if history else 0,
            lines_deleted=history.lines_deleted if history else 0,
            first_seen=history.first_seen if history else None,
            last_changed=history.last_changed if history else None,
            digest=record.digest,
            authors=record.authors,
        )

    @classmethod
    def combine(cls, children: Sequence[DirectoryMetrics]) -> DirectoryMetrics:
        """Reduce children field by field."""
        return cls(
            **{
                name: reduce([getattr(child, name) for child in children])
                for name, reduce in REDUCTIONS.items()
            }
        )

    @property
    def blank(self) -> int:
        return self.digest.blank

    @property
    def comment(self) -> int:
        return self.digest.comment

    @property
    def code(self) -> int:
        return self.digest.code

    @property
    def max_indentation(self) -> int:
        return self.digest.max_depth

    @property
    def author_count(self) -> int:
        return len(self.authors)


REDUCTIONS: dict[str, Callable[[Sequence[Any]], Any]] = {
    "file_count": _sum,
    "binary_file_count": _sum,
    "error_file_count": _sum,
    "bytes": _sum,
    "total_changes": _sum,
    "lines_added": _sum,
    "lines_deleted": _sum,
    "first_seen": _min,
    "last_changed": _max,
    "digest": IndentationDigest.merge_all,
    "authors": _union,
}
