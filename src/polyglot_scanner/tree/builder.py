"""Join per-file data and fold it into a directory tree.

The tree mirrors the work tree's directory structure. Each directory's
metrics are computed once, from its immediate children, when the node is
constructed; nodes are frozen afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Union

from ..config import ScanConfig
from ..logging_config import get_logger
from ..paths import split_path
from ..scanning.builder import FileMetrics
from ..temporal.models import CouplingEntry, HistoryResult
from .aggregate import DirectoryMetrics
from .records import CoupledFile, FileRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileNode:
    name: str
    record: FileRecord

    kind = "file"

    @property
    def metrics(self) -> DirectoryMetrics:
        return DirectoryMetrics.of_file(self.record)


@dataclass(frozen=True)
class DirectoryNode:
    """A directory and the aggregate of everything below it.

    ``children`` are sorted by name; a directory with no files below it
    is never built, except for an empty root.
    """

    name: str
    children: tuple[TreeNode, ...]
    metrics: DirectoryMetrics

    kind = "directory"

    @classmethod
    def from_children(cls, name: str, children: list[TreeNode]) -> DirectoryNode:
        ordered = tuple(sorted(children, key=lambda node: node.name))
        return cls(
            name=name,
            children=ordered,
            metrics=DirectoryMetrics.combine([child.metrics for child in ordered]),
        )

    def child(self, name: str) -> Optional[TreeNode]:
        for node in self.children:
            if node.name == name:
                return node
        return None

    def get_in(self, path: str) -> Optional[TreeNode]:
        """Node at a relative path below this directory, or None.

        An empty path returns the directory itself.
        """
        node: TreeNode = self
        for segment in split_path(path):
            if not isinstance(node, DirectoryNode):
                return None
            found = node.child(segment)
            if found is None:
                return None
            node = found
        return node

    def iter_files(self) -> Iterator[FileRecord]:
        """All file records below this directory, depth first, in name order."""
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, FileNode):
                yield node.record
            else:
                stack.extend(reversed(node.children))


TreeNode = Union[FileNode, DirectoryNode]


def project_coupling(
    path: str,
    entries: list[CouplingEntry],
    total_change_count: int,
    top_n: int,
    known_paths: Optional[Mapping[str, object]] = None,
) -> tuple[CoupledFile, ...]:
    """Top ``top_n`` partners of ``path`` by co-change count.

    Ties are broken by partner path. Partners outside ``known_paths``
    (when given) are left out so every link resolves within the tree.
    """
    if top_n <= 0 or total_change_count <= 0:
        return ()
    partners = [
        (entry.other(path), entry.co_change_count)
        for entry in entries
        if known_paths is None or entry.other(path) in known_paths
    ]
    partners.sort(key=lambda item: (-item[1], item[0]))
    return tuple(
        CoupledFile(path=other, co_change_count=count, ratio=round(count / total_change_count, 4))
        for other, count in partners[:top_n]
    )


def build_file_records(
    scanned: Mapping[str, FileMetrics],
    history: Optional[HistoryResult],
    config: Optional[ScanConfig] = None,
) -> dict[str, FileRecord]:
    """Join static metrics with history by path.

    Only files present in ``scanned`` get a record; history for paths no
    longer in the work tree is dropped.
    """
    config = config or ScanConfig()
    by_path = history.coupling_by_path() if history else {}
    records: dict[str, FileRecord] = {}
    for path in sorted(scanned):
        metrics = scanned[path]
        stats = history.stats.get(path) if history else None
        coupled: tuple[CoupledFile, ...] = ()
        if stats is not None:
            coupled = project_coupling(
                path,
                by_path.get(path, []),
                stats.total_change_count,
                config.top_coupled,
                known_paths=scanned,
            )
        records[path] = FileRecord(
            path=path,
            language=metrics.language,
            bytes=metrics.bytes,
            is_binary=metrics.is_binary,
            read_error=metrics.error,
            digest=metrics.digest,
            history=stats.freeze() if stats is not None else None,
            coupled=coupled,
        )
    if history is not None:
        without = sum(1 for r in records.values() if r.history is None)
        if without:
            logger.debug("%d files have no history (untracked or outside the since bound)", without)
    return records


def build_tree(records: Mapping[str, FileRecord], root_name: str = "") -> DirectoryNode:
    """Fold records into a tree rooted at ``root_name``."""
    return _fold(root_name, [(split_path(path), record) for path, record in records.items()])


def _fold(name: str, entries: list[tuple[list[str], FileRecord]]) -> DirectoryNode:
    files: list[TreeNode] = []
    groups: dict[str, list[tuple[list[str], FileRecord]]] = {}
    for segments, record in entries:
        if len(segments) == 1:
            files.append(FileNode(name=segments[0], record=record))
        else:
            groups.setdefault(segments[0], []).append((segments[1:], record))
    children = files + [_fold(child, group) for child, group in groups.items()]
    return DirectoryNode.from_children(name, children)
