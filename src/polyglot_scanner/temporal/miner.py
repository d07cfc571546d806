"""Walk a repository's commit graph and emit one ChangeEvent per commit.

One ``git log`` process streams the whole history oldest-first. Each
commit arrives as a header line followed by ``--raw`` lines (status and
paths) and ``--numstat`` lines (line counts) in the same order, so the two
are zipped by position. Root commits are diffed against the empty tree.

Every commit reachable from HEAD is walked, side branches included, so a
merge brings nothing new: its content already arrived through the merged
commits. Merges therefore yield events without changes unless
``include_merges`` is set, in which case they carry their first-parent
diff.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import timezone
from typing import Optional

from ..config import ScanConfig
from ..exceptions import RepositoryError
from ..logging_config import get_logger
from ..paths import normalize_path
from ..progress import CancellationToken
from .arena import PathArena
from .git import GitRepository
from .models import ChangeEvent, ChangeKind, FileChange, User

logger = get_logger(__name__)

_RECORD = "\x1e"
_FIELD = "\x1f"
_TRAILER_SEP = "\x1d"

LOG_FORMAT = (
    "%x1e%H%x1f%P%x1f%ct%x1f%at%x1f%an%x1f%ae%x1f%cn%x1f%ce%x1f%s%x1f"
    "%(trailers:key=Co-authored-by,valueonly,separator=%x1d)"
)

_SHA_RE = re.compile(r"^[0-9a-f]{40}([0-9a-f]{24})?$")
_NUMSTAT_RE = re.compile(r"^(\d+|-)\t(\d+|-)\t")
_CO_AUTHOR_RE = re.compile(r"^(.*?)\s*<([^<>]*)>\s*$")

_GITLINK_MODE = "160000"

_STATUS_KINDS = {
    "A": ChangeKind.ADD,
    "M": ChangeKind.MODIFY,
    "D": ChangeKind.DELETE,
    "R": ChangeKind.RENAME,
    "C": ChangeKind.COPY,
    "T": ChangeKind.TYPE_CHANGE,
    "B": ChangeKind.MODIFY,
}

_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of unusual path names.

    Git wraps a path in double quotes and backslash-escapes control
    characters, quotes and backslashes (octal for raw bytes). Unquoted
    paths are returned unchanged.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    body = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out += ch.encode("utf-8", "surrogateescape")
            i += 1
            continue
        nxt = body[i + 1 : i + 2]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        elif body[i + 1 : i + 4].isdigit():
            out.append(int(body[i + 1 : i + 4], 8) & 0xFF)
            i += 4
        else:
            raise RepositoryError(f"malformed quoted path in git output: {path!r}")
    return out.decode("utf-8", "surrogateescape")


def parse_co_authors(raw: str) -> tuple[User, ...]:
    """Parse ``Co-authored-by`` trailer values.

    Accepts ``Name <email>``, a bare email address, or a bare name.
    """
    users: list[User] = []
    for value in raw.split(_TRAILER_SEP):
        value = value.strip()
        if not value:
            continue
        match = _CO_AUTHOR_RE.match(value)
        if match:
            users.append(User(name=match.group(1).strip(), email=match.group(2).strip()))
        elif "@" in value and " " not in value:
            users.append(User(name="", email=value))
        else:
            users.append(User(name=value, email=""))
    return tuple(users)


class _RawChange:
    """One ``--raw`` line, before rename resolution."""

    __slots__ = ("status", "paths", "gitlink", "added", "deleted")

    def __init__(self, status: str, paths: list[str], gitlink: bool):
        self.status = status
        self.paths = paths
        self.gitlink = gitlink
        self.added = 0
        self.deleted = 0


class _PendingCommit:
    """A commit whose header has been read but whose diff may continue."""

    def __init__(
        self,
        commit_id: str,
        parent_ids: tuple[str, ...],
        timestamp: int,
        author: User,
        summary: str,
        co_authors: tuple[User, ...],
        committer: Optional[User] = None,
        author_time: Optional[int] = None,
    ):
        self.commit_id = commit_id
        self.parent_ids = parent_ids
        self.timestamp = timestamp
        self.author = author
        self.committer = committer
        self.author_time = author_time
        self.summary = summary
        self.co_authors = co_authors
        self.raw: list[_RawChange] = []
        self.numstat: list[tuple[int, int]] = []


class HistoryMiner:
    """Lazy, oldest-first stream of ChangeEvents for one repository.

    A miner owns its PathArena and can be walked once; create a new miner
    to walk again.

    Example:
        >>> miner = HistoryMiner(GitRepository("."))
        >>> for event in miner.events():
        ...     print(event.commit_id, len(event.changes))
    """

    def __init__(
        self,
        repo: GitRepository,
        config: Optional[ScanConfig] = None,
        arena: Optional[PathArena] = None,
    ):
        config = config or ScanConfig()
        self.repo = repo
        self.rename_threshold = config.rename_threshold
        self.since = config.since
        self.include_merges = config.include_merges
        self.arena = arena if arena is not None else PathArena()
        self.commits_seen = 0
        self.stopped_early = False
        self._started = False

    def log_args(self) -> list[str]:
        """Arguments of the single ``git log`` invocation."""
        args = [
            "log",
            "--reverse",
            "--date-order",
            "--root",
            "--diff-merges=first-parent" if self.include_merges else "--diff-merges=off",
            f"-M{self.rename_threshold}%",
            "--raw",
            "--numstat",
            "--no-abbrev",
            "-l0",
            "--no-textconv",
            "--no-ext-diff",
            f"--format={LOG_FORMAT}",
        ]
        if self.since is not None:
            bound = self.since.astimezone(timezone.utc)
            args.append(f"--since={bound.strftime('%Y-%m-%d %H:%M:%S')} +0000")
        args += ["HEAD", "--"]
        return args

    def events(self, cancel: Optional[CancellationToken] = None) -> Iterator[ChangeEvent]:
        """Yield one ChangeEvent per commit reachable from HEAD, oldest first.

        Commits without file changes (empty commits, and merges unless
        ``include_merges`` is set) still yield an event with no changes.

        Args:
            cancel: Checked between commits; when set the walk stops and
                ``stopped_early`` is True

        Raises:
            HistoryUnavailable: If the repository has no commits
            RepositoryError: If git fails mid-walk or prints output that
                cannot be parsed
            RuntimeError: If called a second time
        """
        if self._started:
            raise RuntimeError("HistoryMiner.events() can only be consumed once")
        self._started = True
        self.repo.require_head()
        return self._walk(cancel)

    def _walk(self, cancel: Optional[CancellationToken]) -> Iterator[ChangeEvent]:
        pending: Optional[_PendingCommit] = None
        for line in self.repo.stream(self.log_args()):
            if line.startswith(_RECORD):
                if pending is not None:
                    yield self._finish(pending)
                    if cancel is not None and cancel.cancelled:
                        self.stopped_early = True
                        logger.info("History walk cancelled after %d commits", self.commits_seen)
                        return
                pending = self._parse_header(line)
            elif not line.strip():
                continue
            elif pending is None:
                raise RepositoryError(f"unexpected git log output: {line[:80]!r}")
            elif line.startswith(":"):
                pending.raw.append(self._parse_raw(line))
            else:
                match = _NUMSTAT_RE.match(line)
                if match is None:
                    raise RepositoryError(f"unexpected git log output: {line[:80]!r}")
                added, deleted = match.groups()
                pending.numstat.append(
                    (0 if added == "-" else int(added), 0 if deleted == "-" else int(deleted))
                )
        if pending is not None:
            yield self._finish(pending)
        logger.debug("History walk finished: %d commits", self.commits_seen)

    # ── Parsing ────────────────────────────────────────────────

    def _parse_header(self, line: str) -> _PendingCommit:
        parts = line[1:].split(_FIELD, 8)
        if len(parts) != 9:
            raise RepositoryError(f"unparsable commit header: {line[:80]!r}")
        (
            sha,
            parents,
            committed,
            authored,
            name,
            email,
            committer_name,
            committer_email,
            rest,
        ) = parts
        summary, _, trailers = rest.rpartition(_FIELD)
        if not _SHA_RE.match(sha):
            raise RepositoryError(f"unparsable commit id: {sha!r}")
        try:
            timestamp = int(committed)
            author_time = int(authored)
        except ValueError:
            raise RepositoryError(f"unparsable commit times {committed!r}/{authored!r} in {sha}")
        return _PendingCommit(
            commit_id=sha,
            parent_ids=tuple(parents.split()),
            timestamp=timestamp,
            author=User(name=name, email=email),
            summary=summary,
            co_authors=parse_co_authors(trailers),
            committer=User(name=committer_name, email=committer_email),
            author_time=author_time,
        )

    @staticmethod
    def _parse_raw(line: str) -> _RawChange:
        # :<old mode> <new mode> <old sha> <new sha> <status>\t<path>[\t<path>]
        meta, *paths = line.split("\t")
        fields = meta[1:].split()
        if len(fields) != 5 or not paths:
            raise RepositoryError(f"unparsable raw diff line: {line[:80]!r}")
        old_mode, new_mode, _, _, status = fields
        gitlink = _GITLINK_MODE in (old_mode, new_mode)
        return _RawChange(
            status=status,
            paths=[normalize_path(unquote_path(p)) for p in paths],
            gitlink=gitlink,
        )

    # ── Rename resolution ──────────────────────────────────────

    def _finish(self, pending: _PendingCommit) -> ChangeEvent:
        if pending.numstat and len(pending.numstat) != len(pending.raw):
            logger.debug(
                "Commit %s: %d raw vs %d numstat lines, line counts dropped",
                pending.commit_id[:12],
                len(pending.raw),
                len(pending.numstat),
            )
        else:
            for raw, (added, deleted) in zip(pending.raw, pending.numstat):
                raw.added = added
                raw.deleted = deleted

        changes = self._resolve(pending)
        self.commits_seen += 1
        return ChangeEvent(
            commit_id=pending.commit_id,
            author=pending.author,
            timestamp=pending.timestamp,
            changes=tuple(changes),
            parent_ids=pending.parent_ids,
            co_authors=pending.co_authors,
            summary=pending.summary,
            committer=pending.committer,
            author_time=pending.author_time,
        )

    def _resolve(self, pending: _PendingCommit) -> list[FileChange]:
        """Apply one commit's changes to the arena.

        Renames go first as one batch, then deletes, then adds and copies,
        then in-place modifications. A source renamed to several targets
        is treated as a delete plus adds.
        """
        entries: list[tuple[ChangeKind, _RawChange]] = []
        for raw in pending.raw:
            if raw.gitlink:
                continue
            kind = _STATUS_KINDS.get(raw.status[:1])
            if kind is None:
                logger.warning(
                    "Commit %s: skipping %s with status %s",
                    pending.commit_id[:12],
                    raw.paths[-1],
                    raw.status,
                )
                continue
            entries.append((kind, raw))

        sources: dict[str, int] = {}
        for kind, raw in entries:
            if kind is ChangeKind.RENAME:
                sources[raw.paths[0]] = sources.get(raw.paths[0], 0) + 1
        ambiguous = {path for path, uses in sources.items() if uses > 1}

        slots: list[Optional[FileChange]] = [None] * len(entries)
        extra: list[FileChange] = []

        renames = [
            (ix, raw)
            for ix, (kind, raw) in enumerate(entries)
            if kind is ChangeKind.RENAME and raw.paths[0] not in ambiguous
        ]
        if renames:
            ids = self.arena.rename_all([(raw.paths[0], raw.paths[1]) for _, raw in renames])
            for (ix, raw), file_id in zip(renames, ids):
                slots[ix] = _change(ChangeKind.RENAME, raw, file_id, old_path=raw.paths[0])

        for source in sorted(ambiguous):
            logger.debug(
                "Commit %s: %s renamed to several paths, treated as delete and adds",
                pending.commit_id[:12],
                source,
            )
            extra.append(
                FileChange(
                    kind=ChangeKind.DELETE, new_path=source, file_id=self.arena.delete(source)
                )
            )

        for ix, (kind, raw) in enumerate(entries):
            if kind is ChangeKind.DELETE:
                slots[ix] = _change(kind, raw, self.arena.delete(raw.paths[0]))

        for ix, (kind, raw) in enumerate(entries):
            if kind in (ChangeKind.ADD, ChangeKind.COPY) or (
                kind is ChangeKind.RENAME and raw.paths[0] in ambiguous
            ):
                target = raw.paths[-1]
                old_path = raw.paths[0] if len(raw.paths) > 1 else None
                slots[ix] = _change(
                    ChangeKind.ADD if kind is ChangeKind.RENAME else kind,
                    raw,
                    self.arena.intern(target),
                    old_path=old_path,
                )

        for ix, (kind, raw) in enumerate(entries):
            if kind in (ChangeKind.MODIFY, ChangeKind.TYPE_CHANGE):
                slots[ix] = _change(kind, raw, self.arena.intern(raw.paths[-1]))

        return [change for change in slots if change is not None] + extra


def _change(
    kind: ChangeKind, raw: _RawChange, file_id: int, old_path: Optional[str] = None
) -> FileChange:
    return FileChange(
        kind=kind,
        new_path=raw.paths[-1],
        old_path=old_path,
        file_id=file_id,
        lines_added=raw.added,
        lines_deleted=raw.deleted,
    )
