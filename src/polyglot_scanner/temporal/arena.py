"""Path arena: interns paths to small integers and follows renames.

Each logical file gets an integer id the first time its path appears.
A rename moves the id to the new path, so counts keyed by id follow the
file through every rename; a delete detaches the id from its path so a
later add at the same path starts a fresh history.
"""

from __future__ import annotations

from typing import Optional

from ..logging_config import get_logger

logger = get_logger(__name__)


class PathArena:
    """Bidirectional path <-> id table for one history walk."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._names: list[str] = []
        self._live: list[bool] = []

    def __len__(self) -> int:
        return len(self._names)

    def intern(self, path: str) -> int:
        """Id currently bound to ``path``, creating one if needed."""
        file_id = self._ids.get(path)
        if file_id is None:
            file_id = len(self._names)
            self._names.append(path)
            self._live.append(True)
            self._ids[path] = file_id
        return file_id

    def lookup(self, path: str) -> Optional[int]:
        return self._ids.get(path)

    def rename(self, old_path: str, new_path: str) -> int:
        """Move the id of ``old_path`` to ``new_path`` and return it."""
        return self.rename_all([(old_path, new_path)])[0]

    def rename_all(self, pairs: list[tuple[str, str]]) -> list[int]:
        """Apply one commit's renames at once.

        All sources are unbound before any target is bound, so swaps
        (a -> b, b -> a) keep both histories. Whatever was bound to a
        target and is not itself being moved is detached.
        """
        ids = [self.intern(old) for old, _ in pairs]
        for old, _ in pairs:
            self._ids.pop(old, None)
        for (old, new), file_id in zip(pairs, ids):
            displaced = self._ids.get(new)
            if displaced is not None and displaced != file_id:
                self._live[displaced] = False
                logger.debug("Rename %s -> %s replaces an existing history", old, new)
            self._ids[new] = file_id
            self._names[file_id] = new
            self._live[file_id] = True
        return ids

    def delete(self, path: str) -> int:
        """Detach ``path`` from its id and return the id."""
        file_id = self.intern(path)
        del self._ids[path]
        self._live[file_id] = False
        return file_id

    def name(self, file_id: int) -> str:
        """Latest path of a logical file (its last name if deleted)."""
        return self._names[file_id]

    def is_live(self, file_id: int) -> bool:
        return self._live[file_id]

    def live_paths(self) -> dict[int, str]:
        """Ids still bound to a path after the walk."""
        return {file_id: path for path, file_id in self._ids.items()}
