"""Path normalisation and exclusion matching.

Every component joins on repository-relative paths, so paths from git
output and from the working tree pass through ``normalize_path`` before
any comparison.
"""

from __future__ import annotations

from pathlib import PurePath, PureWindowsPath
from typing import Iterable, Union

import pathspec


def normalize_path(path: Union[str, PurePath]) -> str:
    """Normalise a repository-relative path to forward-slash form.

    Strips leading ``./`` and trailing separators and collapses repeated
    separators. Backslashes are treated as separators.

    Examples:
        >>> normalize_path("src\\\\lib\\\\a.rs")
        'src/lib/a.rs'
        >>> normalize_path("./docs//index.md")
        'docs/index.md'
    """
    if isinstance(path, PurePath):
        text = path.as_posix()
    else:
        text = str(path)
    text = PureWindowsPath(text).as_posix() if "\\" in text else text
    parts = [p for p in text.split("/") if p not in ("", ".")]
    return "/".join(parts)


def split_path(path: str) -> list[str]:
    """Split a normalised path into its segments."""
    return [p for p in path.split("/") if p]


class PathFilter:
    """gitignore-style exclusion patterns over normalised paths."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = [p for p in patterns if p and p.strip()]
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.patterns)

    def excludes(self, path: str) -> bool:
        """True if ``path`` matches any exclusion pattern."""
        if not self.patterns:
            return False
        return self._spec.match_file(normalize_path(path))

    def __bool__(self) -> bool:
        return bool(self.patterns)
