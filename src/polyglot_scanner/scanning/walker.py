"""Working-tree discovery: which files a scan measures."""

from __future__ import annotations

from ..config import ScanConfig
from ..logging_config import get_logger
from ..paths import PathFilter
from ..temporal.git import GitRepository

logger = get_logger(__name__)


def list_working_files(repo: GitRepository, config: ScanConfig) -> list[str]:
    """Tracked files present in the work tree, minus exclusions.

    Files listed by git but missing on disk (deleted, not yet committed)
    are dropped, as are submodule directories. Symlinks are skipped unless
    ``config.follow_symlinks`` is set.

    Returns:
        Sorted repository-relative paths
    """
    path_filter = PathFilter(config.exclude_patterns)
    files: list[str] = []
    excluded = 0
    for path in repo.list_files(include_untracked=config.include_untracked):
        if path_filter.excludes(path):
            excluded += 1
            continue
        full = repo.root / path
        if full.is_symlink() and not config.follow_symlinks:
            logger.debug("Skipping symlink %s", path)
            continue
        if not full.is_file():
            logger.debug("Skipping %s: not a regular file in the work tree", path)
            continue
        files.append(path)

    logger.info("Discovered %d files (%d excluded)", len(files), excluded)
    return files
