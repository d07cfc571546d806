"""Run the miner and the accumulator together over one repository."""

from __future__ import annotations

from typing import Callable, Optional

from ..config import ScanConfig
from ..progress import CancellationToken
from .coupling import CouplingAccumulator
from .git import GitRepository
from .miner import HistoryMiner
from .models import HistoryResult


def mine_history(
    repo: GitRepository,
    config: Optional[ScanConfig] = None,
    cancel: Optional[CancellationToken] = None,
    on_commit: Optional[Callable[[], None]] = None,
) -> HistoryResult:
    """Walk the whole history and return per-file stats and coupling.

    Args:
        repo: Repository to walk
        config: Rename threshold, ``since`` bound and coupling ceiling
        cancel: Stops the walk between commits; the result is then
            marked incomplete
        on_commit: Called after each commit is accumulated

    Raises:
        HistoryUnavailable: If the repository has no commits
        RepositoryError: If the walk fails
    """
    config = config or ScanConfig()
    miner = HistoryMiner(repo, config)
    accumulator = CouplingAccumulator(coupling_ceiling=config.coupling_ceiling)
    for event in miner.events(cancel):
        accumulator.add(event)
        if on_commit is not None:
            on_commit()
    return accumulator.finish(miner.arena, complete=not miner.stopped_early)
