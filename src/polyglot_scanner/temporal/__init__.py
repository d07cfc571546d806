"""Temporal analysis: git history, rename tracking and co-change coupling."""

from .arena import PathArena
from .coupling import CouplingAccumulator
from .git import GitRepository
from .history import mine_history
from .miner import HistoryMiner
from .models import (
    ChangeEvent,
    ChangeKind,
    CouplingEntry,
    FileChange,
    FileHistory,
    FileHistoryStats,
    HistoryResult,
    User,
)

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "CouplingAccumulator",
    "CouplingEntry",
    "FileChange",
    "FileHistory",
    "FileHistoryStats",
    "GitRepository",
    "HistoryMiner",
    "HistoryResult",
    "PathArena",
    "User",
    "mine_history",
]
