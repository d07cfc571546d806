"""
Polyglot Scanner - Repository metrics trees from code and history

Scans a git work tree and its commit history and produces one JSON tree
mirroring the directory structure: line counts and indentation
distributions per file, change frequency, authorship and co-change
coupling from history, aggregated at every directory level for treemap
and sunburst views.
"""

__version__ = "0.1.0"

from .config import ScanConfig, load_config
from .core import scan_repository
from .progress import CancellationToken, NullProgress, ProgressSink, ScanStage
from .tree import ScanResult, dumps, loads

__all__ = [
    "scan_repository",  # Main entry point
    "ScanConfig",
    "load_config",
    "ScanResult",
    "CancellationToken",
    "ProgressSink",
    "NullProgress",
    "ScanStage",
    "dumps",
    "loads",
]
