"""Metrics tree: per-file records folded into aggregated directories."""

from .aggregate import REDUCTIONS, DirectoryMetrics
from .builder import (
    DirectoryNode,
    FileNode,
    TreeNode,
    build_file_records,
    build_tree,
    project_coupling,
)
from .records import CoupledFile, FileRecord, ScanResult
from .serializer import dumps, loads, write

__all__ = [
    "CoupledFile",
    "DirectoryMetrics",
    "DirectoryNode",
    "FileNode",
    "FileRecord",
    "REDUCTIONS",
    "ScanResult",
    "TreeNode",
    "build_file_records",
    "build_tree",
    "dumps",
    "loads",
    "project_coupling",
    "write",
]
