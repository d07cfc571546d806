"""JSON encoding of the metrics tree.

The document follows the d3 "flare" layout that treemap and sunburst
views consume directly::

    {"name": "repo", "kind": "directory",
     "data": {"scan": {...}, "loc": {...}, "indentation": {...}, "git": {...}},
     "children": [{"name": "main.rs", "kind": "file", "data": {...}}, ...]}

Output is deterministic: keys are sorted, children are in name order and
nothing about the run itself (time, host, duration) is written, so the
same repository state always serialises to the same bytes.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..exceptions import SerializationError
from ..logging_config import get_logger
from ..scanning.digest import IndentationDigest
from ..temporal.models import FileHistory
from .aggregate import DirectoryMetrics
from .builder import DirectoryNode, FileNode, TreeNode, build_tree
from .records import CoupledFile, FileRecord, ScanResult

logger = get_logger(__name__)


# ── Encoding ───────────────────────────────────────────────────


def _file_git(history: Optional[FileHistory]) -> Optional[dict[str, Any]]:
    if history is None:
        return None
    return {
        "changes": history.total_change_count,
        "first_seen": history.first_seen,
        "last_changed": history.last_changed,
        "lines_added": history.lines_added,
        "lines_deleted": history.lines_deleted,
        "authors": sorted(history.authors),
        "author_changes": dict(sorted(history.author_change_counts.items())),
    }


def _directory_git(metrics: DirectoryMetrics) -> dict[str, Any]:
    return {
        "changes": metrics.total_changes,
        "first_seen": metrics.first_seen,
        "last_changed": metrics.last_changed,
        "lines_added": metrics.lines_added,
        "lines_deleted": metrics.lines_deleted,
        "authors": sorted(metrics.authors),
        "author_count": metrics.author_count,
    }


def _encode_file(node: FileNode) -> dict[str, Any]:
    record = node.record
    return {
        "name": node.name,
        "kind": "file",
        "data": {
            "language": record.language,
            "bytes": record.bytes,
            "binary": record.is_binary,
            "error": record.read_error,
            "loc": record.digest.loc_dict(),
            "indentation": record.digest.indentation_dict(),
            "git": _file_git(record.history),
            "coupling": [
                {"path": c.path, "count": c.co_change_count, "ratio": c.ratio}
                for c in record.coupled
            ],
        },
    }


def _encode_directory(node: DirectoryNode) -> dict[str, Any]:
    metrics = node.metrics
    return {
        "name": node.name,
        "kind": "directory",
        "data": {
            "files": metrics.file_count,
            "binary_files": metrics.binary_file_count,
            "error_files": metrics.error_file_count,
            "bytes": metrics.bytes,
            "loc": metrics.digest.loc_dict(),
            "indentation": metrics.digest.indentation_dict(),
            "git": _directory_git(metrics),
        },
        "children": [encode_node(child) for child in node.children],
    }


def encode_node(node: TreeNode) -> dict[str, Any]:
    """Plain-dict form of a node and everything below it."""
    if isinstance(node, FileNode):
        return _encode_file(node)
    return _encode_directory(node)


def to_document(result: ScanResult) -> dict[str, Any]:
    document = encode_node(result.tree)
    document["data"]["scan"] = {
        "complete": result.complete,
        "files": result.file_count,
        "commits": result.commit_count,
        "version": result.version,
    }
    return document


def dumps(result: ScanResult, indent: Optional[int] = 2) -> str:
    """Serialise a scan result to JSON text.

    Raises:
        SerializationError: If the tree holds values JSON cannot represent,
            such as NaN or paths that are not valid UTF-8
    """
    try:
        text = json.dumps(
            to_document(result),
            indent=indent,
            sort_keys=True,
            ensure_ascii=False,
            allow_nan=False,
        )
        text.encode("utf-8")
    except (TypeError, ValueError) as e:
        # UnicodeEncodeError is a ValueError
        raise SerializationError(str(e))
    return text + "\n"


def write(result: ScanResult, path: Path, indent: Optional[int] = 2) -> None:
    """Write a scan result to ``path``, replacing it atomically."""
    text = dumps(result, indent=indent)
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise SerializationError(f"cannot write {path}: {e}")
    logger.info("Wrote %d bytes to %s", len(text.encode("utf-8")), path)


# ── Decoding ───────────────────────────────────────────────────


def _decode_history(path: str, git: Optional[dict[str, Any]]) -> Optional[FileHistory]:
    if git is None:
        return None
    return FileHistory(
        path=path,
        first_seen=int(git["first_seen"]),
        last_changed=int(git["last_changed"]),
        total_change_count=int(git["changes"]),
        author_changes=tuple(
            sorted((k, int(v)) for k, v in git.get("author_changes", {}).items())
        ),
        lines_added=int(git.get("lines_added", 0)),
        lines_deleted=int(git.get("lines_deleted", 0)),
    )


def _decode_file(path: str, data: dict[str, Any]) -> FileRecord:
    return FileRecord(
        path=path,
        language=data["language"],
        bytes=int(data["bytes"]),
        is_binary=bool(data["binary"]),
        read_error=data.get("error"),
        digest=IndentationDigest.from_dicts(data["loc"], data.get("indentation")),
        history=_decode_history(path, data.get("git")),
        coupled=tuple(
            CoupledFile(path=c["path"], co_change_count=int(c["count"]), ratio=float(c["ratio"]))
            for c in data.get("coupling", [])
        ),
    )


def _collect_records(node: dict[str, Any], prefix: str, out: dict[str, FileRecord]) -> None:
    stack = [(node, prefix)]
    while stack:
        current, base = stack.pop()
        for child in current.get("children", []):
            path = f"{base}/{child['name']}" if base else child["name"]
            if child["kind"] == "file":
                out[path] = _decode_file(path, child["data"])
            else:
                stack.append((child, path))


def loads(text: str) -> ScanResult:
    """Rebuild a ScanResult from ``dumps`` output.

    Directory metrics are recomputed from the file records, so a document
    whose directory data disagrees with its files is normalised.

    Raises:
        SerializationError: If the text is not a tree document
    """
    try:
        document = json.loads(text)
        records: dict[str, FileRecord] = {}
        _collect_records(document, "", records)
        scan = document["data"].get("scan", {})
        return ScanResult(
            tree=build_tree(records, root_name=document["name"]),
            complete=bool(scan.get("complete", True)),
            file_count=int(scan.get("files", len(records))),
            commit_count=int(scan.get("commits", 0)),
            version=str(scan.get("version", "")),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SerializationError(f"not a metrics tree document: {e}")
