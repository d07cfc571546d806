"""File metrics builder: bytes of one file in, one FileMetrics out."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import UnreadableFile
from ..logging_config import get_logger
from .collector import DEFAULT_COLLECTOR, LineCollector
from .digest import EMPTY_DIGEST, IndentationDigest
from .languages import language_for

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileMetrics:
    """Static metrics for one working-tree file."""

    path: str
    language: str
    bytes: int = 0
    is_binary: bool = False
    digest: IndentationDigest = EMPTY_DIGEST
    error: Optional[str] = None

    @classmethod
    def failed(cls, path: str, reason: str) -> FileMetrics:
        """Empty metrics for a file that could not be read."""
        return cls(path=path, language=language_for(path).name, error=reason)


class FileMetricsBuilder:
    """Read a file and turn its contents into a FileMetrics.

    Only the bytes matter: the same bytes always give the same metrics,
    and no filesystem metadata (mtime, mode, ...) is consulted.
    """

    def __init__(
        self,
        collector: Optional[LineCollector] = None,
        tab_width: int = 4,
        max_file_size_bytes: Optional[int] = None,
    ):
        self.collector = collector or DEFAULT_COLLECTOR
        self.tab_width = tab_width
        self.max_file_size_bytes = max_file_size_bytes

    def build(self, root: Path, path: str) -> FileMetrics:
        """Measure ``root / path``.

        Raises:
            UnreadableFile: If the file cannot be opened, is larger than the
                size limit, or cannot be decoded as text
        """
        full = root / path
        limit = self.max_file_size_bytes
        try:
            with open(full, "rb") as f:
                data = f.read() if limit is None else f.read(limit + 1)
        except OSError as e:
            raise UnreadableFile(full, f"Cannot read file: {e.strerror or e}")
        if limit is not None and len(data) > limit:
            raise UnreadableFile(full, f"File exceeds size limit of {limit} bytes")
        return self.build_from_bytes(data, path)

    def build_from_bytes(self, data: bytes, path: str) -> FileMetrics:
        """Measure in-memory file contents stored at ``path``."""
        counts = self.collector.collect(data, path)
        if counts.is_binary:
            return FileMetrics(path=path, language=counts.language, bytes=len(data), is_binary=True)
        return FileMetrics(
            path=path,
            language=counts.language,
            bytes=len(data),
            digest=IndentationDigest.from_line_counts(counts, self.tab_width),
        )
