"""Static file metrics: line classification, indentation digests, scanning."""

from .builder import FileMetrics, FileMetricsBuilder
from .collector import DEFAULT_COLLECTOR, CommentAwareCollector, LineCollector, LineCounts, LineData
from .digest import EMPTY_DIGEST, IndentationDigest
from .scanner import FileScanner, FileScanResult
from .sniffer import DEFAULT_SNIFFER, ContentSniffer, NullByteSniffer
from .walker import list_working_files

__all__ = [
    "CommentAwareCollector",
    "ContentSniffer",
    "DEFAULT_COLLECTOR",
    "DEFAULT_SNIFFER",
    "EMPTY_DIGEST",
    "FileMetrics",
    "FileMetricsBuilder",
    "FileScanResult",
    "FileScanner",
    "IndentationDigest",
    "LineCollector",
    "LineCounts",
    "LineData",
    "NullByteSniffer",
    "list_working_files",
]
