"""Exception hierarchy for Polyglot Scanner."""

from .base import ScannerError
from .config import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    UnknownConfigKeys,
)
from .scan import (
    FileReadError,
    HistoryUnavailable,
    PartialScan,
    RepositoryError,
    SerializationError,
    UnreadableFile,
)

__all__ = [
    "ScannerError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "ConfigFileError",
    "UnknownConfigKeys",
    "RepositoryError",
    "HistoryUnavailable",
    "FileReadError",
    "UnreadableFile",
    "PartialScan",
    "SerializationError",
]
