"""Errors raised while resolving settings, before any scanning starts."""

from pathlib import Path
from typing import Any, Iterable

from .base import ScannerError


class ConfigurationError(ScannerError):
    """Settings could not be resolved. Always fatal."""


class InvalidPathError(ConfigurationError):
    """The scan target is not a usable directory."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Cannot scan {path}",
            details={"reason": reason},
            hint="Pass a directory inside a git work tree",
        )
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """A single setting has a value outside its allowed range or format.

    ``key`` is the setting name, or the environment variable when the
    value came from one.
    """

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(f"{key}={value!r}: {reason}", details={"key": key})
        self.key = key
        self.value = value
        self.reason = reason


class ConfigFileError(ConfigurationError):
    """A TOML settings file is missing, unreadable or malformed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Config file {path}: {reason}", details={"file": path})
        self.path = path
        self.reason = reason


class UnknownConfigKeys(ConfigurationError):
    """Settings named keys the scanner does not recognise."""

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(keys)
        super().__init__(
            f"Unknown configuration keys: {', '.join(self.keys)}",
            hint="Keys may sit at the top level or under a [scan] table",
        )
