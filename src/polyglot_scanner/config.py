"""Configuration loading and management for Polyglot Scanner.

Configuration sources are merged in priority order:
    1. Defaults (defined in ScanConfig)
    2. Global config (~/.polyglot-scanner.toml)
    3. Project config (./polyglot-scanner.toml)
    4. Explicit config file
    5. Environment variables (POLYGLOT_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(top_coupled=5)
    >>> config.top_coupled
    5
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional, get_type_hints

from .exceptions import ConfigFileError, InvalidConfigError, UnknownConfigKeys

GLOBAL_CONFIG_NAME = ".polyglot-scanner.toml"
PROJECT_CONFIG_NAME = "polyglot-scanner.toml"
ENV_PREFIX = "POLYGLOT_"


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for one scan run.

    All fields have sensible defaults. Users typically override only a few
    via CLI flags or a config file.

    Attributes:
        History mining:
            rename_threshold: Similarity percentage (0-100) for git rename
                detection; 100 means exact renames only
            since: Only walk commits newer than this time (None = full history)
            include_merges: Give merge commits their first-parent diff; by
                default merges are walked but change no files, since their
                content already arrived through the merged commits

        Coupling:
            coupling_ceiling: Commits touching more paths than this add no
                coupling pairs (individual change counts still increment)
            top_coupled: Coupled files kept per file in the output tree

        File scanning:
            exclude_patterns: gitignore-style patterns removed from the tree
            include_untracked: Also scan untracked, non-ignored files
            follow_symlinks: Measure symlink targets instead of skipping them
            max_file_size_mb: Larger files are recorded as unreadable
            tab_width: Indentation depth contributed by one tab
            workers: Parallel file-scan workers (None = auto-detect)
    """

    # History mining
    rename_threshold: int = 50
    since: Optional[datetime] = None
    include_merges: bool = False

    # Coupling
    coupling_ceiling: int = 100
    top_coupled: int = 10

    # File scanning
    exclude_patterns: list[str] = field(default_factory=list)
    include_untracked: bool = False
    follow_symlinks: bool = False
    max_file_size_mb: float = 10.0
    tab_width: int = 4
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not 0 <= self.rename_threshold <= 100:
            raise InvalidConfigError(
                "rename_threshold", self.rename_threshold, "must be between 0 and 100"
            )
        if self.coupling_ceiling < 2:
            raise InvalidConfigError(
                "coupling_ceiling", self.coupling_ceiling, "must be at least 2"
            )
        if self.top_coupled < 0:
            raise InvalidConfigError("top_coupled", self.top_coupled, "must be non-negative")
        if self.max_file_size_mb <= 0:
            raise InvalidConfigError(
                "max_file_size_mb", self.max_file_size_mb, "must be positive"
            )
        if self.tab_width < 1:
            raise InvalidConfigError("tab_width", self.tab_width, "must be at least 1")
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.since is not None and self.since.tzinfo is None:
            # Naive bounds are read as UTC
            object.__setattr__(self, "since", self.since.replace(tzinfo=timezone.utc))

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    @property
    def since_timestamp(self) -> Optional[int]:
        """The ``since`` bound as unix seconds."""
        if self.since is None:
            return None
        return int(self.since.timestamp())


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> ScanConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset CLI options keep file defaults

    Returns:
        Validated ScanConfig instance

    Raises:
        ConfigFileError: If a config file is missing or invalid
        UnknownConfigKeys: If any source names a setting that does not exist
        InvalidConfigError: If a value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigFileError(config_file, "not found")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if "since" in merged:
        merged["since"] = parse_since(merged["since"])

    known = {f.name for f in fields(ScanConfig)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise UnknownConfigKeys(unknown)

    return ScanConfig(**merged)


def parse_since(value: Any) -> Optional[datetime]:
    """Coerce a ``since`` value from TOML, env or CLI into a datetime."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise InvalidConfigError("since", value, "expected an ISO 8601 date or datetime")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from POLYGLOT_* environment variables.

    Supported environment variables:
        POLYGLOT_RENAME_THRESHOLD: int
        POLYGLOT_COUPLING_CEILING: int
        POLYGLOT_TOP_COUPLED: int
        POLYGLOT_SINCE: ISO 8601 date
        POLYGLOT_INCLUDE_MERGES: bool
        POLYGLOT_INCLUDE_UNTRACKED: bool (true/false/1/0)
        POLYGLOT_FOLLOW_SYMLINKS: bool
        POLYGLOT_MAX_FILE_SIZE_MB: float
        POLYGLOT_TAB_WIDTH: int
        POLYGLOT_WORKERS: int

    Returns:
        Dict of field_name -> parsed_value for any POLYGLOT_* vars found.
    """
    type_hints = get_type_hints(ScanConfig)
    result: dict[str, Any] = {}

    for f in fields(ScanConfig):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hints[f.name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[f.name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot be expressed in one variable
    (lists), so those are left to config files.
    """
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]

    origin = getattr(type_hint, "__origin__", None)
    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is datetime:
        return value

    return value


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML config file.

    Accepts either top-level keys or a ``[scan]`` table.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, str(e))
    scan_table = data.pop("scan", None)
    if isinstance(scan_table, dict):
        data.update(scan_table)
    return data
