"""Configuration dataclasses for marker-lock.

These dataclasses centralize all configuration options for type safety
and easy testing. They can be created from environment variables, from
command-line arguments, or used directly in code.
"""

from __future__ import annotations

import argparse
import logging
import math
import os
from dataclasses import dataclass, replace

from dotenv import find_dotenv, load_dotenv

from marker_lock.core.constants import (
    DEFAULT_EXCLUSIVE_CREATE,
    DEFAULT_INTERVAL_MS,
    DEFAULT_LOCK_FOLDER,
    DEFAULT_RAISE_ERROR,
    DEFAULT_TIMEOUT_MS,
    ENV_VAR_MAPPING,
    FALSY_VALUES,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FORMAT_ENV,
    LOG_LEVEL_ENV,
    TRUTHY_VALUES,
    VALID_LOG_FORMATS,
    VALID_LOG_LEVELS,
)
from marker_lock.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def normalize_folder_path(folder: str | os.PathLike[str] | None) -> str:
    """Return the folder as a string that always ends with a path separator."""
    if folder is None:
        return DEFAULT_LOCK_FOLDER
    folder = os.fspath(folder)
    if not folder:
        return DEFAULT_LOCK_FOLDER
    if not folder.endswith(("/", os.sep)):
        folder += os.sep
    return folder


def validate_duration_ms(value: int | float, field: str) -> int | float:
    """Reject negative, NaN or non-numeric durations (and infinite intervals)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{field} must be a number of milliseconds", field=field, details=repr(value))
    if math.isnan(value):
        raise ConfigurationError(f"{field} must be a number of milliseconds", field=field, details=repr(value))
    if value < 0:
        raise ConfigurationError(f"{field} must not be negative", field=field, details=str(value))
    if math.isinf(value) and field == "interval_ms":
        raise ConfigurationError(f"{field} must be finite", field=field, details=repr(value))
    return value


@dataclass(frozen=True)
class LockConfig:
    """Configuration for one lock coordinator.

    Instances are immutable; the coordinator setters swap in a replaced copy
    so two coordinators never share mutable defaults.

    Attributes:
        lock_name: Default lock name used when an operation omits it (default: None)
        lock_folder: Folder holding lock files, always ending with a separator (default: "./")
        timeout_ms: Maximum total wait for acquire (default: 300000)
        interval_ms: Delay between two existence checks (default: 60000)
        raise_error: Log an error when acquisition times out (default: True)
        exclusive_create: Create the marker atomically with O_EXCL (default: False)
    """

    lock_name: str | None = None
    lock_folder: str = DEFAULT_LOCK_FOLDER
    timeout_ms: int | float = DEFAULT_TIMEOUT_MS
    interval_ms: int | float = DEFAULT_INTERVAL_MS
    raise_error: bool = DEFAULT_RAISE_ERROR
    exclusive_create: bool = DEFAULT_EXCLUSIVE_CREATE

    def __post_init__(self) -> None:
        object.__setattr__(self, "lock_folder", normalize_folder_path(self.lock_folder))
        validate_duration_ms(self.timeout_ms, "timeout_ms")
        validate_duration_ms(self.interval_ms, "interval_ms")

    def with_changes(self, **changes) -> LockConfig:
        """Return a copy with the given fields replaced (and re-validated)."""
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, *, load_dotenv_file: bool = True) -> LockConfig:
        """Create configuration from MARKER_LOCK_* environment variables.

        A ``.env`` file in the working directory is loaded first unless
        ``load_dotenv_file`` is False or an explicit ``environ`` is given.
        Variables already present in the environment take precedence over
        the file.
        """
        if environ is None:
            if load_dotenv_file:
                _bootstrap_dotenv()
            environ = dict(os.environ)

        values: dict[str, object] = {}
        for field_name, env_name in ENV_VAR_MAPPING.items():
            raw = environ.get(env_name)
            if raw is None or not raw.strip():
                continue
            raw = raw.strip()
            if field_name in ("timeout_ms", "interval_ms"):
                values[field_name] = _parse_int(raw, env_name)
            elif field_name in ("raise_error", "exclusive_create"):
                values[field_name] = parse_bool(raw, env_name)
            else:
                values[field_name] = raw
        return cls(**values)

    @classmethod
    def from_args(cls, args: argparse.Namespace, base: LockConfig | None = None) -> LockConfig:
        """Create configuration from parsed command-line arguments.

        Options left unset on the command line keep the value from ``base``
        (usually ``LockConfig.from_env()``).
        """
        base = base or cls()
        changes: dict[str, object] = {}
        if getattr(args, "name", None) is not None:
            changes["lock_name"] = args.name
        if getattr(args, "folder", None) is not None:
            changes["lock_folder"] = args.folder
        if getattr(args, "timeout_ms", None) is not None:
            changes["timeout_ms"] = args.timeout_ms
        if getattr(args, "interval_ms", None) is not None:
            changes["interval_ms"] = args.interval_ms
        if getattr(args, "no_raise_error", False):
            changes["raise_error"] = False
        if getattr(args, "exclusive", False):
            changes["exclusive_create"] = True
        return base.with_changes(**changes)


@dataclass
class LogConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level string (default: "INFO")
        log_format: "text" or "json" (default: "text")
        log_file: Optional path of a rotating log file (default: None, console only)
        file_max_bytes: Maximum size per log file (default: 10MB)
        file_backup_count: Number of backup log files (default: 5)
    """

    level: str = "INFO"
    log_format: str = "text"
    log_file: str | None = None
    file_max_bytes: int = LOG_FILE_MAX_BYTES
    file_backup_count: int = LOG_FILE_BACKUP_COUNT

    def __post_init__(self) -> None:
        self.level = self.level.upper()
        if self.level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level '{self.level}'", field="level", details=f"expected one of {VALID_LOG_LEVELS}"
            )
        self.log_format = self.log_format.lower()
        if self.log_format not in VALID_LOG_FORMATS:
            raise ConfigurationError(
                f"Invalid log format '{self.log_format}'",
                field="log_format",
                details=f"expected one of {VALID_LOG_FORMATS}",
            )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> LogConfig:
        environ = dict(os.environ) if environ is None else environ
        return cls(
            level=environ.get(LOG_LEVEL_ENV, "INFO").strip() or "INFO",
            log_format=environ.get(LOG_FORMAT_ENV, "text").strip() or "text",
        )


def parse_bool(raw: str, field: str) -> bool:
    value = raw.strip().lower()
    if value in TRUTHY_VALUES:
        return True
    if value in FALSY_VALUES:
        return False
    raise ConfigurationError(f"{field} must be a boolean", field=field, details=repr(raw))


def _parse_int(raw: str, field: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{field} must be an integer", field=field, details=repr(raw)) from e


def _bootstrap_dotenv() -> bool:
    """Load .env from the working directory without overriding the real environment."""
    dotenv_path = find_dotenv(usecwd=True)
    if not dotenv_path:
        logger.debug(".env file not found")
        return False
    loaded = load_dotenv(dotenv_path, override=False)
    logger.debug(".env file loaded from %s", dotenv_path)
    return loaded
