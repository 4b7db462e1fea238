"""Core module - Foundation components with no internal dependencies.

This module provides the basic building blocks used throughout the package:
- Version information
- Custom exceptions
- Configuration dataclasses
- Constants and defaults
- Logging helpers
"""

from marker_lock.core.version import __version__

from marker_lock.core.exceptions import (
    MarkerLockError,
    ConfigurationError,
    MissingLockNameError,
    LockTimeoutError,
    LockCancelledError,
    LockOwnershipError,
)

from marker_lock.core.config import (
    LockConfig,
    LogConfig,
    normalize_folder_path,
)

from marker_lock.core.constants import (
    DEFAULT_LOCK_FOLDER,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_INTERVAL_MS,
    DEFAULT_RAISE_ERROR,
    DEFAULT_EXCLUSIVE_CREATE,
    ENV_VAR_MAPPING,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_BACKUP_COUNT,
)

from marker_lock.core.logging import (
    JSONFormatter,
    ContextLoggerAdapter,
    setup_logging,
    with_log_context,
    flush_logging_handlers,
)

__all__ = [
    # Version
    '__version__',
    # Exceptions
    'MarkerLockError',
    'ConfigurationError',
    'MissingLockNameError',
    'LockTimeoutError',
    'LockCancelledError',
    'LockOwnershipError',
    # Config dataclasses
    'LockConfig',
    'LogConfig',
    'normalize_folder_path',
    # Constants
    'DEFAULT_LOCK_FOLDER',
    'DEFAULT_TIMEOUT_MS',
    'DEFAULT_INTERVAL_MS',
    'DEFAULT_RAISE_ERROR',
    'DEFAULT_EXCLUSIVE_CREATE',
    'ENV_VAR_MAPPING',
    'LOG_FILE_MAX_BYTES',
    'LOG_FILE_BACKUP_COUNT',
    # Logging
    'JSONFormatter',
    'ContextLoggerAdapter',
    'setup_logging',
    'with_log_context',
    'flush_logging_handlers',
]
