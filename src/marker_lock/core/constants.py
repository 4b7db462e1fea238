"""Constants and default values for marker-lock.

This module centralizes default timings, environment variable names and
logging limits used throughout the application.
"""

# ==================== LOCK DEFAULTS ====================

DEFAULT_LOCK_FOLDER: str = "./"
DEFAULT_TIMEOUT_MS: int = 300_000  # 5 minutes
DEFAULT_INTERVAL_MS: int = 60_000  # 1 minute
DEFAULT_RAISE_ERROR: bool = True
DEFAULT_EXCLUSIVE_CREATE: bool = False

# Prefix used in every coordinator log message
LOG_PREFIX: str = "LockCoordinator ::"

# ==================== LOGGING DEFAULTS ====================

LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB max per log file
LOG_FILE_BACKUP_COUNT: int = 5  # Number of backup log files to keep
VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS: tuple[str, ...] = ("text", "json")

# ==================== ENVIRONMENT ====================

# LockConfig field -> environment variable
ENV_VAR_MAPPING: dict[str, str] = {
    "lock_name": "MARKER_LOCK_NAME",
    "lock_folder": "MARKER_LOCK_FOLDER",
    "timeout_ms": "MARKER_LOCK_TIMEOUT_MS",
    "interval_ms": "MARKER_LOCK_INTERVAL_MS",
    "raise_error": "MARKER_LOCK_RAISE_ERROR",
    "exclusive_create": "MARKER_LOCK_EXCLUSIVE",
}

LOG_LEVEL_ENV: str = "LOG_LEVEL"
LOG_FORMAT_ENV: str = "LOG_FORMAT"

TRUTHY_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
FALSY_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off"})
