"""Custom exceptions for marker-lock.

The boolean coordinator API never raises these for lock contention or a
missing lock name; they are carried inside ``AcquireResult.error`` and only
raised by the explicitly raising surfaces (``raise_for_status()``, ``hold()``
and strict handle release).
"""


class MarkerLockError(Exception):
    """Base exception for all marker-lock errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(MarkerLockError):
    """Exception raised for invalid coordinator or logging configuration.

    Examples:
        - Negative timeout or poll interval
        - Non-numeric MARKER_LOCK_TIMEOUT_MS value
        - Unknown log format
    """

    def __init__(self, message: str, field: str | None = None, details: str | None = None):
        self.field = field
        super().__init__(message, details)


class MissingLockNameError(MarkerLockError):
    """Raised when no lock name was passed to an operation nor set on the coordinator."""

    def __init__(self, operation: str | None = None):
        self.operation = operation
        details = f"operation '{operation}'" if operation else None
        super().__init__("No lock name provided or previously set with set_lock_name()", details)


class LockTimeoutError(MarkerLockError, TimeoutError):
    """Raised when the lock file was not released within the timeout window.

    Attributes:
        lock_path: Path of the marker file that stayed present
        timeout_ms: Configured timeout in milliseconds
    """

    def __init__(self, lock_path: str, timeout_ms: int):
        self.lock_path = lock_path
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Lock file '{lock_path}' already exists and has not been released",
            f"timeout {timeout_ms} ms",
        )


class LockCancelledError(MarkerLockError):
    """Raised when a waiting acquisition was cancelled by its caller."""

    def __init__(self, lock_path: str):
        self.lock_path = lock_path
        super().__init__(f"Acquisition of lock file '{lock_path}' was cancelled")


class LockOwnershipError(MarkerLockError):
    """Raised when a handle cannot release the marker it refers to.

    Attributes:
        lock_path: Path of the marker file
        reason: Why the handle is not allowed to delete the marker
    """

    def __init__(self, lock_path: str, reason: str | None = None):
        self.lock_path = lock_path
        self.reason = reason
        super().__init__(f"Lock handle does not own '{lock_path}'", reason)
