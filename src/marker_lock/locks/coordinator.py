"""Lock coordinator: marker-file acquisition protocol.

A lock is held when its marker file ``<folder><name>`` exists. Acquisition
polls for the marker's absence at a fixed interval until the timeout is
reached:

    CHECKING --absent--> WRITING --> ACQUIRED
    CHECKING --present--> WAITING --> CHECKING
    CHECKING --present, elapsed >= timeout--> TIMED_OUT
    WAITING --cancel token set--> CANCELLED

The elapsed time is only compared with the timeout at each check, so a wait
that started just under the timeout still sleeps one full interval: the
total wait is at least the timeout and less than timeout + interval.

Known limitation: in the default mode the existence check and the write are
two separate filesystem calls, so two processes can both observe absence and
both write. Enable ``exclusive_create`` to replace the write with an atomic
create-if-absent where the filesystem supports it.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from marker_lock.core.config import LockConfig
from marker_lock.core.constants import (
    DEFAULT_INTERVAL_MS,
    DEFAULT_LOCK_FOLDER,
    DEFAULT_TIMEOUT_MS,
    LOG_PREFIX,
)
from marker_lock.core.exceptions import (
    ConfigurationError,
    LockCancelledError,
    LockOwnershipError,
    LockTimeoutError,
    MissingLockNameError,
)
from marker_lock.core.logging import with_log_context
from marker_lock.locks.filesystem import ExclusiveCreateFileSystem, FileSystem, LocalFileSystem
from marker_lock.locks.models import AcquireResult, AcquireStatus, LockHandle

# on_wait(lock_name, elapsed_ms, timeout_ms), called before every poll suspension
WaitCallback = Callable[[str, float, float], None]


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


class LockCoordinator:
    """Cross-process mutual exclusion through the presence of a marker file.

    Usage:
        coordinator = (
            LockCoordinator()
            .set_lock_folder_path("/tmp/locks")
            .set_lock_name("build.lock")
            .set_timeout(1000)
            .set_interval(200)
        )
        if coordinator.acquire(content="pid=1234"):
            try:
                ...  # critical section
            finally:
                coordinator.release()

    Args:
        config: Initial configuration (default: ``LockConfig()``)
        filesystem: Storage collaborator (default: ``LocalFileSystem()``)
        logger: Logger receiving info/error messages
        sleep: Blocking wait in seconds, used once per poll iteration
        clock: Monotonic clock in seconds
        on_wait: Optional callback invoked before each poll suspension
    """

    def __init__(
        self,
        config: LockConfig | None = None,
        *,
        filesystem: FileSystem | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_wait: WaitCallback | None = None,
    ):
        self.config = config or LockConfig()
        self.filesystem = filesystem or LocalFileSystem()
        self.logger = logger or logging.getLogger(__name__)
        self.on_wait = on_wait
        self.coordinator_id = uuid.uuid4().hex
        self._sleep = sleep
        self._clock = clock
        self._issued: dict[str, LockHandle] = {}
        self._check_exclusive_support(self.config.exclusive_create)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(lock_name={self.config.lock_name!r}, "
            f"lock_folder={self.config.lock_folder!r}, timeout_ms={self.config.timeout_ms}, "
            f"interval_ms={self.config.interval_ms})"
        )

    # ==================== CONFIGURATION ====================

    def set_lock_name(self, name: str | None) -> LockCoordinator:
        """Set the default lock name used when an operation omits it."""
        self.config = self.config.with_changes(lock_name=name)
        return self

    def set_lock_folder_path(self, path: str = DEFAULT_LOCK_FOLDER) -> LockCoordinator:
        """Set the folder containing lock files (a trailing separator is added if missing)."""
        self.config = self.config.with_changes(lock_folder=path)
        return self

    def set_timeout(self, timeout_ms: int | float = DEFAULT_TIMEOUT_MS) -> LockCoordinator:
        """Set the maximum total wait of ``acquire`` in milliseconds."""
        self.config = self.config.with_changes(timeout_ms=timeout_ms)
        return self

    def set_interval(self, interval_ms: int | float = DEFAULT_INTERVAL_MS) -> LockCoordinator:
        """Set the delay between two existence checks in milliseconds.

        The larger the interval, the wider the window in which another process
        can take the lock between this one's check and its write.
        """
        self.config = self.config.with_changes(interval_ms=interval_ms)
        return self

    def raise_error(self, flag: bool = True) -> LockCoordinator:
        """Log an error when acquisition times out (True) or fail silently (False)."""
        self.config = self.config.with_changes(raise_error=bool(flag))
        return self

    def set_exclusive_create(self, flag: bool = True) -> LockCoordinator:
        """Create the marker with an atomic create-if-absent instead of check-then-write."""
        self._check_exclusive_support(bool(flag))
        self.config = self.config.with_changes(exclusive_create=bool(flag))
        return self

    @property
    def lock_name(self) -> str | None:
        return self.config.lock_name

    @property
    def lock_folder_path(self) -> str:
        return self.config.lock_folder

    @property
    def timeout_ms(self) -> int | float:
        return self.config.timeout_ms

    @property
    def interval_ms(self) -> int | float:
        return self.config.interval_ms

    @property
    def held_handles(self) -> tuple[LockHandle, ...]:
        """Handles issued by this coordinator and not released yet."""
        return tuple(self._issued.values())

    # ==================== PATHS ====================

    def is_lock_name_set(self, name: str | None, operation: str = "acquire") -> bool:
        """Check that a usable lock name is available, logging an error otherwise."""
        if not name:
            self.logger.error(
                "%s No lock name provided to '%s()' or previously set with set_lock_name().",
                LOG_PREFIX,
                operation,
            )
            return False
        return True

    def get_lock_file_path(self, name: str | None = None) -> str | bool:
        """Return the full path of the lock file, or False when no name is available."""
        lock_path = self._lock_path(name, "get_lock_file_path")
        if lock_path is None:
            return False
        return lock_path

    def get_lock_content(self, name: str | None = None) -> str | bool:
        """Return the content of the lock file, or False if it does not exist."""
        lock_path = self._lock_path(name, "get_lock_content")
        if lock_path is None:
            return False
        if not self.filesystem.exists(lock_path):
            return False
        try:
            return self.filesystem.read(lock_path)
        except FileNotFoundError:
            return False

    def is_locked(self, name: str | None = None) -> bool:
        """Return True when the lock file currently exists."""
        lock_path = self._lock_path(name, "is_locked")
        if lock_path is None:
            return False
        return self.filesystem.exists(lock_path)

    # ==================== ACQUISITION ====================

    def acquire(
        self,
        name: str | None = None,
        content: str | None = "",
        *,
        cancel: threading.Event | None = None,
    ) -> bool:
        """(Wait and) create the lock file.

        Args:
            name: Lock name; defaults to the name set with ``set_lock_name``
            content: Opaque content written into the lock file
            cancel: Optional event; setting it ends a waiting acquisition

        Returns:
            True if the lock was acquired, False otherwise
        """
        return self.try_acquire(name, content, cancel=cancel).acquired

    def try_acquire(
        self,
        name: str | None = None,
        content: str | None = "",
        *,
        cancel: threading.Event | None = None,
    ) -> AcquireResult:
        """Run the acquisition protocol and return a detailed result.

        Never raises for contention, timeout, cancellation or a missing name;
        those outcomes are reported through ``AcquireResult.status``.
        Filesystem errors propagate unmodified.
        """
        name = self._resolve_name(name)
        lock_path = self._lock_path(name, "acquire")
        if lock_path is None:
            return AcquireResult(status=AcquireStatus.MISSING_NAME, error=MissingLockNameError("acquire"))

        content = "" if content is None else content
        config = self.config
        log = with_log_context(self.logger, lock_name=name, lock_path=lock_path)

        started_at = self._clock()
        attempts = 0
        status = AcquireStatus.TIMED_OUT

        while True:
            if cancel is not None and cancel.is_set():
                status = AcquireStatus.CANCELLED
                break

            last_check_at = self._clock()
            attempts += 1
            if self._create_marker(lock_path, content, config):
                status = AcquireStatus.ACQUIRED
                break

            elapsed_ms = (last_check_at - started_at) * 1000
            if elapsed_ms >= config.timeout_ms:
                break

            log.debug("Waiting for lock '%s' (%.0f/%s ms)", name, elapsed_ms, config.timeout_ms)
            if self.on_wait is not None:
                self.on_wait(name, elapsed_ms, config.timeout_ms)

            if self._suspend(config.interval_ms, cancel):
                status = AcquireStatus.CANCELLED
                break

        waited_ms = (self._clock() - started_at) * 1000

        if status is AcquireStatus.ACQUIRED:
            handle = LockHandle(
                name=name,
                path=lock_path,
                content=content,
                token=uuid.uuid4().hex,
                coordinator_id=self.coordinator_id,
                acquired_at=_utcnow_iso(),
            )
            self._forget_path(lock_path)
            self._issued[handle.token] = handle
            log.info("%s Lock file '%s' successfully set.", LOG_PREFIX, lock_path)
            return AcquireResult(
                status=status, lock_path=lock_path, handle=handle, waited_ms=waited_ms, attempts=attempts
            )

        if status is AcquireStatus.CANCELLED:
            log.info("%s Waiting for lock file '%s' cancelled after %.0f ms.", LOG_PREFIX, lock_path, waited_ms)
            error = LockCancelledError(lock_path)
        else:
            if config.raise_error:
                log.error(
                    "%s Lock file '%s' already exists and has not been released in defined timeout delay (%s ms).",
                    LOG_PREFIX,
                    lock_path,
                    config.timeout_ms,
                )
            error = LockTimeoutError(lock_path, config.timeout_ms)

        return AcquireResult(status=status, lock_path=lock_path, waited_ms=waited_ms, attempts=attempts, error=error)

    @contextmanager
    def hold(
        self,
        name: str | None = None,
        content: str | None = "",
        *,
        cancel: threading.Event | None = None,
    ) -> Iterator[LockHandle]:
        """Acquire the lock for the duration of a ``with`` block.

        Raises:
            MissingLockNameError: No lock name is available
            LockTimeoutError: The lock file was not released in time
            LockCancelledError: ``cancel`` was set while waiting
        """
        handle = self.try_acquire(name, content, cancel=cancel).raise_for_status()
        try:
            yield handle
        finally:
            self.release_handle(handle)

    # ==================== RELEASE ====================

    def release(self, name: str | None = None) -> bool:
        """Delete the lock file if it exists.

        Any coordinator can release any lock by name; use ``release_handle``
        to only delete markers this coordinator created.

        Returns:
            True if a lock file was deleted, False if there was nothing to release
        """
        lock_path = self._lock_path(name, "release")
        if lock_path is None:
            return False

        if not self.filesystem.exists(lock_path):
            return False

        try:
            self.filesystem.delete(lock_path)
        except FileNotFoundError:
            # released by another process since the existence check
            return False
        finally:
            self._forget_path(lock_path)
        self.logger.info("%s Lock file '%s' released.", LOG_PREFIX, lock_path)
        return True

    def release_handle(self, handle: LockHandle, *, strict: bool = False) -> bool:
        """Delete the marker created by the acquisition that returned ``handle``.

        The marker is only deleted when the handle was issued by this
        coordinator, has not been released yet and the file still holds the
        content written at acquisition. Markers with identical content
        written by another party cannot be told apart.

        Raises:
            LockOwnershipError: With ``strict=True``, instead of returning False
        """
        reason = self._ownership_problem(handle)
        if reason is None:
            try:
                self.filesystem.delete(handle.path)
            except FileNotFoundError:
                reason = "lock file no longer exists"
            self._issued.pop(handle.token, None)
        if reason is None:
            self.logger.info("%s Lock file '%s' released.", LOG_PREFIX, handle.path)
            return True

        self.logger.warning("%s Not releasing lock file '%s': %s.", LOG_PREFIX, handle.path, reason)
        if strict:
            raise LockOwnershipError(handle.path, reason)
        return False

    # ==================== INTERNALS ====================

    def _resolve_name(self, name: str | None) -> str | None:
        return self.config.lock_name if name is None else name

    def _lock_path(self, name: str | None, operation: str) -> str | None:
        name = self._resolve_name(name)
        if not self.is_lock_name_set(name, operation):
            return None
        return f"{self.config.lock_folder}{name}"

    def _create_marker(self, lock_path: str, content: str, config: LockConfig) -> bool:
        if config.exclusive_create:
            return self.filesystem.create_exclusive(lock_path, content)
        if self.filesystem.exists(lock_path):
            return False
        self.filesystem.write(lock_path, content)
        return True

    def _suspend(self, interval_ms: int | float, cancel: threading.Event | None) -> bool:
        """Block for one poll interval. Returns True if cancelled meanwhile."""
        seconds = interval_ms / 1000
        if cancel is not None:
            return cancel.wait(seconds)
        self._sleep(seconds)
        return False

    def _ownership_problem(self, handle: LockHandle) -> str | None:
        issued = self._issued.get(handle.token)
        if handle.coordinator_id != self.coordinator_id or issued is None or issued != handle:
            return "handle was not issued by this coordinator or was already released"
        if not self.filesystem.exists(handle.path):
            self._issued.pop(handle.token, None)
            return "lock file no longer exists"
        try:
            current = self.filesystem.read(handle.path)
        except FileNotFoundError:
            self._issued.pop(handle.token, None)
            return "lock file no longer exists"
        if current != handle.content:
            self._issued.pop(handle.token, None)
            return "lock file content changed since acquisition"
        return None

    def _forget_path(self, lock_path: str) -> None:
        for token, handle in list(self._issued.items()):
            if handle.path == lock_path:
                del self._issued[token]

    def _check_exclusive_support(self, exclusive_create: bool) -> None:
        if exclusive_create and not isinstance(self.filesystem, ExclusiveCreateFileSystem):
            raise ConfigurationError(
                "exclusive_create requires a filesystem providing create_exclusive()",
                field="exclusive_create",
                details=type(self.filesystem).__name__,
            )
