"""Result and handle types returned by the lock coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from marker_lock.core.exceptions import MarkerLockError


class AcquireStatus(Enum):
    """Terminal states of one acquisition attempt."""

    ACQUIRED = "acquired"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    MISSING_NAME = "missing_name"


@dataclass(frozen=True)
class LockHandle:
    """Typed token proving that a coordinator created a marker file.

    Only ``LockCoordinator.release_handle`` consumes handles. A handle is
    bound to the coordinator that issued it and to the exact content that
    was written, so it cannot delete a marker some other party created
    after this one was removed.

    Attributes:
        name: Lock name the marker was created for
        path: Full path of the marker file
        content: Content written into the marker
        token: Random identifier unique to this acquisition
        coordinator_id: Identifier of the issuing coordinator
        acquired_at: Wall-clock acquisition time (ISO 8601, UTC)
    """

    name: str
    path: str
    content: str
    token: str
    coordinator_id: str
    acquired_at: str = field(compare=False)


@dataclass(frozen=True)
class AcquireResult:
    """Outcome of ``LockCoordinator.try_acquire``.

    Attributes:
        status: Terminal state of the attempt
        lock_path: Resolved marker path (None when no name was available)
        handle: Handle for a successful acquisition, otherwise None
        waited_ms: Time spent between the first check and the end of the attempt
        attempts: Number of existence checks performed
        error: Exception describing a failed attempt, otherwise None
    """

    status: AcquireStatus
    lock_path: str | None = None
    handle: LockHandle | None = None
    waited_ms: float = 0.0
    attempts: int = 0
    error: MarkerLockError | None = None

    @property
    def acquired(self) -> bool:
        return self.status is AcquireStatus.ACQUIRED

    def __bool__(self) -> bool:
        return self.acquired

    def raise_for_status(self) -> LockHandle:
        """Return the handle, or raise the error of a failed attempt."""
        if self.handle is not None and self.acquired:
            return self.handle
        if self.error is not None:
            raise self.error
        raise MarkerLockError(f"Lock was not acquired ({self.status.value})")
