"""Locking subsystem for cross-process coordination.

This package exposes the marker-file lock coordinator together with the
storage collaborators it runs on and the result types it returns.
"""

from marker_lock.locks.coordinator import LockCoordinator, WaitCallback
from marker_lock.locks.filesystem import (
    ExclusiveCreateFileSystem,
    FileSystem,
    LocalFileSystem,
)
from marker_lock.locks.models import AcquireResult, AcquireStatus, LockHandle

__all__ = [
    "AcquireResult",
    "AcquireStatus",
    "ExclusiveCreateFileSystem",
    "FileSystem",
    "LocalFileSystem",
    "LockCoordinator",
    "LockHandle",
    "WaitCallback",
]
