"""
marker-lock - cooperative cross-process locking with marker files

Independent processes sharing a filesystem serialize a critical section by
agreeing that whoever creates ``<folder><name>`` first holds the lock.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__all__ = [
    "AcquireResult",
    "AcquireStatus",
    "LocalFileSystem",
    "LockConfig",
    "LockCoordinator",
    "LockHandle",
    "MarkerLockError",
    "__version__",
    "main",
]

if TYPE_CHECKING:
    from marker_lock.cli.main import main
    from marker_lock.core.config import LockConfig
    from marker_lock.core.exceptions import MarkerLockError
    from marker_lock.core.version import __version__
    from marker_lock.locks import AcquireResult, AcquireStatus, LocalFileSystem, LockCoordinator, LockHandle

_EXPORT_MODULES = {
    "AcquireResult": "marker_lock.locks",
    "AcquireStatus": "marker_lock.locks",
    "LocalFileSystem": "marker_lock.locks",
    "LockConfig": "marker_lock.core.config",
    "LockCoordinator": "marker_lock.locks",
    "LockHandle": "marker_lock.locks",
    "MarkerLockError": "marker_lock.core.exceptions",
    "__version__": "marker_lock.core.version",
    "main": "marker_lock.cli.main",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORT_MODULES:
        module = importlib.import_module(_EXPORT_MODULES[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
