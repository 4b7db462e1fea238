"""Filesystem collaborators used by the lock coordinator.

Design principles:
- The coordinator only ever asks four questions of storage: exists, write,
  read and delete. Anything else (permissions, path creation, partial writes)
  is this layer's concern.
- Errors raised here are never caught by the coordinator; they reach the
  caller unmodified.
- Atomic create-if-absent is an optional capability. Backends that do not
  provide ``create_exclusive`` can only be used with the default
  check-then-write protocol.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, runtime_checkable


def _write_all(fd: int, payload: bytes) -> None:
    """Write complete payload to fd, handling short writes."""
    total_written = 0
    while total_written < len(payload):
        written = os.write(fd, payload[total_written:])
        if written <= 0:
            raise OSError("short write while persisting lock content")
        total_written += written


class FileSystem(Protocol):
    """Storage abstraction for marker files."""

    def exists(self, path: str) -> bool:
        """Return True when a file is present at path."""

    def write(self, path: str, content: str) -> None:
        """Create or overwrite the file at path with content."""

    def read(self, path: str) -> str:
        """Return the content of the file at path."""

    def delete(self, path: str) -> None:
        """Remove the file at path."""


@runtime_checkable
class ExclusiveCreateFileSystem(FileSystem, Protocol):
    """Storage that can atomically create a file only when it is absent."""

    def create_exclusive(self, path: str, content: str) -> bool:
        """Create path with content. Return False if it already exists."""


class LocalFileSystem:
    """Local (or network-mounted) filesystem backed by ``os``/``pathlib``.

    Content is stored as UTF-8 text, byte for byte: no newline translation
    is applied on write or read.
    """

    encoding = "utf-8"

    def __init__(self, *, create_parents: bool = True, file_mode: int = 0o644):
        self.create_parents = create_parents
        self.file_mode = file_mode

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def write(self, path: str, content: str) -> None:
        target = Path(path)
        self._ensure_parent(target)
        with open(target, "w", encoding=self.encoding, newline="") as f:
            f.write(content)

    def read(self, path: str) -> str:
        with open(path, encoding=self.encoding, newline="") as f:
            return f.read()

    def delete(self, path: str) -> None:
        Path(path).unlink()

    def create_exclusive(self, path: str, content: str) -> bool:
        target = Path(path)
        self._ensure_parent(target)
        try:
            fd = os.open(str(target), os.O_CREAT | os.O_EXCL | os.O_WRONLY, self.file_mode)
        except FileExistsError:
            return False

        try:
            _write_all(fd, content.encode(self.encoding))
            os.fsync(fd)
        except OSError:
            os.close(fd)
            # Never leave a half-written marker behind that nobody owns.
            target.unlink(missing_ok=True)
            raise
        os.close(fd)
        return True

    def _ensure_parent(self, target: Path) -> None:
        if self.create_parents:
            target.parent.mkdir(parents=True, exist_ok=True)
