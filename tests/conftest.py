"""Pytest configuration and fixtures for marker-lock tests"""
import logging

import pytest

from marker_lock.core.logging import PACKAGE_LOGGER_NAME


class RecordingFileSystem:
    """In-memory filesystem collaborator that records every call"""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.calls = []

    def exists(self, path):
        self.calls.append(("exists", path))
        return path in self.files

    def write(self, path, content):
        self.calls.append(("write", path))
        self.files[path] = content

    def read(self, path):
        self.calls.append(("read", path))
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def delete(self, path):
        self.calls.append(("delete", path))
        if path not in self.files:
            raise FileNotFoundError(path)
        del self.files[path]

    def create_exclusive(self, path, content):
        self.calls.append(("create_exclusive", path))
        if path in self.files:
            return False
        self.files[path] = content
        return True

    def mutating_calls(self):
        return [call for call in self.calls if call[0] in ("write", "delete", "create_exclusive")]


class VanishingFileSystem(RecordingFileSystem):
    """Another process deletes the marker right after the named call returns"""

    def __init__(self, files=None, vanish_after="exists"):
        super().__init__(files)
        self.vanish_after = vanish_after

    def exists(self, path):
        present = super().exists(path)
        if self.vanish_after == "exists":
            self.files.pop(path, None)
        return present

    def read(self, path):
        content = super().read(path)
        if self.vanish_after == "read":
            self.files.pop(path, None)
        return content


class CheckThenWriteFileSystem:
    """Filesystem collaborator without an atomic create primitive"""

    def __init__(self):
        self.files = {}

    def exists(self, path):
        return path in self.files

    def write(self, path, content):
        self.files[path] = content

    def read(self, path):
        return self.files[path]

    def delete(self, path):
        del self.files[path]


class FakeClock:
    """Monotonic clock that only advances when the coordinator sleeps"""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingLogger:
    """Logging collaborator keeping (level, message) pairs"""

    def __init__(self):
        self.records = []

    def _log(self, level, msg, *args):
        self.records.append((level, msg % args if args else msg))

    def debug(self, msg, *args, **kwargs):
        self._log("debug", msg, *args)

    def info(self, msg, *args, **kwargs):
        self._log("info", msg, *args)

    def warning(self, msg, *args, **kwargs):
        self._log("warning", msg, *args)

    def error(self, msg, *args, **kwargs):
        self._log("error", msg, *args)

    def messages(self, level):
        return [message for record_level, message in self.records if record_level == level]


@pytest.fixture
def memory_fs():
    return RecordingFileSystem()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def lock_dir(tmp_path):
    """Folder for lock files, returned as a string without trailing separator"""
    folder = tmp_path / "locks"
    folder.mkdir()
    return str(folder)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers/propagation changes made by setup_logging()"""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove MARKER_LOCK_* and logging variables from the environment"""
    for name in (
        "MARKER_LOCK_NAME",
        "MARKER_LOCK_FOLDER",
        "MARKER_LOCK_TIMEOUT_MS",
        "MARKER_LOCK_INTERVAL_MS",
        "MARKER_LOCK_RAISE_ERROR",
        "MARKER_LOCK_EXCLUSIVE",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray .env in the working directory out of the tests
    monkeypatch.chdir(tmp_path)
