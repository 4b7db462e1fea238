"""Tests for configuration dataclasses and environment loading"""
import argparse
import dataclasses
import os

import pytest

from marker_lock.core.config import LockConfig, LogConfig, normalize_folder_path
from marker_lock.core.exceptions import ConfigurationError


class TestNormalizeFolderPath:
    """Trailing separator normalization"""

    def test_adds_separator(self):
        assert normalize_folder_path("/tmp/locks") == "/tmp/locks" + os.sep

    def test_keeps_existing_separator(self):
        assert normalize_folder_path("/tmp/locks/") == "/tmp/locks/"

    def test_none_and_empty_default_to_current_directory(self):
        assert normalize_folder_path(None) == "./"
        assert normalize_folder_path("") == "./"

    def test_accepts_path_objects(self, tmp_path):
        assert normalize_folder_path(tmp_path) == str(tmp_path) + os.sep


class TestLockConfig:
    """LockConfig defaults, validation and immutability"""

    def test_defaults(self):
        config = LockConfig()
        assert config.lock_name is None
        assert config.lock_folder == "./"
        assert config.timeout_ms == 300000
        assert config.interval_ms == 60000
        assert config.raise_error is True
        assert config.exclusive_create is False

    def test_is_frozen(self):
        config = LockConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.timeout_ms = 5

    def test_with_changes_revalidates(self):
        config = LockConfig(lock_folder="/a")
        changed = config.with_changes(lock_folder="/b", timeout_ms=10)
        assert changed.lock_folder == "/b/"
        assert changed.timeout_ms == 10
        assert config.lock_folder == "/a/"
        with pytest.raises(ConfigurationError) as exc_info:
            config.with_changes(interval_ms=-1)
        assert exc_info.value.field == "interval_ms"

    @pytest.mark.parametrize("value", ["10", None, True, float("nan")])
    def test_non_numeric_duration_rejected(self, value):
        with pytest.raises(ConfigurationError):
            LockConfig(timeout_ms=value)
        with pytest.raises(ConfigurationError):
            LockConfig(interval_ms=value)

    def test_infinite_interval_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            LockConfig(interval_ms=float("inf"))
        assert exc_info.value.field == "interval_ms"

    def test_infinite_timeout_allowed(self):
        assert LockConfig(timeout_ms=float("inf")).timeout_ms == float("inf")


class TestLockConfigFromEnv:
    """Environment variable loading"""

    def test_empty_environment_gives_defaults(self):
        assert LockConfig.from_env({}) == LockConfig()

    def test_reads_all_variables(self):
        config = LockConfig.from_env(
            {
                "MARKER_LOCK_NAME": "build.lock",
                "MARKER_LOCK_FOLDER": "/var/locks",
                "MARKER_LOCK_TIMEOUT_MS": " 1000 ",
                "MARKER_LOCK_INTERVAL_MS": "200",
                "MARKER_LOCK_RAISE_ERROR": "false",
                "MARKER_LOCK_EXCLUSIVE": "yes",
            }
        )
        assert config.lock_name == "build.lock"
        assert config.lock_folder == "/var/locks/"
        assert config.timeout_ms == 1000
        assert config.interval_ms == 200
        assert config.raise_error is False
        assert config.exclusive_create is True

    def test_ignores_blank_values(self):
        config = LockConfig.from_env({"MARKER_LOCK_NAME": "  ", "MARKER_LOCK_TIMEOUT_MS": ""})
        assert config.lock_name is None
        assert config.timeout_ms == 300000

    def test_invalid_integer(self):
        with pytest.raises(ConfigurationError) as exc_info:
            LockConfig.from_env({"MARKER_LOCK_TIMEOUT_MS": "soon"})
        assert exc_info.value.field == "MARKER_LOCK_TIMEOUT_MS"
        assert "soon" in str(exc_info.value)

    def test_invalid_boolean(self):
        with pytest.raises(ConfigurationError):
            LockConfig.from_env({"MARKER_LOCK_RAISE_ERROR": "maybe"})

    def test_process_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("MARKER_LOCK_NAME", "env.lock")
        monkeypatch.setenv("MARKER_LOCK_INTERVAL_MS", "5")
        config = LockConfig.from_env()
        assert config.lock_name == "env.lock"
        assert config.interval_ms == 5

    def test_dotenv_file_in_working_directory(self, clean_env, monkeypatch, tmp_path):
        # setenv+delenv makes monkeypatch remove whatever load_dotenv sets
        monkeypatch.setenv("MARKER_LOCK_NAME", "placeholder")
        monkeypatch.delenv("MARKER_LOCK_NAME")
        monkeypatch.setenv("MARKER_LOCK_TIMEOUT_MS", "1")
        (tmp_path / ".env").write_text(
            "MARKER_LOCK_NAME=dotenv.lock\nMARKER_LOCK_TIMEOUT_MS=999\n", encoding="utf-8"
        )

        config = LockConfig.from_env()

        assert config.lock_name == "dotenv.lock"
        # Real environment wins over the file
        assert config.timeout_ms == 1

    def test_dotenv_can_be_skipped(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("MARKER_LOCK_NAME=dotenv.lock\n", encoding="utf-8")
        config = LockConfig.from_env(load_dotenv_file=False)
        assert config.lock_name is None


class TestLockConfigFromArgs:
    """Command-line overrides"""

    def test_unset_arguments_keep_base(self):
        base = LockConfig(lock_name="base.lock", timeout_ms=5, raise_error=True)
        args = argparse.Namespace(
            name=None, folder=None, timeout_ms=None, interval_ms=None, no_raise_error=False, exclusive=False
        )
        assert LockConfig.from_args(args, base=base) == base

    def test_arguments_override_base(self):
        base = LockConfig(lock_name="base.lock", timeout_ms=5)
        args = argparse.Namespace(
            name="cli.lock", folder="/cli", timeout_ms=0, interval_ms=10, no_raise_error=True, exclusive=True
        )
        config = LockConfig.from_args(args, base=base)
        assert config.lock_name == "cli.lock"
        assert config.lock_folder == "/cli/"
        assert config.timeout_ms == 0
        assert config.interval_ms == 10
        assert config.raise_error is False
        assert config.exclusive_create is True

    def test_missing_attributes_use_defaults(self):
        assert LockConfig.from_args(argparse.Namespace()) == LockConfig()

    def test_explicit_empty_name_overrides_base(self):
        base = LockConfig(lock_name="env.lock")
        args = argparse.Namespace(
            name="", folder=None, timeout_ms=None, interval_ms=None, no_raise_error=False, exclusive=False
        )
        assert LockConfig.from_args(args, base=base).lock_name == ""


class TestLogConfig:
    """Logging configuration"""

    def test_normalizes_case(self):
        config = LogConfig(level="debug", log_format="JSON")
        assert config.level == "DEBUG"
        assert config.log_format == "json"

    def test_invalid_level(self):
        with pytest.raises(ConfigurationError) as exc_info:
            LogConfig(level="LOUD")
        assert exc_info.value.field == "level"

    def test_invalid_format(self):
        with pytest.raises(ConfigurationError):
            LogConfig(log_format="xml")

    def test_from_env(self):
        config = LogConfig.from_env({"LOG_LEVEL": "warning", "LOG_FORMAT": "json"})
        assert config.level == "WARNING"
        assert config.log_format == "json"
        assert LogConfig.from_env({}) == LogConfig()
