"""Logging helpers for marker-lock."""

import atexit
import contextlib
import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from marker_lock.core.config import LogConfig

_LOG_RECORD_RESERVED_FIELDS = set(logging.makeLogRecord({}).__dict__.keys()) | {"message", "asctime"}
_TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Root package logger; handlers are attached here so host applications keep
# control over their own root logger.
PACKAGE_LOGGER_NAME = "marker_lock"


def _safe_record_message(record: logging.LogRecord) -> str:
    try:
        return record.getMessage()
    except Exception:
        return f"{record.msg!s} [log-message-format-error]"


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging output.

    Each log record is a single JSON object on one line. Contextual fields
    attached with ``with_log_context`` (``lock_name``, ``lock_path``...) are
    merged into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _safe_record_message(record),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _LOG_RECORD_RESERVED_FIELDS or key.startswith("_"):
                continue
            log_entry.setdefault(key, value)

        return json.dumps(log_entry, default=str)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges contextual fields into record extras."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra")
        merged_extra = dict(self.extra)
        if isinstance(extra, dict):
            merged_extra.update(extra)
        kwargs["extra"] = merged_extra
        return msg, kwargs


def _unwrap_logger(logger: logging.Logger | logging.LoggerAdapter | None) -> logging.Logger | None:
    current = logger
    while isinstance(current, logging.LoggerAdapter):
        current = current.logger
    if isinstance(current, logging.Logger):
        return current
    return None


def with_log_context(
    logger: logging.Logger | logging.LoggerAdapter | object, **context: object
) -> logging.Logger | logging.LoggerAdapter | object:
    """Return a logger enriched with persistent contextual fields."""
    if not isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        # Test doubles that only provide error()/info() are returned untouched.
        return logger

    base_logger = _unwrap_logger(logger)
    if base_logger is None:
        return logger

    normalized_context = {k: v for k, v in context.items() if v is not None}
    existing_context = {}
    if isinstance(logger, logging.LoggerAdapter):
        existing_context = dict(getattr(logger, "extra", None) or {})

    existing_context.update(normalized_context)
    return ContextLoggerAdapter(base_logger, existing_context)


def flush_logging_handlers(logger: logging.Logger | logging.LoggerAdapter | None = None) -> None:
    """Flush logger handlers, including propagated parent handlers."""
    handlers: list[logging.Handler] = []
    seen: set[int] = set()

    current = _unwrap_logger(logger) or logging.getLogger(PACKAGE_LOGGER_NAME)
    while current is not None:
        handlers.extend(current.handlers)
        if not current.propagate:
            break
        current = current.parent

    for handler in handlers:
        if id(handler) in seen:
            continue
        seen.add(id(handler))
        with contextlib.suppress(Exception):
            handler.flush()


_atexit_registered = False


def setup_logging(config: LogConfig | None = None) -> logging.Logger:
    """Setup logging to the console and, optionally, a rotating file.

    Args:
        config: Logging configuration; defaults to ``LogConfig.from_env()``
                (LOG_LEVEL / LOG_FORMAT environment variables)

    Returns:
        The configured package logger
    """
    global _atexit_registered

    if config is None:
        config = LogConfig.from_env()

    if not _atexit_registered:
        atexit.register(logging.shutdown)
        _atexit_registered = True

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    # Calling setup_logging twice must not duplicate output
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    log_path,
                    maxBytes=config.file_max_bytes,
                    backupCount=config.file_backup_count,
                    encoding="utf-8",
                )
            )
        except OSError as e:
            print(f"Warning: Cannot open log file {log_path}: {e}. Logging to console only.", file=sys.stderr)

    formatter = JSONFormatter() if config.log_format == "json" else logging.Formatter(_TEXT_FORMAT)
    numeric_level = getattr(logging, config.level, logging.INFO)

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric_level)
        package_logger.addHandler(handler)

    package_logger.setLevel(numeric_level)
    package_logger.propagate = False

    package_logger.debug("Logging initialized (level=%s, format=%s)", config.level, config.log_format)
    return package_logger
