"""CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
import socket
import subprocess
import sys
from collections.abc import Callable

from marker_lock.cli.parser import parse_arguments
from marker_lock.cli.progress import WaitProgress
from marker_lock.core.config import LockConfig, LogConfig
from marker_lock.core.exceptions import ConfigurationError
from marker_lock.core.logging import flush_logging_handlers, setup_logging
from marker_lock.locks.coordinator import LockCoordinator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_COMMAND_NOT_FOUND = 127


def _default_run_content() -> str:
    return f"pid={os.getpid()}\nhost={socket.gethostname()}\n"


def cmd_acquire(coordinator: LockCoordinator, args: argparse.Namespace) -> int:
    with WaitProgress(disable=args.quiet) as progress:
        coordinator.on_wait = progress
        acquired = coordinator.acquire(content=args.content)
    if not acquired:
        return EXIT_FAILURE
    print(coordinator.get_lock_file_path())
    return EXIT_OK


def cmd_release(coordinator: LockCoordinator, args: argparse.Namespace) -> int:
    if coordinator.release():
        return EXIT_OK
    print(f"Nothing to release: {coordinator.get_lock_file_path()}", file=sys.stderr)
    return EXIT_FAILURE


def cmd_status(coordinator: LockCoordinator, args: argparse.Namespace) -> int:
    lock_path = coordinator.get_lock_file_path()
    content = coordinator.get_lock_content()
    if content is False:
        print(f"{lock_path}: free")
        return EXIT_FAILURE
    print(f"{lock_path}: held")
    if content:
        print(content.rstrip("\n"))
    return EXIT_OK


def cmd_run(coordinator: LockCoordinator, args: argparse.Namespace) -> int:
    content = _default_run_content() if args.content is None else args.content
    with WaitProgress(disable=args.quiet) as progress:
        coordinator.on_wait = progress
        result = coordinator.try_acquire(content=content)
    if not result.acquired:
        return EXIT_FAILURE

    try:
        logger.info("Running %s while holding '%s'", args.cmd, result.lock_path)
        try:
            completed = subprocess.run(args.cmd, check=False)
        except FileNotFoundError:
            logger.error("Command not found: %s", args.cmd[0])
            return EXIT_COMMAND_NOT_FOUND
        return completed.returncode
    finally:
        coordinator.release_handle(result.handle)


COMMANDS: dict[str, Callable[[LockCoordinator, argparse.Namespace], int]] = {
    "acquire": cmd_acquire,
    "release": cmd_release,
    "status": cmd_status,
    "run": cmd_run,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_arguments(argv)

    try:
        env_log_config = LogConfig.from_env()
        log_config = LogConfig(
            level=args.log_level or env_log_config.level,
            log_format=args.log_format or env_log_config.log_format,
            log_file=args.log_file,
        )
        config = LockConfig.from_args(args, base=LockConfig.from_env())
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(log_config)
    coordinator = LockCoordinator(config)

    try:
        return COMMANDS[args.command](coordinator, args)
    except OSError as e:
        logger.error("Filesystem error on '%s': %s", coordinator.get_lock_file_path(), e)
        return EXIT_FAILURE
    finally:
        flush_logging_handlers(logger)


if __name__ == "__main__":
    sys.exit(main())
