"""CLI argument parsing."""

from __future__ import annotations

import argparse

import argcomplete

from marker_lock.core.constants import VALID_LOG_FORMATS, VALID_LOG_LEVELS
from marker_lock.core.version import __version__


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from None
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return parsed


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)

    lock_group = common.add_argument_group("Lock options (default: MARKER_LOCK_* environment variables)")
    lock_group.add_argument("--folder", metavar="PATH", help="Folder containing lock files (default: ./)")
    lock_group.add_argument(
        "--timeout-ms",
        type=_non_negative_int,
        metavar="MS",
        help="Maximum time to wait for the lock (default: 300000)",
    )
    lock_group.add_argument(
        "--interval-ms",
        type=_non_negative_int,
        metavar="MS",
        help="Delay between two checks of the lock file (default: 60000)",
    )
    lock_group.add_argument(
        "--no-raise-error",
        action="store_true",
        help="Do not log an error when the lock could not be acquired",
    )
    lock_group.add_argument(
        "--exclusive",
        action="store_true",
        help="Create the lock file atomically (O_EXCL) instead of check-then-write",
    )

    log_group = common.add_argument_group("Output options")
    log_group.add_argument("--log-level", type=str.upper, choices=VALID_LOG_LEVELS, help="Logging level")
    log_group.add_argument("--log-format", type=str.lower, choices=VALID_LOG_FORMATS, help="Log output format")
    log_group.add_argument("--log-file", metavar="PATH", help="Also write logs to a rotating file")
    log_group.add_argument("-q", "--quiet", action="store_true", help="Hide the waiting progress bar")
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="marker-lock",
        description="Serialize work across processes with a marker lock file on a shared filesystem.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    acquire = subparsers.add_parser("acquire", parents=[common], help="Wait for and create a lock file")
    acquire.add_argument("name", help="Lock file name")
    acquire.add_argument("--content", default="", help="Text written into the lock file")

    release = subparsers.add_parser("release", parents=[common], help="Delete a lock file if it exists")
    release.add_argument("name", help="Lock file name")

    status = subparsers.add_parser("status", parents=[common], help="Show whether a lock file exists")
    status.add_argument("name", help="Lock file name")

    run = subparsers.add_parser("run", parents=[common], help="Run a command while holding a lock")
    run.add_argument("name", help="Lock file name")
    run.add_argument("--content", default=None, help="Text written into the lock file (default: pid and host)")
    run.add_argument("cmd", nargs=argparse.REMAINDER, metavar="-- COMMAND", help="Command to run")

    return parser


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()

    # Enable shell tab-completion (no-op unless invoked by the completion hook)
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    if args.command == "run":
        if args.cmd and args.cmd[0] == "--":
            args.cmd = args.cmd[1:]
        if not args.cmd:
            parser.error("run: a command to execute is required after the lock name")
    return args
