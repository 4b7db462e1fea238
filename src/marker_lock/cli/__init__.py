"""CLI module - Command-line interface components."""

from marker_lock.cli.main import main
from marker_lock.cli.parser import build_parser, parse_arguments
from marker_lock.cli.progress import WaitProgress

__all__ = [
    "WaitProgress",
    "build_parser",
    "main",
    "parse_arguments",
]
