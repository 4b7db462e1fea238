"""Waiting indicator shown while another process holds the lock."""

from __future__ import annotations

import sys

from tqdm import tqdm


class WaitProgress:
    """tqdm progress bar usable as a ``LockCoordinator.on_wait`` callback.

    The bar is created lazily on the first poll suspension, so nothing is
    printed when the lock is free.
    """

    def __init__(self, *, disable: bool = False, file=None):
        self.disable = disable
        self.file = file or sys.stderr
        self.bar: tqdm | None = None
        self.polls = 0

    def __call__(self, lock_name: str, elapsed_ms: float, timeout_ms: float) -> None:
        self.polls += 1
        total_seconds = max(timeout_ms / 1000, 0.001)
        if self.bar is None:
            self.bar = tqdm(
                total=total_seconds,
                desc=f"Waiting for lock '{lock_name}'",
                unit="s",
                bar_format="{desc}: {percentage:3.0f}%|{bar}| {n:.0f}/{total:.0f}s{postfix}",
                leave=False,
                disable=self.disable,
                file=self.file,
            )
        self.bar.n = min(elapsed_ms / 1000, total_seconds)
        self.bar.set_postfix_str(f"poll {self.polls}")

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def __enter__(self) -> WaitProgress:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
