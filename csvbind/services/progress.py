from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for table preloads (tqdm, TTY only).

A single tqdm bar advances once per table. In non-TTY environments (CI,
redirected output) no bar is created to avoid control sequence spam.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Per-table progress bar used by DataManager.preload()."""

    def __init__(self, total_tables: int, *, description: str = "Loading tables") -> None:
        """Initialize progress tracker.

        Args:
            total_tables: Number of tables that will be loaded
            description: Description for the progress bar
        """
        self.total_tables = total_tables
        self.description = description
        self.current_table = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_tables,
                desc=description,
                unit="table",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_table(self, table: str) -> None:
        self.current_table += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({table})")

    def finish_table(self, status: str = "clean") -> None:
        """Advance the bar by one table.

        Args:
            status: Load status of the finished table, shown as postfix
        """
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
            self.pbar.set_postfix(last=status)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
