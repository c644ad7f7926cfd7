from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.diagnostic import Diagnostic

"""Diagnostic log buffering.

Diagnostics are buffered in memory and appended as JSON Lines to
``<logs_directory>/diagnostics-YYYYMMDD-HHMMSS.log`` (UTC stamp fixed on first
access) when flush() is called. Each line has the fixed keys
timestamp, table, row, column, value, expected_type, message, severity.
"""

__all__ = [
    "DiagnosticLogBuffer",
    "LOG_KEYS",
]

DEFAULT_LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

LOG_KEYS = (
    "table",
    "row",
    "column",
    "value",
    "expected_type",
    "message",
    "severity",
    "timestamp",
)


class DiagnosticLogBuffer:
    """In-memory buffer of (table, diagnostic) pairs; flush() writes JSON Lines.

    Appends may come from worker threads (load_async), so the buffer is
    guarded by a lock.
    """

    def __init__(self, logs_directory: Path | str = DEFAULT_LOGS_DIR) -> None:
        self.logs_directory = Path(logs_directory)
        self._entries: list[tuple[str, Diagnostic]] = []
        self._file_path: Path | None = None
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.logs_directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_directory / f"diagnostics-{stamp}.log"
        return self._file_path

    def append(self, table: str, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._entries.append((table, diagnostic))

    def extend(self, table: str, diagnostics: Iterable[Diagnostic]) -> None:
        with self._lock:
            self._entries.extend((table, d) for d in diagnostics)

    def __len__(self) -> int:
        return len(self._entries)

    def flush(self) -> Path | None:
        """Write buffered diagnostics; returns the file path, or None if nothing was buffered."""
        with self._lock:
            if not self._entries:
                return None
            entries = list(self._entries)
            self._entries.clear()
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for table, diagnostic in entries:
                f.write(diagnostic.to_json_line(table) + "\n")
        return fp
