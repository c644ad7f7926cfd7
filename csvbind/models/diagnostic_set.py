from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from enum import Enum

from .diagnostic import Diagnostic, Severity

"""DiagnosticSet: append-only diagnostics of one load operation.

Aggregate flags follow the severity semantics:
- is_success: no CRITICAL and no ERROR (warnings alone still succeed)
- status: ABORTED / DEGRADED / CLEAN classification reported to callers
"""

__all__ = [
    "DiagnosticSet",
    "LoadStatus",
]


class LoadStatus(Enum):
    """Outcome classification of a table load.

    - ABORTED: a critical diagnostic was recorded, no records returned
    - DEGRADED: errors present, rows with errors were dropped
    - CLEAN: warnings only (or nothing), every row returned
    """
    ABORTED = "aborted"
    DEGRADED = "degraded"
    CLEAN = "clean"


class DiagnosticSet:
    """Ordered collection of diagnostics for one load."""

    def __init__(self, diagnostics: Iterable[Diagnostic] | None = None) -> None:
        self._diagnostics: list[Diagnostic] = list(diagnostics or [])

    def copy(self) -> DiagnosticSet:
        return DiagnosticSet(self._diagnostics)

    def add(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        self._diagnostics.extend(diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __bool__(self) -> bool:
        return bool(self._diagnostics)

    def __repr__(self) -> str:
        return (
            f"DiagnosticSet(critical={self.count(Severity.CRITICAL)}, "
            f"errors={self.count(Severity.ERROR)}, warnings={self.count(Severity.WARNING)})"
        )

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    @property
    def has_critical_errors(self) -> bool:
        return any(d.severity is Severity.CRITICAL for d in self._diagnostics)

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._diagnostics)

    @property
    def has_warnings(self) -> bool:
        return any(d.severity is Severity.WARNING for d in self._diagnostics)

    @property
    def is_success(self) -> bool:
        return not self.has_critical_errors and not self.has_errors

    @property
    def status(self) -> LoadStatus:
        if self.has_critical_errors:
            return LoadStatus.ABORTED
        if self.has_errors:
            return LoadStatus.DEGRADED
        return LoadStatus.CLEAN

    def count(self, severity: Severity) -> int:
        return sum(1 for d in self._diagnostics if d.severity is severity)

    def for_row(self, row: int) -> list[Diagnostic]:
        """Return diagnostics recorded for a given source row."""
        return [d for d in self._diagnostics if d.row == row]

    def failed_rows(self) -> set[int]:
        """Rows (>0) that carry at least one ERROR or CRITICAL diagnostic."""
        return {d.row for d in self._diagnostics if d.row > 0 and d.is_blocking}

    def summary(self) -> str:
        """Multi-line text summary of the diagnostic counts."""
        if not self._diagnostics:
            return "No errors"
        return "\n".join([
            f"Total Errors: {len(self._diagnostics)}",
            f"Critical: {self.count(Severity.CRITICAL)}",
            f"Errors: {self.count(Severity.ERROR)}",
            f"Warnings: {self.count(Severity.WARNING)}",
        ])

    def log_to(self, logger: logging.Logger, table: str = "") -> None:
        """Emit every diagnostic on the logger at a level matching its severity."""
        prefix = f"table={table} " if table else ""
        for d in self._diagnostics:
            if d.severity is Severity.WARNING:
                logger.warning("%s%s", prefix, d)
            elif d.severity is Severity.ERROR:
                logger.error("%s%s", prefix, d)
            else:
                logger.critical("%s%s", prefix, d)
