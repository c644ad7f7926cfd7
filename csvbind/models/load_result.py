from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .diagnostic_set import DiagnosticSet, LoadStatus

"""Load result models.

LoadResult is what the load entry point hands back to callers; TableStat and
PreloadResult aggregate several loads for the preload summary line.
"""


@dataclass(frozen=True)
class ParsedRecord:
    """A materialized record plus the source row it came from."""
    record: Any
    row: int


@dataclass(frozen=True)
class LoadResult:
    """Records, diagnostics and cache-hit flag of one load call."""
    record_type: type
    table: str
    parsed: tuple[ParsedRecord, ...]
    diagnostics: DiagnosticSet
    cache_hit: bool = False

    @property
    def records(self) -> list[Any]:
        return [p.record for p in self.parsed]

    @property
    def status(self) -> LoadStatus:
        return self.diagnostics.status

    @property
    def is_success(self) -> bool:
        return self.diagnostics.is_success

    def __len__(self) -> int:
        return len(self.parsed)


@dataclass(frozen=True)
class TableStat:
    """Per-table statistics of a preload run."""
    table: str
    status: str  # clean/degraded/aborted
    records: int
    diagnostics: int
    elapsed_seconds: float
    cache_hit: bool = False


@dataclass(frozen=True)
class PreloadResult:
    """Aggregated results of preloading several tables."""
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    table_stats: list[TableStat] = field(default_factory=list)
    hit_rate: float = 0.0

    def _count(self, status: LoadStatus) -> int:
        return sum(1 for s in self.table_stats if s.status == status.value)

    @property
    def clean_tables(self) -> int:
        return self._count(LoadStatus.CLEAN)

    @property
    def degraded_tables(self) -> int:
        return self._count(LoadStatus.DEGRADED)

    @property
    def aborted_tables(self) -> int:
        return self._count(LoadStatus.ABORTED)

    @property
    def total_records(self) -> int:
        return sum(s.records for s in self.table_stats)

    @property
    def total_diagnostics(self) -> int:
        return sum(s.diagnostics for s in self.table_stats)
