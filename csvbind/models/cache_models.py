from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .diagnostic_set import DiagnosticSet
from .load_result import ParsedRecord

"""Cache models: stored table entries and aggregate statistics."""


@dataclass(frozen=True)
class CacheEntry:
    """A finished table load stored under (record type, table identity)."""
    record_type: type
    table: str
    records: tuple[ParsedRecord, ...]
    diagnostics: DiagnosticSet
    load_seconds: float
    memory_bytes: int

    @property
    def key(self) -> tuple[type, str]:
        return (self.record_type, self.table)

    def values(self) -> list[Any]:
        """The record instances, in table order."""
        return [p.record for p in self.records]


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters."""
    total_entries: int = 0
    total_hits: int = 0
    total_misses: int = 0
    memory_usage_bytes: int = 0
    average_load_seconds: float = 0.0
    type_counts: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        lookups = self.total_hits + self.total_misses
        return self.total_hits / lookups if lookups else 0.0

    def summary(self) -> str:
        lines = [
            f"Cache Entries: {self.total_entries}",
            f"Memory Usage: {self.memory_usage_bytes / 1024 / 1024:.2f} MB",
            f"Hit Rate: {self.hit_rate:.1%} ({self.total_hits} hits, {self.total_misses} misses)",
            f"Average Load Time: {self.average_load_seconds * 1000:.1f}ms",
        ]
        if self.type_counts:
            lines.append("Type Distribution:")
            lines.extend(f"  - {name}: {count}" for name, count in self.type_counts.items())
        return "\n".join(lines)
