from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from ..models.cache_models import CacheEntry, CacheStats
from ..models.diagnostic_set import DiagnosticSet
from ..models.load_result import ParsedRecord

"""Table cache keyed by (record type, table identity).

Hits read the entry map without taking the load lock. Misses are serialized
by one re-entrant lock so that a table load which triggers nested
relationship loads on the same thread can re-enter, while two threads
loading mutually related tables cannot deadlock on per-table locks.

A loader returns (parsed records, diagnostics, complete). Aborted loads (any
CRITICAL diagnostic) and incomplete loads (relations cut short by the
caller's traversal state) are returned to the caller but never stored.
There is no eviction; remove() drops one entry, clear() drops everything
and resets counters.
"""

__all__ = [
    "DEFAULT_APPROX_RECORD_BYTES",
    "TableCache",
    "TableLoader",
]

logger = logging.getLogger(__name__)

DEFAULT_APPROX_RECORD_BYTES = 100

TableLoader = Callable[[], tuple[tuple[ParsedRecord, ...], DiagnosticSet, bool]]


def _table_key(table: str) -> str:
    return table.strip().lower()


class TableCache:
    """Memoizes finished table loads with hit/miss accounting."""

    def __init__(self, approx_record_bytes: int = DEFAULT_APPROX_RECORD_BYTES) -> None:
        self.approx_record_bytes = approx_record_bytes
        self._entries: dict[tuple[type, str], CacheEntry] = {}
        self._load_lock = threading.RLock()
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._load_seconds: list[float] = []
        self._type_counts: dict[str, int] = {}

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def get(self, record_type: type, table: str) -> CacheEntry | None:
        """Return the stored entry without touching the counters."""
        return self._entries.get((record_type, _table_key(table)))

    def contains(self, record_type: type, table: str) -> bool:
        return (record_type, _table_key(table)) in self._entries

    def get_or_load(
        self,
        record_type: type,
        table: str,
        loader: TableLoader,
    ) -> tuple[CacheEntry, bool]:
        """Return the cached entry, or run ``loader`` once and store its result.

        Args:
            record_type: Record class of the table
            table: Table identity (case-insensitive)
            loader: Callable producing (parsed records, diagnostics, complete)

        Returns:
            (entry, True on cache hit)
        """
        key = (record_type, _table_key(table))
        entry = self._entries.get(key)
        if entry is not None:
            self._count_hit()
            return entry, True

        with self._load_lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._count_hit()
                return entry, True
            self._count_miss()

            started = time.perf_counter()
            records, diagnostics, complete = loader()
            elapsed = time.perf_counter() - started

            entry = CacheEntry(
                record_type=record_type,
                table=table,
                records=tuple(records),
                diagnostics=diagnostics,
                load_seconds=elapsed,
                memory_bytes=len(records) * self.approx_record_bytes,
            )
            if diagnostics.has_critical_errors:
                logger.debug("table=%s load aborted; not cached", table)
                return entry, False
            if not complete:
                logger.debug("table=%s relations truncated by caller; not cached", table)
                return entry, False

            self._entries[key] = entry
            with self._stats_lock:
                self._load_seconds.append(elapsed)
                name = record_type.__name__
                self._type_counts[name] = self._type_counts.get(name, 0) + 1
        return entry, False

    def remove(self, record_type: type, table: str) -> bool:
        """Drop one entry so the next lookup reloads it.

        Returns:
            True when an entry was stored under the key
        """
        with self._load_lock:
            entry = self._entries.pop((record_type, _table_key(table)), None)
            if entry is None:
                return False
            with self._stats_lock:
                name = record_type.__name__
                remaining = self._type_counts.get(name, 0) - 1
                if remaining > 0:
                    self._type_counts[name] = remaining
                else:
                    self._type_counts.pop(name, None)
        logger.debug("table=%s removed from cache", table)
        return True

    def stats(self) -> CacheStats:
        with self._stats_lock:
            entries = list(self._entries.values())
            average = (
                sum(self._load_seconds) / len(self._load_seconds) if self._load_seconds else 0.0
            )
            return CacheStats(
                total_entries=len(entries),
                total_hits=self._hits,
                total_misses=self._misses,
                memory_usage_bytes=sum(e.memory_bytes for e in entries),
                average_load_seconds=average,
                type_counts=dict(self._type_counts),
            )

    def clear(self) -> None:
        with self._load_lock, self._stats_lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._load_seconds.clear()
            self._type_counts.clear()
        logger.debug("cache cleared")

    def _count_hit(self) -> None:
        with self._stats_lock:
            self._hits += 1

    def _count_miss(self) -> None:
        with self._stats_lock:
            self._misses += 1
