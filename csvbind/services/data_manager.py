from __future__ import annotations

import asyncio
import functools
import logging
import threading
import time
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import LoaderConfig
from ..logging.diagnostic_log import DiagnosticLogBuffer
from ..models.cache_models import CacheEntry, CacheStats
from ..models.diagnostic import Diagnostic, Severity
from ..models.diagnostic_set import DiagnosticSet, LoadStatus
from ..models.load_result import LoadResult, ParsedRecord, PreloadResult, TableStat
from ..schema.record import Record, record_type_for_table
from ..schema.resolver import SchemaResolver, default_resolver
from ..tables.reader import TableData, TableReadError, read_table_file
from .cache import TableCache
from .conversion import ConversionPipeline, default_pipeline
from .progress import ProgressTracker
from .relationships import RelationshipContext, RelationshipResolver, TruncationHook
from .row_parser import parse_row

"""Data manager: the load entry point.

Flow of one table load (cache miss):
1. read the table (in-memory source registered via load_rows/provide_table,
   otherwise <data_directory>/<table> through the pandas reader)
2. bind the record type's schema plan to the header (CRITICAL -> abort)
3. parse every row; rows with an ERROR are dropped
4. resolve eager relationships (nested table loads go through the cache)
5. bind the lazy loader on records with lazy relationships
6. store the finished table in the cache unless it aborted, or unless it was
   a nested load whose own relations were truncated by the cycle/depth guard

Results are LoadResult(records, diagnostics, cache_hit).
"""

__all__ = [
    "DataManager",
]

logger = logging.getLogger(__name__)


def _table_key(table: str) -> str:
    return table.strip().lower()


def _identity(record_type: type, table: str | None) -> str:
    if table:
        return table
    if isinstance(record_type, type) and issubclass(record_type, Record) and record_type.table_name:
        return record_type.table_identity()
    return record_type.__qualname__


class DataManager:
    """Loads, caches and relates record tables.

    Args:
        config: Loader configuration (data directory, reader options, limits)
        pipeline: Conversion pipeline (shared module default when None)
        resolver: Schema resolver (shared module default when None)
        diagnostic_log: Optional buffer receiving every fresh load's diagnostics
        on_truncated: Hook called when a relation is cut by the cycle/depth guard
    """

    def __init__(
        self,
        config: LoaderConfig | None = None,
        *,
        pipeline: ConversionPipeline | None = None,
        resolver: SchemaResolver | None = None,
        diagnostic_log: DiagnosticLogBuffer | None = None,
        on_truncated: TruncationHook | None = None,
    ) -> None:
        self.config = config or LoaderConfig()
        self.pipeline = pipeline or default_pipeline
        self.resolver = resolver or default_resolver
        self.diagnostic_log = diagnostic_log
        self.on_truncated = on_truncated
        self._cache = TableCache(approx_record_bytes=self.config.approx_record_bytes)
        self._relationships = RelationshipResolver(self._load_entry, self.resolver)
        self._sources: dict[str, TableData] = {}
        self._sources_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Load entry points
    # ------------------------------------------------------------------
    def load(self, record_type: type, table: str | None = None) -> LoadResult:
        """Load a table of ``record_type`` (from the data directory unless provided in memory)."""
        table = _identity(record_type, table)
        context = self._new_context()
        with context.rooted(table):
            entry, hit = self._get_or_load(record_type, table, context)
        return LoadResult(
            record_type=record_type,
            table=table,
            parsed=entry.records,
            diagnostics=entry.diagnostics.copy(),
            cache_hit=hit,
        )

    def load_rows(
        self,
        record_type: type,
        header: Sequence[str],
        rows: Iterable[Sequence[Any]],
        *,
        table: str | None = None,
        row_numbers: Sequence[int] | None = None,
    ) -> LoadResult:
        """Load already-split rows as the content of a table.

        The rows become the in-memory source of the table identity; when the
        identity is already cached the cached entry is returned (clear_cache()
        forces a reload).

        Args:
            record_type: Record class
            header: Header cells
            rows: Data rows (each a sequence of cells)
            table: Table identity (defaults to record_type.table_name)
            row_numbers: Source row numbers (defaults to 1..n)
        """
        table = _identity(record_type, table)
        self.provide_table(table, header, rows, row_numbers=row_numbers)
        return self.load(record_type, table)

    async def load_async(self, record_type: type, table: str | None = None) -> LoadResult:
        """Run load() in a worker thread."""
        return await asyncio.to_thread(self.load, record_type, table)

    def get(self, record_type: type, table: str | None = None) -> list[Any]:
        """Records of a table, loading it on first use."""
        return self.load(record_type, table).records

    def provide_table(
        self,
        table: str,
        header: Sequence[str],
        rows: Iterable[Sequence[Any]],
        *,
        row_numbers: Sequence[int] | None = None,
    ) -> None:
        """Register in-memory content for a table identity (used instead of the file)."""
        materialized = [["" if c is None else str(c) for c in row] for row in rows]
        numbers = list(row_numbers) if row_numbers is not None else list(range(1, len(materialized) + 1))
        if len(numbers) != len(materialized):
            raise ValueError(
                f"row_numbers has {len(numbers)} entries for {len(materialized)} rows"
            )
        data = TableData(header=[str(h) for h in header], rows=materialized, row_numbers=numbers)
        with self._sources_lock:
            self._sources[_table_key(table)] = data

    def preload(self, table_names: Iterable[str] | None = None) -> PreloadResult:
        """Load several tables by name and aggregate their statistics.

        Args:
            table_names: Table identities; the configured preload list when None
        """
        names = list(table_names) if table_names is not None else list(self.config.preload)
        start_time = datetime.now(UTC)
        started = time.perf_counter()
        stats: list[TableStat] = []

        with ProgressTracker(len(names), description="Loading tables") as progress:
            for name in names:
                progress.start_table(name)
                t0 = time.perf_counter()
                record_type = record_type_for_table(name)
                if record_type is None:
                    diagnostic = Diagnostic.create(
                        row=0,
                        column="",
                        message=f"No record type registered for table '{name}'",
                        severity=Severity.CRITICAL,
                    )
                    logger.error("table=%s %s", name, diagnostic)
                    if self.diagnostic_log is not None:
                        self.diagnostic_log.append(name, diagnostic)
                    stat = TableStat(
                        table=name,
                        status=LoadStatus.ABORTED.value,
                        records=0,
                        diagnostics=1,
                        elapsed_seconds=time.perf_counter() - t0,
                    )
                else:
                    result = self.load(record_type, name)
                    stat = TableStat(
                        table=name,
                        status=result.status.value,
                        records=len(result),
                        diagnostics=len(result.diagnostics),
                        elapsed_seconds=time.perf_counter() - t0,
                        cache_hit=result.cache_hit,
                    )
                stats.append(stat)
                progress.finish_table(stat.status)

        return PreloadResult(
            start_time=start_time,
            end_time=datetime.now(UTC),
            elapsed_seconds=time.perf_counter() - started,
            table_stats=stats,
            hit_rate=self._cache.stats().hit_rate,
        )

    # ------------------------------------------------------------------
    # Cache introspection
    # ------------------------------------------------------------------
    @property
    def entry_count(self) -> int:
        return self._cache.entry_count

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def clear_cache(self) -> None:
        self._cache.clear()

    def reload(self, record_type: type, table: str | None = None) -> LoadResult:
        """Drop the cached table (if any) and load it again."""
        table = _identity(record_type, table)
        if self._cache.remove(record_type, table):
            logger.info("table=%s reloading", table)
        return self.load(record_type, table)

    def is_loaded(self, record_type: type, table: str | None = None) -> bool:
        return self._cache.contains(record_type, _identity(record_type, table))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _new_context(self) -> RelationshipContext:
        return RelationshipContext(
            max_depth=self.config.max_relationship_depth,
            on_truncated=self.on_truncated,
            report_truncations=self.config.report_relationship_cycles,
        )

    def _load_entry(self, record_type: type, table: str, context: RelationshipContext) -> CacheEntry:
        entry, _ = self._get_or_load(record_type, table, context)
        return entry

    def _get_or_load(
        self, record_type: type, table: str, context: RelationshipContext
    ) -> tuple[CacheEntry, bool]:
        entry, hit = self._cache.get_or_load(
            record_type, table, functools.partial(self._build_table, record_type, table, context)
        )
        if not hit:
            logger.info(
                "table=%s type=%s status=%s records=%d diagnostics=%d elapsed=%.3fs",
                table,
                record_type.__name__,
                entry.diagnostics.status.value,
                len(entry.records),
                len(entry.diagnostics),
                entry.load_seconds,
            )
            entry.diagnostics.log_to(logger, table)
            if self.diagnostic_log is not None and entry.diagnostics:
                self.diagnostic_log.extend(table, entry.diagnostics)
        return entry, hit

    def _read(self, table: str) -> TableData:
        with self._sources_lock:
            source = self._sources.get(_table_key(table))
        if source is not None:
            return source
        path = self.config.data_path / table
        return read_table_file(
            Path(path),
            delimiter=self.config.delimiter,
            comment_prefix=self.config.comment_prefix,
            encoding=self.config.encoding,
        )

    def _build_table(
        self, record_type: type, table: str, context: RelationshipContext
    ) -> tuple[tuple[ParsedRecord, ...], DiagnosticSet, bool]:
        diagnostics = DiagnosticSet()
        plan = self.resolver.plan_for(record_type)
        context.truncated.discard(_table_key(table))
        try:
            data = self._read(table)
        except TableReadError as e:
            diagnostics.add(
                Diagnostic.create(row=0, column="", message=str(e), severity=Severity.CRITICAL)
            )
            return (), diagnostics, True

        bound, schema_diagnostics = plan.bind(data.header)
        if schema_diagnostics:
            diagnostics.extend(schema_diagnostics)
            return (), diagnostics, True

        parsed: list[ParsedRecord] = []
        for cells, row_number in zip(data.rows, data.row_numbers, strict=True):
            record, row_diagnostics = parse_row(
                cells,
                bound,
                row_number,
                pipeline=self.pipeline,
                null_sentinels=self.config.null_sentinels,
            )
            diagnostics.extend(row_diagnostics)
            if record is not None:
                parsed.append(ParsedRecord(record=record, row=row_number))

        records = [p.record for p in parsed]
        if plan.eager_relationships:
            diagnostics.extend(
                self._relationships.resolve(records, plan.eager_relationships, context, table)
            )
        if diagnostics.has_critical_errors:
            return (), diagnostics, True

        if plan.lazy_relationships:
            loader = functools.partial(self._resolve_lazy, table)
            for record in records:
                if isinstance(record, Record):
                    record._bind_lazy_loader(loader)
        # a nested load whose own relations were cut short is returned but not cached
        complete = not (context.is_nested and context.was_truncated(table))
        return tuple(parsed), diagnostics, complete

    def _resolve_lazy(self, table: str, record: Any, name: str) -> Any:
        plan = self.resolver.plan_for(type(record))
        descriptor = plan.relationship(name)
        if descriptor is None:
            return getattr(record, name)
        context = self._new_context()
        with context.rooted(table):
            value, diagnostics = self._relationships.resolve_one(record, descriptor, context, table)
        if diagnostics:
            DiagnosticSet(diagnostics).log_to(logger, table)
            if self.diagnostic_log is not None:
                self.diagnostic_log.extend(table, diagnostics)
        return value
