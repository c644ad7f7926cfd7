from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from ..models.cache_models import CacheEntry
from ..models.diagnostic import Diagnostic, Severity
from ..models.field_mapping import RelationshipDescriptor
from ..schema.record import Record, record_type_for_table
from ..schema.resolver import SchemaResolver, default_resolver

"""Relationship resolution (single-hop foreign keys).

ONE relations take the first target record whose foreign key equals the
owner's primary key; MANY relations take every match in target order.

Loading a target table may itself resolve relations, so a RelationshipContext
is threaded through the nested loads. Before a target is loaded it is checked
against the context: a table that is already loading (a cycle) or a context
at maximum depth leaves the relation empty instead of recursing. The owner
table is remembered as truncated so its partial result is not cached when
it was itself a nested load.
"""

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "RelationshipContext",
    "RelationshipResolver",
    "TruncationHook",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5

# (descriptor, owner table, target table, reason)
TruncationHook = Callable[[RelationshipDescriptor, str, str, str], None]


def _table_key(table: str) -> str:
    return table.strip().lower()


@dataclass
class RelationshipContext:
    """Tables currently loading on this call chain plus nesting depth.

    The table a top-level load starts from is registered with ``rooted()``:
    it takes part in cycle detection but does not count toward the depth,
    so ``max_depth`` is the number of nested table loads allowed.

    Attributes:
        max_depth: Number of nested table loads allowed on one chain
        on_truncated: Called once per relation left empty by the guard
        report_truncations: Add a WARNING diagnostic per truncated relation
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    on_truncated: TruncationHook | None = None
    report_truncations: bool = False
    loading: set[str] = field(default_factory=set)
    depth: int = 0
    truncated: set[str] = field(default_factory=set)

    @property
    def is_nested(self) -> bool:
        return self.depth > 0

    def truncation_reason(self, table: str) -> str | None:
        if _table_key(table) in self.loading:
            return "cycle"
        if self.depth >= self.max_depth:
            return "depth"
        return None

    def mark_truncated(self, owner_table: str) -> None:
        self.truncated.add(_table_key(owner_table))

    def was_truncated(self, owner_table: str) -> bool:
        """True when a relation of ``owner_table`` was left empty on this chain."""
        return _table_key(owner_table) in self.truncated

    @contextmanager
    def rooted(self, table: str) -> Iterator[None]:
        """Mark the top-level ``table`` as loading without consuming depth."""
        with self._loading(table):
            yield

    @contextmanager
    def entering(self, table: str) -> Iterator[None]:
        """Mark the nested ``table`` as loading for the duration of the block."""
        with self._loading(table):
            self.depth += 1
            try:
                yield
            finally:
                self.depth -= 1

    @contextmanager
    def _loading(self, table: str) -> Iterator[None]:
        key = _table_key(table)
        added = key not in self.loading
        self.loading.add(key)
        try:
            yield
        finally:
            if added:
                self.loading.discard(key)


TableLoadFn = Callable[[type, str, RelationshipContext], CacheEntry]


def _assign(record: Any, name: str, value: Any) -> None:
    object.__setattr__(record, name, value)
    if isinstance(record, Record):
        record._mark_resolved(name)


class RelationshipResolver:
    """Fills relation fields by loading target tables through ``load_table``."""

    def __init__(
        self,
        load_table: TableLoadFn,
        resolver: SchemaResolver | None = None,
    ) -> None:
        self._load_table = load_table
        self._resolver = resolver or default_resolver

    def target_of(self, descriptor: RelationshipDescriptor) -> tuple[type, str] | None:
        """Resolve a descriptor target to (record type, table identity)."""
        target = descriptor.target
        if isinstance(target, str):
            record_type = record_type_for_table(target)
            if record_type is None:
                return None
            return record_type, target
        if isinstance(target, type) and issubclass(target, Record) and target.table_name:
            return target, target.table_identity()
        return None

    def resolve(
        self,
        records: Sequence[Any],
        descriptors: Sequence[RelationshipDescriptor],
        context: RelationshipContext,
        owner_table: str,
    ) -> list[Diagnostic]:
        """Resolve eager relations for every record of a freshly parsed table."""
        diagnostics: list[Diagnostic] = []
        for descriptor in descriptors:
            diagnostics.extend(self._resolve_descriptor(records, descriptor, context, owner_table))
        return diagnostics

    def resolve_one(
        self,
        record: Any,
        descriptor: RelationshipDescriptor,
        context: RelationshipContext,
        owner_table: str,
    ) -> tuple[Any, list[Diagnostic]]:
        """Resolve a single (lazy) relation of one record.

        Returns:
            (resolved value, diagnostics)
        """
        diagnostics = self._resolve_descriptor([record], descriptor, context, owner_table)
        return getattr(record, descriptor.field_name), diagnostics

    def _resolve_descriptor(
        self,
        records: Sequence[Any],
        descriptor: RelationshipDescriptor,
        context: RelationshipContext,
        owner_table: str,
    ) -> list[Diagnostic]:
        target = self.target_of(descriptor)
        if target is None:
            self._fill_empty(records, descriptor)
            return [
                Diagnostic.create(
                    row=0,
                    column=descriptor.field_name,
                    message=f"Unknown relationship target table '{descriptor.target_label}'",
                    severity=Severity.CRITICAL,
                )
            ]
        target_type, target_table = target

        reason = context.truncation_reason(target_table)
        if reason is not None:
            self._fill_empty(records, descriptor)
            context.mark_truncated(owner_table)
            logger.debug(
                "table=%s relation %s -> %s truncated (%s)",
                owner_table,
                descriptor.field_name,
                target_table,
                reason,
            )
            if context.on_truncated is not None:
                context.on_truncated(descriptor, owner_table, target_table, reason)
            if context.report_truncations:
                return [
                    Diagnostic.create(
                        row=0,
                        column=descriptor.field_name,
                        message=(
                            f"Relationship to '{target_table}' left empty "
                            f"({'cycle detected' if reason == 'cycle' else 'maximum depth reached'})"
                        ),
                        severity=Severity.WARNING,
                    )
                ]
            return []

        with context.entering(target_table):
            entry = self._load_table(target_type, target_table, context)

        if entry.diagnostics.has_critical_errors:
            self._fill_empty(records, descriptor)
            return [
                Diagnostic.create(
                    row=0,
                    column=descriptor.field_name,
                    message=f"Relationship target '{target_table}' failed to load; relation left empty",
                    severity=Severity.WARNING,
                )
            ]

        key_field = self._resolver.plan_for(target_type).key_field(descriptor.foreign_key)
        if key_field is None:
            self._fill_empty(records, descriptor)
            return [
                Diagnostic.create(
                    row=0,
                    column=descriptor.field_name,
                    message=(
                        f"Foreign key '{descriptor.foreign_key}' is not a field of "
                        f"{target_type.__name__}"
                    ),
                    severity=Severity.CRITICAL,
                )
            ]

        index = self._index(entry.values(), key_field)
        for record in records:
            matches = index.get(self._hashable(getattr(record, descriptor.primary_key, None)), [])
            if descriptor.is_many:
                _assign(record, descriptor.field_name, list(matches))
            else:
                _assign(record, descriptor.field_name, matches[0] if matches else None)
        return []

    @staticmethod
    def _hashable(value: Any) -> Any:
        try:
            hash(value)
        except TypeError:
            return None
        return value

    def _index(self, targets: Sequence[Any], key_field: str) -> dict[Any, list[Any]]:
        index: dict[Any, list[Any]] = {}
        for target in targets:
            key = self._hashable(getattr(target, key_field, None))
            if key is None:
                continue
            index.setdefault(key, []).append(target)
        return index

    @staticmethod
    def _fill_empty(records: Sequence[Any], descriptor: RelationshipDescriptor) -> None:
        for record in records:
            _assign(record, descriptor.field_name, descriptor.empty_value())
