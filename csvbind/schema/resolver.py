from __future__ import annotations

import dataclasses
import logging
import threading
import typing
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..models.diagnostic import Diagnostic, Severity
from ..models.field_mapping import FieldMapping, RelationshipDescriptor
from .fields import METADATA_KEY, ColumnSpec, IgnoreSpec, RelationSpec

"""Schema resolver: record declarations -> reusable mapping plans.

A SchemaPlan is built once per record type from its dataclass fields and
their csvbind metadata. Binding a plan to a table header translates name
selectors into column indices; bound plans are memoized per header shape so
the translation happens once per distinct header.

Inconsistent schemas fail fast: a required field whose column cannot be
found produces a CRITICAL diagnostic and the load aborts before any row is
parsed.
"""

__all__ = [
    "SchemaError",
    "BoundPlan",
    "SchemaPlan",
    "SchemaResolver",
    "default_resolver",
    "plan_for",
]

logger = logging.getLogger(__name__)


class SchemaError(Exception):
    """Raised when a record type's declarations are unusable."""


@dataclass(frozen=True)
class BoundPlan:
    """A SchemaPlan translated against one concrete header."""
    record_type: type
    header: tuple[str, ...]
    columns: tuple[tuple[FieldMapping, int | None], ...]  # None = column absent

    @property
    def mappings(self) -> list[FieldMapping]:
        return [m for m, _ in self.columns]


class SchemaPlan:
    """Immutable per-type mapping plan (field mappings + relationships)."""

    def __init__(
        self,
        record_type: type,
        mappings: Sequence[FieldMapping],
        relationships: Sequence[RelationshipDescriptor],
    ) -> None:
        self.record_type = record_type
        self.mappings: tuple[FieldMapping, ...] = tuple(mappings)
        self.relationships: tuple[RelationshipDescriptor, ...] = tuple(relationships)
        self._bound: dict[tuple[str, ...], tuple[BoundPlan, tuple[Diagnostic, ...]]] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"SchemaPlan({self.record_type.__name__}, fields={len(self.mappings)}, "
            f"relationships={len(self.relationships)})"
        )

    @property
    def eager_relationships(self) -> list[RelationshipDescriptor]:
        return [r for r in self.relationships if not r.lazy]

    @property
    def lazy_relationships(self) -> list[RelationshipDescriptor]:
        return [r for r in self.relationships if r.lazy]

    def relationship(self, field_name: str) -> RelationshipDescriptor | None:
        for rel in self.relationships:
            if rel.field_name == field_name:
                return rel
        return None

    def key_field(self, key: str) -> str | None:
        """Find the record field for a key given as field name or column name."""
        for m in self.mappings:
            if m.field_name == key:
                return m.field_name
        wanted = key.strip().lower()
        for m in self.mappings:
            if m.field_name.lower() == wanted:
                return m.field_name
            if isinstance(m.selector, str) and m.selector.strip().lower() == wanted:
                return m.field_name
        return None

    def bind(self, header: Sequence[str]) -> tuple[BoundPlan, list[Diagnostic]]:
        """Translate selectors against a header.

        Returns:
            (bound plan, CRITICAL diagnostics for unresolvable required fields)
        """
        key = tuple(header)
        cached = self._bound.get(key)
        if cached is not None:
            return cached[0], list(cached[1])

        lookup: dict[str, int] = {}
        for index, name in enumerate(key):
            lookup.setdefault(name.strip().lower(), index)

        columns: list[tuple[FieldMapping, int | None]] = []
        diagnostics: list[Diagnostic] = []
        for mapping in self.mappings:
            if isinstance(mapping.selector, int):
                index = mapping.selector if mapping.selector < len(key) else None
            else:
                index = lookup.get(mapping.selector.strip().lower())
            if index is None:
                if mapping.optional:
                    logger.debug(
                        "type=%s optional column absent: %s",
                        self.record_type.__name__,
                        mapping.column_label,
                    )
                else:
                    diagnostics.append(
                        Diagnostic.create(
                            row=0,
                            column=mapping.column_label,
                            message=f"Required column not found for field '{mapping.field_name}'",
                            severity=Severity.CRITICAL,
                            expected_type=mapping.type_name,
                        )
                    )
            columns.append((mapping, index))

        bound = BoundPlan(record_type=self.record_type, header=key, columns=tuple(columns))
        with self._lock:
            stored = self._bound.setdefault(key, (bound, tuple(diagnostics)))
        return stored[0], list(stored[1])


def _build_plan(record_type: type) -> SchemaPlan:
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise SchemaError(f"{record_type!r} is not a dataclass record type")
    try:
        hints = typing.get_type_hints(record_type)
    except (NameError, TypeError) as e:
        raise SchemaError(
            f"cannot resolve annotations of {record_type.__name__}: {e}"
        ) from e

    mappings: list[FieldMapping] = []
    relationships: list[RelationshipDescriptor] = []
    field_names: set[str] = set()
    for f in dataclasses.fields(record_type):
        field_names.add(f.name)
        spec: Any = f.metadata.get(METADATA_KEY)
        if isinstance(spec, IgnoreSpec) or not f.init:
            continue
        if isinstance(spec, RelationSpec):
            relationships.append(
                RelationshipDescriptor(
                    field_name=f.name,
                    target=spec.target,
                    foreign_key=spec.foreign_key,
                    primary_key=spec.primary_key,
                    cardinality=spec.cardinality,
                    lazy=spec.lazy,
                )
            )
            continue
        if spec is None:
            spec = ColumnSpec(selector=None)
        mappings.append(
            FieldMapping(
                field_name=f.name,
                selector=spec.selector if spec.selector is not None else f.name,
                target_type=hints.get(f.name, str),
                optional=spec.optional,
                auto_convert=spec.auto_convert,
                converter=spec.converter,
                validation=spec.validation,
            )
        )

    for rel in relationships:
        if rel.primary_key not in field_names:
            raise SchemaError(
                f"{record_type.__name__}.{rel.field_name}: primary key "
                f"'{rel.primary_key}' is not a field"
            )
    return SchemaPlan(record_type, mappings, relationships)


class SchemaResolver:
    """Process-wide memo of SchemaPlans keyed by record type."""

    def __init__(self) -> None:
        self._plans: dict[type, SchemaPlan] = {}
        self._lock = threading.Lock()

    def plan_for(self, record_type: type) -> SchemaPlan:
        plan = self._plans.get(record_type)
        if plan is not None:
            return plan
        with self._lock:
            plan = self._plans.get(record_type)
            if plan is None:
                plan = _build_plan(record_type)
                self._plans[record_type] = plan
                logger.debug("built %r", plan)
        return plan

    def clear(self) -> None:
        with self._lock:
            self._plans.clear()


default_resolver = SchemaResolver()


def plan_for(record_type: type) -> SchemaPlan:
    return default_resolver.plan_for(record_type)
