from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

"""Mapping plan models: how record fields relate to table columns.

FieldMapping / RelationshipDescriptor are built once per record type by the
schema resolver and are immutable afterwards, so they can be shared freely
between threads.
"""

__all__ = [
    "CellConverter",
    "Cardinality",
    "ValidationRule",
    "FieldMapping",
    "RelationshipDescriptor",
]


@runtime_checkable
class CellConverter(Protocol):
    """Custom conversion capability for a single cell."""

    def can_convert(self, target_type: Any) -> bool: ...

    def convert(self, raw: str, target_type: Any) -> Any: ...


class Cardinality(Enum):
    ONE = "one"
    MANY = "many"


@dataclass(frozen=True)
class ValidationRule:
    """Advisory validation applied after a field is converted.

    minimum/maximum only apply to values comparable with the bounds, pattern
    only applies to str values. required flags a missing (None or empty) value.
    message replaces the generated diagnostic text when set.
    """
    minimum: Any = None
    maximum: Any = None
    pattern: str | None = None
    required: bool = False
    message: str | None = None


@dataclass(frozen=True)
class FieldMapping:
    """Field <-> column mapping for one record field."""
    field_name: str
    selector: str | int  # column name (preferred) or positional index
    target_type: Any
    optional: bool = False
    auto_convert: bool = False
    converter: CellConverter | None = None
    validation: ValidationRule | None = None

    @property
    def uses_index(self) -> bool:
        return isinstance(self.selector, int)

    @property
    def column_label(self) -> str:
        """Column identity used in diagnostics."""
        if isinstance(self.selector, int):
            return f"#{self.selector} ({self.field_name})"
        return self.selector

    @property
    def type_name(self) -> str:
        return getattr(self.target_type, "__name__", None) or str(self.target_type)


@dataclass(frozen=True)
class RelationshipDescriptor:
    """Foreign-key relation declared on a record field.

    target: table name ("items.csv") or the target record class
    foreign_key: field or column name in the target record holding the key
    primary_key: field name in the owning record whose value is matched
    """
    field_name: str
    target: str | type
    foreign_key: str
    primary_key: str = "id"
    cardinality: Cardinality = Cardinality.ONE
    lazy: bool = False

    @property
    def is_many(self) -> bool:
        return self.cardinality is Cardinality.MANY

    @property
    def target_label(self) -> str:
        if isinstance(self.target, str):
            return self.target
        return self.target.__name__

    def empty_value(self) -> Any:
        """Value assigned when the relation yields nothing."""
        return [] if self.is_many else None
