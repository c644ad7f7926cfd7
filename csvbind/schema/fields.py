from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from ..models.field_mapping import Cardinality, CellConverter, ValidationRule

"""Field declaration helpers for record dataclasses.

Each helper returns a ``dataclasses.field`` carrying csvbind metadata::

    @dataclass
    class ItemRecord(Record):
        table_name = "items.csv"

        id: int = column("item_id")
        name: str = column("name", validation=ValidationRule(required=True))
        color: Color = column("color", auto_convert=True)
        notes: str = ignore(default="")
        owner: CharacterRecord | None = relation("characters.csv", foreign_key="id",
                                                  primary_key="owner_id")

Fields declared without any helper are mapped by their own name.
"""

__all__ = [
    "METADATA_KEY",
    "ColumnSpec",
    "IgnoreSpec",
    "RelationSpec",
    "column",
    "ignore",
    "relation",
]

METADATA_KEY = "csvbind"

_MISSING: Any = dataclasses.MISSING


@dataclass(frozen=True)
class ColumnSpec:
    selector: str | int | None
    optional: bool = False
    auto_convert: bool = False
    converter: Any = None  # CellConverter instance or class
    validation: ValidationRule | None = None


@dataclass(frozen=True)
class IgnoreSpec:
    pass


@dataclass(frozen=True)
class RelationSpec:
    target: str | type
    foreign_key: str
    primary_key: str = "id"
    cardinality: Cardinality = Cardinality.ONE
    lazy: bool = False


def _field(spec: object, default: Any, default_factory: Any) -> Any:
    metadata = {METADATA_KEY: spec}
    if default_factory is not _MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def column(
    selector: str | int | None = None,
    *,
    optional: bool = False,
    auto_convert: bool = False,
    converter: CellConverter | type | None = None,
    validation: ValidationRule | None = None,
    default: Any = _MISSING,
    default_factory: Any = _MISSING,
) -> Any:
    """Declare a field loaded from a table column.

    Args:
        selector: Column name (matched case-insensitively) or 0-based index.
            None maps the field by its own name.
        optional: Missing column / bad cell degrades to a warning.
        auto_convert: Allow composite conversions (vectors, colours, lists).
        converter: Custom converter instance (or class, instantiated once).
        validation: Advisory validation rule.
    """
    if isinstance(selector, bool) or (isinstance(selector, int) and selector < 0):
        raise ValueError(f"invalid column index: {selector!r}")
    if isinstance(converter, type):
        converter = converter()
    if converter is not None and not isinstance(converter, CellConverter):
        raise TypeError(
            f"converter must implement can_convert/convert: {type(converter).__name__}"
        )
    spec = ColumnSpec(
        selector=selector,
        optional=optional,
        auto_convert=auto_convert,
        converter=converter,
        validation=validation,
    )
    return _field(spec, default, default_factory)


def ignore(*, default: Any = None, default_factory: Any = _MISSING) -> Any:
    """Declare a field that is never read from the table."""
    return _field(IgnoreSpec(), default, default_factory)


def relation(
    target: str | type,
    *,
    foreign_key: str,
    primary_key: str = "id",
    many: bool = False,
    lazy: bool = False,
) -> Any:
    """Declare a field filled from another table by foreign key.

    Args:
        target: Target table name (e.g. "items.csv") or record class.
        foreign_key: Field/column in the target holding the key.
        primary_key: Field in this record whose value is matched.
        many: One-to-many (list) instead of one-to-one.
        lazy: Resolve on first ``record.related(name)`` instead of at load.
    """
    spec = RelationSpec(
        target=target,
        foreign_key=foreign_key,
        primary_key=primary_key,
        cardinality=Cardinality.MANY if many else Cardinality.ONE,
        lazy=lazy,
    )
    if many:
        return _field(spec, _MISSING, list)
    return _field(spec, None, _MISSING)
