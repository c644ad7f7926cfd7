from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, ClassVar

"""Record base class and the table-name registry.

Every loadable record type is a dataclass deriving from Record and naming its
table via the ``table_name`` class attribute. Subclasses with a table name are
registered so that relationships and preloads can find a record type from a
table name alone.
"""

__all__ = [
    "Record",
    "record_type_for_table",
    "registered_tables",
    "register_record_type",
    "unregister_record_type",
]

logger = logging.getLogger(__name__)

_registry: dict[str, type[Record]] = {}
_registry_lock = threading.Lock()

# Instance attributes kept outside the dataclass fields
_LOADER_ATTR = "_csvbind_lazy_loader"
_RESOLVED_ATTR = "_csvbind_resolved"


def _normalize(table: str) -> str:
    return table.strip().lower()


def register_record_type(record_type: type[Record]) -> None:
    """Register a record type under its table identity (last writer wins)."""
    table = _normalize(record_type.table_identity())
    with _registry_lock:
        previous = _registry.get(table)
        if previous is not None and previous is not record_type:
            logger.warning(
                "table=%s re-registered: %s replaces %s",
                table,
                record_type.__qualname__,
                previous.__qualname__,
            )
        _registry[table] = record_type


def unregister_record_type(record_type: type[Record]) -> None:
    table = _normalize(record_type.table_identity())
    with _registry_lock:
        if _registry.get(table) is record_type:
            del _registry[table]


def record_type_for_table(table: str) -> type[Record] | None:
    with _registry_lock:
        return _registry.get(_normalize(table))


def registered_tables() -> list[str]:
    with _registry_lock:
        return sorted(_registry)


class Record:
    """Base class of loadable records.

    Subclasses must be dataclasses and set ``table_name``. Override
    ``on_data_loaded`` for post-processing and ``validate_data`` for
    cross-field sanity checks (returning False drops the row).
    """

    table_name: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("table_name"):
            register_record_type(cls)

    @classmethod
    def table_identity(cls) -> str:
        """Logical name of the table this type's rows come from."""
        if not cls.table_name:
            raise TypeError(f"{cls.__qualname__} does not declare table_name")
        return cls.table_name

    def on_data_loaded(self) -> None:
        """Called once after the record's fields are assigned."""

    def validate_data(self) -> bool:
        """Return False to mark the record invalid."""
        return True

    def related(self, name: str) -> Any:
        """Return a relation field, resolving a lazy relation on first access.

        The resolved value is memoized on the record; later calls return the
        stored attribute without touching the loader again.
        """
        resolved: set[str] = self.__dict__.setdefault(_RESOLVED_ATTR, set())
        if name in resolved:
            return getattr(self, name)
        loader: Callable[[Record, str], Any] | None = self.__dict__.get(_LOADER_ATTR)
        if loader is None:
            return getattr(self, name)
        value = loader(self, name)
        object.__setattr__(self, name, value)
        resolved.add(name)
        return value

    def is_resolved(self, name: str) -> bool:
        return name in self.__dict__.get(_RESOLVED_ATTR, ())

    def _bind_lazy_loader(self, loader: Callable[[Record, str], Any]) -> None:
        object.__setattr__(self, _LOADER_ATTR, loader)

    def _mark_resolved(self, name: str) -> None:
        self.__dict__.setdefault(_RESOLVED_ATTR, set()).add(name)
