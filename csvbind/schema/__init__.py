"""Record declarations and schema resolution."""

from .fields import column, ignore, relation
from .record import Record, record_type_for_table, registered_tables
from .resolver import BoundPlan, SchemaError, SchemaPlan, SchemaResolver, plan_for

__all__ = [
    "BoundPlan",
    "Record",
    "SchemaError",
    "SchemaPlan",
    "SchemaResolver",
    "column",
    "ignore",
    "plan_for",
    "record_type_for_table",
    "registered_tables",
    "relation",
]
