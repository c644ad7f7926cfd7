"""csvbind: load CSV tables into typed, validated and related records.

Record types are dataclasses deriving from Record whose fields are declared
with column(), ignore() and relation(); DataManager loads, caches and relates
them.
"""

from .config.loader import ConfigError, LoaderConfig, load_config
from .models import (
    Cardinality,
    CellConverter,
    Color,
    Diagnostic,
    DiagnosticSet,
    LoadResult,
    LoadStatus,
    PreloadResult,
    Severity,
    ValidationRule,
    Vector2,
    Vector3,
    Vector4,
)
from .schema import Record, SchemaError, column, ignore, plan_for, relation
from .services import (
    ConversionError,
    ConversionPipeline,
    DataManager,
    RelationshipContext,
    TableCache,
    default_pipeline,
)
from .tables import TableReadError, read_table_file, read_table_text

__version__ = "0.1.0"

__all__ = [
    "Cardinality",
    "CellConverter",
    "Color",
    "ConfigError",
    "ConversionError",
    "ConversionPipeline",
    "DataManager",
    "Diagnostic",
    "DiagnosticSet",
    "LoadResult",
    "LoadStatus",
    "LoaderConfig",
    "PreloadResult",
    "Record",
    "RelationshipContext",
    "SchemaError",
    "Severity",
    "TableCache",
    "TableReadError",
    "ValidationRule",
    "Vector2",
    "Vector3",
    "Vector4",
    "column",
    "default_pipeline",
    "ignore",
    "load_config",
    "plan_for",
    "read_table_file",
    "read_table_text",
    "relation",
]
