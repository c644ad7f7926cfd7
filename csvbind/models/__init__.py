"""Domain models for the csvbind table loader.

Diagnostics, mapping plan entries, composite value types, cache entries and
load results used throughout the package.
"""

from .cache_models import CacheEntry, CacheStats
from .composites import Color, Vector2, Vector3, Vector4
from .diagnostic import Diagnostic, Severity
from .diagnostic_set import DiagnosticSet, LoadStatus
from .field_mapping import (
    Cardinality,
    CellConverter,
    FieldMapping,
    RelationshipDescriptor,
    ValidationRule,
)
from .load_result import LoadResult, ParsedRecord, PreloadResult, TableStat

__all__ = [
    # Diagnostics
    "Diagnostic",
    "DiagnosticSet",
    "LoadStatus",
    "Severity",
    # Mapping plan
    "Cardinality",
    "CellConverter",
    "FieldMapping",
    "RelationshipDescriptor",
    "ValidationRule",
    # Composite values
    "Color",
    "Vector2",
    "Vector3",
    "Vector4",
    # Results
    "CacheEntry",
    "CacheStats",
    "LoadResult",
    "ParsedRecord",
    "PreloadResult",
    "TableStat",
]
