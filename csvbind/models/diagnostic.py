from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum

"""Diagnostic model for table loading.

A Diagnostic describes one problem found while loading a table: which row and
column, the raw cell text, the type the cell was supposed to become and how
bad it is. Row 0 is used for table-level problems (header, schema,
relationships) where no data row applies.
"""

__all__ = [
    "Severity",
    "Diagnostic",
]


class Severity(Enum):
    """How a diagnostic affects the load.

    - WARNING: field defaulted, row kept
    - ERROR: row dropped, rest of the table still loads
    - CRITICAL: whole load aborted, no records returned
    """
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Diagnostic:
    """Structured diagnostic for one load problem.

    Attributes:
        row: Source row number (1-based). 0 for table-level problems
        column: Column name (or field name when no column applies)
        value: Raw cell text that caused the problem
        expected_type: Name of the type the cell was converted to
        message: Human readable description
        severity: Severity classification
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
    """
    row: int
    column: str
    value: str
    expected_type: str
    message: str
    severity: Severity
    timestamp: str

    @staticmethod
    def create(
        row: int,
        column: str,
        message: str,
        severity: Severity,
        value: str = "",
        expected_type: str = "",
    ) -> Diagnostic:
        """Create a new Diagnostic stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return Diagnostic(
            row=row,
            column=column,
            value=value,
            expected_type=expected_type,
            message=message,
            severity=severity,
            timestamp=ts,
        )

    @property
    def is_blocking(self) -> bool:
        """True when the diagnostic removes its row (or the whole table)."""
        return self.severity in (Severity.ERROR, Severity.CRITICAL)

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data

    def to_json_line(self, table: str | None = None) -> str:
        """Serialize to a single JSON line, optionally tagged with the table name."""
        data = self.to_dict()
        if table is not None:
            data = {"table": table, **data}
        return json.dumps(data, ensure_ascii=False)

    def __str__(self) -> str:
        return (
            f"[{self.severity.name}] Row {self.row}, Column '{self.column}': "
            f"{self.message} (Value: '{self.value}')"
        )
