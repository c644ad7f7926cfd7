from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from ..models.diagnostic import Diagnostic, Severity
from ..models.field_mapping import FieldMapping, ValidationRule

"""Advisory field validation.

Rules never change a value. A missing required value is an ERROR (the row is
dropped); range and pattern misses are WARNINGs (the row is kept).
"""

__all__ = [
    "validate_field",
]


@lru_cache(maxsize=256)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _compare(value: Any, bound: Any, below: bool) -> bool:
    """True when value lies outside the bound. Incomparable values pass."""
    try:
        return bool(value < bound) if below else bool(value > bound)
    except TypeError:
        return False


def validate_field(
    mapping: FieldMapping,
    value: Any,
    row: int,
    raw: str = "",
) -> list[Diagnostic]:
    """Check one converted value against the field's ValidationRule.

    Args:
        mapping: Field mapping carrying the rule
        value: Converted field value
        row: Source row number used in diagnostics
        raw: Raw cell text, reported as the diagnostic value

    Returns:
        Diagnostics for every rule the value violates (empty if none)
    """
    rule: ValidationRule | None = mapping.validation
    if rule is None:
        return []

    def _diag(message: str, severity: Severity) -> Diagnostic:
        return Diagnostic.create(
            row=row,
            column=mapping.column_label,
            message=rule.message or message,
            severity=severity,
            value=raw,
            expected_type=mapping.type_name,
        )

    if _is_missing(value):
        if rule.required:
            return [_diag(f"Required field '{mapping.field_name}' is missing", Severity.ERROR)]
        return []

    diagnostics: list[Diagnostic] = []
    if rule.minimum is not None and _compare(value, rule.minimum, below=True):
        diagnostics.append(
            _diag(f"Value {value!r} is below minimum {rule.minimum!r}", Severity.WARNING)
        )
    if rule.maximum is not None and _compare(value, rule.maximum, below=False):
        diagnostics.append(
            _diag(f"Value {value!r} is above maximum {rule.maximum!r}", Severity.WARNING)
        )
    if rule.pattern is not None and isinstance(value, str):
        if _compiled(rule.pattern).fullmatch(value) is None:
            diagnostics.append(
                _diag(f"Value {value!r} does not match pattern '{rule.pattern}'", Severity.WARNING)
            )
    return diagnostics
