from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from typing import Any

from ..models.diagnostic import Diagnostic, Severity
from ..schema.resolver import BoundPlan
from .conversion import (
    COMPOSITE_DELIMITER,
    ConversionError,
    ConversionPipeline,
    default_for,
    default_pipeline,
)
from .validation import validate_field

"""Row parser: one row of cells -> one record (or none) plus diagnostics.

Per field:
1. cell lookup ("" when the row is short, the column is absent or the cell is
   a null sentinel such as NULL). When a row has more cells than the header
   and the last header column is an auto-convert composite, the extra cells
   belong to that column: 1,Sword,Rare,255,0,0 under item_id,name,rarity,color
   gives color "255,0,0".
2. conversion; on failure the type default is used and a WARNING (optional
   field) or ERROR (required field) is recorded
3. validation of successfully converted values

The record is then constructed. If no ERROR was recorded the record's
on_data_loaded() and validate_data() hooks run; a False result or an
exception from either hook is an ERROR. A row with any ERROR yields no record.
"""

__all__ = [
    "parse_row",
    "normalize_cell",
]

logger = logging.getLogger(__name__)


def normalize_cell(cell: Any, null_sentinels: Collection[str] | None = None) -> str:
    """Strip a cell and map null sentinels (matched upper-cased) to ""."""
    if cell is None:
        return ""
    text = str(cell).strip()
    if null_sentinels and text.upper() in null_sentinels:
        return ""
    return text


def parse_row(
    cells: Sequence[Any],
    plan: BoundPlan,
    row_number: int,
    pipeline: ConversionPipeline | None = None,
    null_sentinels: Collection[str] | None = None,
) -> tuple[Any | None, list[Diagnostic]]:
    """Materialize one record from a row of cells.

    Args:
        cells: Raw cells of the row (already split)
        plan: Plan bound to the table header
        row_number: 1-based source row number used in diagnostics
        pipeline: Conversion pipeline (module default when None)
        null_sentinels: Upper-cased cell values treated as empty

    Returns:
        (record or None, diagnostics of the row)
    """
    pipeline = pipeline or default_pipeline
    diagnostics: list[Diagnostic] = []
    values: dict[str, Any] = {}
    overflow_index = _overflow_column(cells, plan, pipeline)

    for mapping, index in plan.columns:
        raw = ""
        if index is not None and index == overflow_index:
            raw = normalize_cell(_join_cells(cells[index:]), null_sentinels)
        elif index is not None and index < len(cells):
            raw = normalize_cell(cells[index], null_sentinels)
        try:
            value = pipeline.convert(
                raw,
                mapping.target_type,
                auto_convert=mapping.auto_convert,
                converter=mapping.converter,
            )
        except ConversionError as e:
            values[mapping.field_name] = default_for(mapping.target_type)
            diagnostics.append(
                Diagnostic.create(
                    row=row_number,
                    column=mapping.column_label,
                    message=str(e),
                    severity=Severity.WARNING if mapping.optional else Severity.ERROR,
                    value=raw,
                    expected_type=mapping.type_name,
                )
            )
            continue
        values[mapping.field_name] = value
        diagnostics.extend(validate_field(mapping, value, row_number, raw))

    try:
        record = plan.record_type(**values)
    except Exception as e:
        diagnostics.append(
            Diagnostic.create(
                row=row_number,
                column="",
                message=f"Failed to construct {plan.record_type.__name__}: {e}",
                severity=Severity.ERROR,
            )
        )
        return None, diagnostics

    if any(d.is_blocking for d in diagnostics):
        return None, diagnostics

    hook_error = _run_hooks(record)
    if hook_error is not None:
        diagnostics.append(
            Diagnostic.create(
                row=row_number,
                column="",
                message=hook_error,
                severity=Severity.ERROR,
            )
        )
        return None, diagnostics
    return record, diagnostics


def _overflow_column(cells: Sequence[Any], plan: BoundPlan, pipeline: ConversionPipeline) -> int | None:
    """Index of the last header column when it absorbs cells past the header."""
    last = len(plan.header) - 1
    if last < 0 or len(cells) <= len(plan.header):
        return None
    if not any(normalize_cell(c) for c in cells[last + 1:]):
        return None
    for mapping, index in plan.columns:
        if index == last and mapping.auto_convert and pipeline.is_composite(mapping.target_type):
            return last
    return None


def _join_cells(cells: Sequence[Any]) -> str:
    parts = [normalize_cell(c) for c in cells]
    while parts and not parts[-1]:
        parts.pop()
    return COMPOSITE_DELIMITER.join(parts)


def _run_hooks(record: Any) -> str | None:
    """Run post-load hooks; return an error message or None."""
    name = type(record).__name__
    try:
        on_loaded = getattr(record, "on_data_loaded", None)
        if on_loaded is not None:
            on_loaded()
        validate = getattr(record, "validate_data", None)
        if validate is not None and validate() is False:
            return f"{name}.validate_data() rejected the record"
    except Exception as e:
        logger.debug("hook failure on %s", name, exc_info=True)
        return f"{name} hook raised {type(e).__name__}: {e}"
    return None
