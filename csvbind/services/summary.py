from __future__ import annotations

from ..models.load_result import PreloadResult

"""SUMMARY line rendering for preload runs."""

__all__ = [
    "format_number",
    "render_summary_line",
]


def format_number(value: float) -> str:
    """Render a metric without scientific notation or a trailing '.0'."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: PreloadResult) -> str:
    """Render the SUMMARY line of a preload.

    Format:
    SUMMARY tables={n} clean={a} degraded={b} aborted={c} records={r}
    diagnostics={d} elapsed_sec={e} hit_rate={h}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = PreloadResult(start_time=start, end_time=start, elapsed_seconds=2.0)
        >>> render_summary_line(result)
        'SUMMARY tables=0 clean=0 degraded=0 aborted=0 records=0 diagnostics=0 elapsed_sec=2 hit_rate=0'
    """
    return (
        f"SUMMARY tables={len(result.table_stats)} "
        f"clean={result.clean_tables} "
        f"degraded={result.degraded_tables} "
        f"aborted={result.aborted_tables} "
        f"records={result.total_records} "
        f"diagnostics={result.total_diagnostics} "
        f"elapsed_sec={format_number(result.elapsed_seconds)} "
        f"hit_rate={format_number(round(result.hit_rate, 3))}"
    )
