from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

"""Table text reader: delimited text -> header + raw string rows.

pandas does the splitting (quoted cells may contain the delimiter). Every cell
is read as a string with NA conversion disabled, so "NA" or "NULL" reach the
row parser unchanged; null sentinels are handled there.

Layout rules:
- the first non-blank, non-comment line is the header
- blank lines and comment lines are skipped
- cells are stripped; blank header cells become Column_<i>
- the header ends at its last named cell; longer rows keep the extra cells
  (an unquoted composite such as 255,0,0 in the last column)
- row numbers are 1-based source line numbers
"""

__all__ = [
    "TableData",
    "TableReadError",
    "read_table_file",
    "read_table_text",
]


class TableReadError(Exception):
    """Raised when table text has no usable header or cannot be read."""


@dataclass
class TableData:
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def preview(self, limit: int = 3) -> list[dict[str, str]]:
        """First rows as header -> cell dicts (used by --inspect-data)."""
        return [dict(zip(self.header, row, strict=False)) for row in self.rows[:limit]]


def _blank_comments(lines: list[str], comment_prefix: str | None) -> list[str]:
    # Keep one (empty) line per source line so pandas row index == line index
    if not comment_prefix:
        return lines
    return ["" if line.lstrip().startswith(comment_prefix) else line for line in lines]


def _used_width(cells: list[str]) -> int:
    for i in range(len(cells) - 1, -1, -1):
        if cells[i]:
            return i + 1
    return 0


def read_table_text(
    text: str,
    delimiter: str = ",",
    comment_prefix: str | None = "#",
) -> TableData:
    """Split delimited text into a TableData.

    Args:
        text: Whole table text
        delimiter: Cell delimiter (multi-character delimiters use the python engine)
        comment_prefix: Lines starting with this prefix (after whitespace) are skipped

    Raises:
        TableReadError: Empty input or no header line
    """
    text = text.lstrip("\ufeff")
    lines = _blank_comments(text.splitlines(), comment_prefix)
    if not any(line.strip() for line in lines):
        raise TableReadError("table is empty")

    width = max(line.count(delimiter) for line in lines) + 1
    try:
        df = pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=re.escape(delimiter) if len(delimiter) > 1 else delimiter,
            header=None,
            names=range(width),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            engine="python" if len(delimiter) > 1 else "c",
        )
    except (pd.errors.ParserError, ValueError) as e:
        raise TableReadError(f"cannot parse table: {e}") from e
    df = df.fillna("")

    header: list[str] | None = None
    rows: list[list[str]] = []
    row_numbers: list[int] = []
    for position, raw in enumerate(df.itertuples(index=False, name=None)):
        cells = [str(c).strip() for c in raw]
        if not any(cells):
            continue
        if header is None:
            header = cells
            continue
        rows.append(cells)
        row_numbers.append(position + 1)

    if header is None:
        raise TableReadError("table has no header row")

    header_width = _used_width(header)
    used = max([header_width, *(_used_width(cells) for cells in rows)])
    # cells past the last named header column stay on the row as overflow
    header = [name or f"Column_{i}" for i, name in enumerate(header[:header_width])]
    rows = [cells[:used] for cells in rows]
    return TableData(header=header, rows=rows, row_numbers=row_numbers)


def read_table_file(
    path: Path,
    delimiter: str = ",",
    comment_prefix: str | None = "#",
    encoding: str = "utf-8",
) -> TableData:
    """Read a table file from disk (see read_table_text)."""
    if not path.is_file():
        raise TableReadError(f"table file not found: {path}")
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise TableReadError(f"cannot read {path}: {e}") from e
    return read_table_text(text, delimiter=delimiter, comment_prefix=comment_prefix)
