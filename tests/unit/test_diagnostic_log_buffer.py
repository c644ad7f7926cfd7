from __future__ import annotations

import json
import re
from pathlib import Path

from csvbind.logging.diagnostic_log import LOG_KEYS, DiagnosticLogBuffer
from csvbind.models.diagnostic import Diagnostic, Severity


def _diag(row: int) -> Diagnostic:
    return Diagnostic.create(
        row=row, column="level", message="bad", severity=Severity.ERROR, value="x", expected_type="int"
    )


def test_flush_writes_json_lines(temp_workdir: Path):
    buf = DiagnosticLogBuffer()
    buf.append("heroes.csv", _diag(1))
    buf.extend("items.csv", [_diag(2), _diag(3)])
    assert len(buf) == 3

    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("logs")
    assert re.fullmatch(r"diagnostics-\d{8}-\d{6}\.log", path.name)

    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 3
    objs = [json.loads(line) for line in lines]
    assert [o["table"] for o in objs] == ["heroes.csv", "items.csv", "items.csv"]
    for obj in objs:
        assert set(obj) == set(LOG_KEYS)
        assert obj["severity"] == "error"
    assert len(buf) == 0


def test_multiple_flushes_append_to_same_file(tmp_path: Path):
    buf = DiagnosticLogBuffer(tmp_path / "out")
    buf.append("t", _diag(1))
    first = buf.flush()
    buf.append("t", _diag(2))
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2


def test_flush_without_entries_creates_nothing(tmp_path: Path):
    buf = DiagnosticLogBuffer(tmp_path / "out")
    assert buf.flush() is None
    assert not (tmp_path / "out").exists()
