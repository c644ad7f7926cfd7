from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import pytest

from csvbind.config.loader import LoaderConfig
from csvbind.logging.diagnostic_log import DiagnosticLogBuffer
from csvbind.models.diagnostic import Diagnostic, Severity
from csvbind.models.diagnostic_set import LoadStatus
from csvbind.models.field_mapping import ValidationRule
from csvbind.schema.fields import column
from csvbind.schema.record import Record
from csvbind.services.data_manager import DataManager


@dataclass
class Monster(Record):
    table_name = "dm_monsters.csv"

    id: int = column("id")
    name: str = column("name", validation=ValidationRule(required=True))
    hp: int = column("hp", optional=True, default=0)


HEADER = ["id", "name", "hp"]


def test_load_rows_returns_records_and_row_numbers(manager: DataManager):
    result = manager.load_rows(Monster, HEADER, [["1", "Slime", "5"], ["2", "Bat", "3"]])
    assert result.status is LoadStatus.CLEAN
    assert result.cache_hit is False
    assert [m.name for m in result.records] == ["Slime", "Bat"]
    assert [p.row for p in result.parsed] == [1, 2]
    assert result.table == "dm_monsters.csv"
    assert len(result) == 2


def test_explicit_row_numbers_are_used_in_diagnostics(manager: DataManager):
    result = manager.load_rows(Monster, HEADER, [["1", "Slime", "x"]], row_numbers=[10])
    assert result.diagnostics.diagnostics[0].row == 10


def test_row_numbers_length_mismatch(manager: DataManager):
    with pytest.raises(ValueError):
        manager.load_rows(Monster, HEADER, [["1", "a", "1"]], row_numbers=[1, 2])


def test_second_load_is_cache_hit(manager: DataManager):
    first = manager.load_rows(Monster, HEADER, [["1", "Slime", "5"]])
    second = manager.load(Monster)
    assert second.cache_hit is True
    assert second.records == first.records
    assert manager.entry_count == 1
    assert manager.is_loaded(Monster)
    stats = manager.cache_stats()
    assert (stats.total_hits, stats.total_misses) == (1, 1)


def test_clear_cache_forces_reload(manager: DataManager):
    manager.load_rows(Monster, HEADER, [["1", "Slime", "5"]])
    manager.clear_cache()
    assert manager.entry_count == 0
    assert not manager.is_loaded(Monster)
    result = manager.load_rows(Monster, HEADER, [["1", "Slime", "5"], ["2", "Bat", "1"]])
    assert result.cache_hit is False
    assert len(result.records) == 2


def test_degraded_table_excludes_error_rows(manager: DataManager):
    result = manager.load_rows(Monster, HEADER, [["1", "Slime", "5"], ["x", "Bat", "1"], ["3", "", "1"]])
    assert result.status is LoadStatus.DEGRADED
    assert [m.id for m in result.records] == [1]
    assert result.diagnostics.failed_rows() == {2, 3}


def test_missing_required_column_aborts(manager: DataManager):
    result = manager.load_rows(Monster, ["id", "hp"], [["1", "5"]])
    assert result.status is LoadStatus.ABORTED
    assert result.records == []
    assert all(d.severity is Severity.CRITICAL for d in result.diagnostics)
    # aborted loads are not cached
    assert manager.entry_count == 0


def test_load_from_data_directory(tmp_path: Path):
    (tmp_path / "dm_monsters.csv").write_text(
        "# monsters\nid,name,hp\n1,Slime,NULL\n2,Bat,3\n", encoding="utf-8"
    )
    manager = DataManager(LoaderConfig(data_directory=str(tmp_path)))
    result = manager.load(Monster)
    assert result.is_success
    assert [(m.id, m.hp) for m in result.records] == [(1, 0), (2, 3)]
    assert [p.row for p in result.parsed] == [3, 4]


def test_missing_file_is_critical(tmp_path: Path):
    manager = DataManager(LoaderConfig(data_directory=str(tmp_path)))
    result = manager.load(Monster)
    assert result.status is LoadStatus.ABORTED
    assert "table file not found" in result.diagnostics.diagnostics[0].message


def test_get_returns_records(manager: DataManager):
    manager.provide_table("dm_monsters.csv", HEADER, [["1", "Slime", "5"]])
    assert [m.name for m in manager.get(Monster)] == ["Slime"]


def test_load_async_runs_in_worker_thread(manager: DataManager):
    manager.provide_table("dm_monsters.csv", HEADER, [["1", "Slime", "5"]])
    result = asyncio.run(manager.load_async(Monster))
    assert [m.name for m in result.records] == ["Slime"]
    again = asyncio.run(manager.load_async(Monster))
    assert again.cache_hit is True


def test_fresh_load_diagnostics_go_to_log_buffer(tmp_path: Path):
    buffer = DiagnosticLogBuffer(tmp_path / "logs")
    manager = DataManager(LoaderConfig(), diagnostic_log=buffer)
    manager.load_rows(Monster, HEADER, [["1", "Slime", "x"]])
    manager.load(Monster)  # cache hit adds nothing
    assert len(buffer) == 1


def test_preload_aggregates_statistics(manager: DataManager):
    manager.provide_table("dm_monsters.csv", HEADER, [["1", "Slime", "5"], ["x", "Bat", "1"]])
    result = manager.preload(["dm_monsters.csv", "dm_monsters.csv", "dm_unknown.csv"])
    statuses = [s.status for s in result.table_stats]
    assert statuses == ["degraded", "degraded", "aborted"]
    assert result.table_stats[1].cache_hit is True
    assert result.degraded_tables == 2
    assert result.aborted_tables == 1
    assert result.total_records == 2
    assert result.hit_rate == 0.5
    assert result.end_time >= result.start_time


def test_preload_uses_configured_tables():
    manager = DataManager(LoaderConfig(preload=("dm_monsters.csv",)))
    manager.provide_table("dm_monsters.csv", HEADER, [["1", "Slime", "5"]])
    result = manager.preload()
    assert [s.table for s in result.table_stats] == ["dm_monsters.csv"]
    assert result.clean_tables == 1


def test_custom_table_identity_for_unregistered_type(manager: DataManager):
    @dataclass
    class Row(Record):
        a: int = column("a")

    result = manager.load_rows(Row, ["a"], [["1"]], table="adhoc.csv")
    assert result.table == "adhoc.csv"
    assert manager.is_loaded(Row, "ADHOC.csv")


def test_reload_rereads_one_table(manager: DataManager):
    @dataclass
    class Other(Record):
        a: int = column("a")

    manager.load_rows(Monster, HEADER, [["1", "Slime", "5"]])
    manager.load_rows(Other, ["a"], [["1"]], table="dm_other.csv")

    manager.provide_table("dm_monsters.csv", HEADER, [["1", "Slime", "5"], ["2", "Bat", "3"]])
    assert len(manager.load(Monster).records) == 1

    result = manager.reload(Monster)
    assert result.cache_hit is False
    assert [m.name for m in result.records] == ["Slime", "Bat"]
    assert manager.is_loaded(Other, "dm_other.csv")
    assert manager.entry_count == 2


def test_reload_of_unloaded_table_loads_it(manager: DataManager):
    manager.provide_table("dm_monsters.csv", HEADER, [["1", "Slime", "5"]])
    result = manager.reload(Monster)
    assert result.cache_hit is False
    assert manager.is_loaded(Monster)


def test_result_diagnostics_do_not_leak_into_cache(manager: DataManager):
    first = manager.load_rows(Monster, HEADER, [["1", "Slime", "x"]])
    assert len(first.diagnostics) == 1
    first.diagnostics.add(
        Diagnostic.create(row=1, column="", message="caller note", severity=Severity.ERROR)
    )

    second = manager.load(Monster)
    assert second.cache_hit is True
    assert len(second.diagnostics) == 1
    assert second.status is LoadStatus.CLEAN
    assert second.diagnostics is not first.diagnostics
