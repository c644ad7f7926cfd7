from __future__ import annotations

from pathlib import Path

from csvbind.config.loader import LoaderConfig
from csvbind.models.composites import Color
from csvbind.models.diagnostic import Severity
from csvbind.models.diagnostic_set import LoadStatus
from csvbind.samples.definitions import ItemRarity
from csvbind.samples.models import ItemRecord
from csvbind.services.data_manager import DataManager

HEADER = ["item_id", "name", "rarity", "color"]


def _assert_scenario(result, good_row: int, bad_row: int):
    assert result.status is LoadStatus.DEGRADED
    assert len(result.records) == 1
    sword = result.records[0]
    assert (sword.id, sword.name, sword.rarity) == (1, "Sword", ItemRarity.Rare)
    assert sword.color == Color(255.0, 0.0, 0.0)
    assert sword.tags == ["misc"]

    errors = [d for d in result.diagnostics if d.severity is Severity.ERROR]
    assert len(errors) == 1
    assert errors[0].row == bad_row
    assert errors[0].column == "name"
    assert "Required field 'name' is missing" in errors[0].message
    assert result.diagnostics.for_row(good_row) == []


def test_pre_split_rows(manager: DataManager):
    result = manager.load_rows(
        ItemRecord,
        HEADER,
        [["1", "Sword", "Rare", "255,0,0"], ["2", "", "Common", "0,255,0"]],
    )
    _assert_scenario(result, good_row=1, bad_row=2)


def test_file_content(tmp_path: Path):
    (tmp_path / "items.csv").write_text(
        'item_id,name,rarity,color\n1,Sword,Rare,"255,0,0"\n2,,Common,"0,255,0"\n',
        encoding="utf-8",
    )
    manager = DataManager(LoaderConfig(data_directory=str(tmp_path)))
    result = manager.load(ItemRecord)
    # header is line 1, so the rows are lines 2 and 3
    _assert_scenario(result, good_row=2, bad_row=3)


def test_unquoted_colour_cells_pre_split(manager: DataManager):
    result = manager.load_rows(
        ItemRecord,
        HEADER,
        [["1", "Sword", "Rare", "255", "0", "0"], ["2", "", "Common", "0", "255", "0"]],
    )
    _assert_scenario(result, good_row=1, bad_row=2)


def test_unquoted_colour_cells_in_file(tmp_path: Path):
    (tmp_path / "items.csv").write_text(
        "item_id,name,rarity,color\n1,Sword,Rare,255,0,0\n2,,Common,0,255,0\n",
        encoding="utf-8",
    )
    manager = DataManager(LoaderConfig(data_directory=str(tmp_path)))
    _assert_scenario(manager.load(ItemRecord), good_row=2, bad_row=3)
