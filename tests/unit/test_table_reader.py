from __future__ import annotations

from pathlib import Path

import pytest

from csvbind.tables.reader import TableReadError, read_table_file, read_table_text


def test_quoted_cells_keep_delimiters():
    data = read_table_text('item_id,name,rarity,color\n1,Sword,Rare,"255,0,0"\n')
    assert data.header == ["item_id", "name", "rarity", "color"]
    assert data.rows == [["1", "Sword", "Rare", "255,0,0"]]
    assert data.row_numbers == [2]


def test_blank_and_comment_lines_are_skipped_with_line_numbers():
    text = "# heading comment\n\nid,name\n1,a\n\n  # inline note\n2,b\n"
    data = read_table_text(text)
    assert data.header == ["id", "name"]
    assert data.rows == [["1", "a"], ["2", "b"]]
    assert data.row_numbers == [4, 7]


def test_cells_are_stripped_and_short_rows_padded():
    data = read_table_text("id , name ,level\n 1 ,  Aria\n")
    assert data.header == ["id", "name", "level"]
    assert data.rows == [["1", "Aria", ""]]


def test_na_strings_are_kept_as_text():
    data = read_table_text("a,b\nNA,NULL\n")
    assert data.rows == [["NA", "NULL"]]


def test_blank_header_cells_get_positional_names():
    data = read_table_text("id,,name,\n1,x,y,\n")
    # trailing empty column trimmed; inner blank named
    assert data.header == ["id", "Column_1", "name"]
    assert data.rows == [["1", "x", "y"]]


def test_cells_past_header_stay_on_row():
    data = read_table_text("item_id,name,rarity,color\n1,Sword,Rare,255,0,0\n2,Bow,Common,red\n")
    assert data.header == ["item_id", "name", "rarity", "color"]
    assert data.rows == [
        ["1", "Sword", "Rare", "255", "0", "0"],
        ["2", "Bow", "Common", "red", "", ""],
    ]


def test_custom_delimiter_and_comment_prefix():
    data = read_table_text("// note\nid;name\n1;a\n", delimiter=";", comment_prefix="//")
    assert data.header == ["id", "name"]
    assert data.rows == [["1", "a"]]
    assert data.row_numbers == [3]


def test_multi_character_delimiter():
    data = read_table_text("id||name\n1||a\n", delimiter="||")
    assert data.rows == [["1", "a"]]


def test_header_only_table():
    data = read_table_text("id,name\n")
    assert data.header == ["id", "name"]
    assert len(data) == 0


def test_preview():
    data = read_table_text("id,name\n1,a\n2,b\n3,c\n4,d\n")
    assert data.preview(2) == [{"id": "1", "name": "a"}, {"id": "2", "name": "b"}]


@pytest.mark.parametrize("text", ["", "\n\n  \n", "# only a comment\n"])
def test_empty_input_raises(text: str):
    with pytest.raises(TableReadError):
        read_table_text(text)


def test_read_table_file(tmp_path: Path):
    path = tmp_path / "t.csv"
    path.write_text("\ufeffid,name\n1,a\n", encoding="utf-8")
    data = read_table_file(path)
    assert data.header == ["id", "name"]


def test_read_table_file_missing(tmp_path: Path):
    with pytest.raises(TableReadError, match="not found"):
        read_table_file(tmp_path / "missing.csv")


def test_read_table_file_bad_encoding(tmp_path: Path):
    path = tmp_path / "t.csv"
    path.write_bytes(b"id\n\xff\xfe\n")
    with pytest.raises(TableReadError):
        read_table_file(path, encoding="ascii")
