from __future__ import annotations

from pathlib import Path

from csvbind.cli import main as cli_main

"""Exit code contract tests: 0 all clean, 2 degraded/aborted, 1 fatal."""

BROKEN_ITEMS = (
    "item_id,name,rarity,color\n"
    '1,Sword,Rare,"255,0,0"\n'
    '2,,Common,"0,255,0"\n'
)


def test_exit_code_fatal_without_config(temp_workdir: Path, capsys, clean_logging):
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config:" in out


def test_exit_code_fatal_on_unknown_models_module(temp_workdir: Path, capsys, clean_logging):
    (temp_workdir / "config" / "csvbind.yml").write_text(
        "data_directory: ./data\nmodels:\n  - csvbind.samples.no_such_module\n", encoding="utf-8"
    )
    code = cli_main(["guilds.csv"])
    assert code == 1
    assert "ERROR models:" in capsys.readouterr().out


def test_exit_code_fatal_without_tables(temp_workdir: Path, capsys, clean_logging):
    (temp_workdir / "config" / "csvbind.yml").write_text("data_directory: ./data\n", encoding="utf-8")
    code = cli_main([])
    assert code == 1
    assert "no tables to load" in capsys.readouterr().out


def test_exit_code_all_clean(write_config, sample_tables, capsys, clean_logging):
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY tables=3 clean=3 degraded=0 aborted=0 records=12" in out


def test_exit_code_degraded_table(temp_workdir: Path, write_config, capsys, clean_logging):
    (temp_workdir / "data" / "items.csv").write_text(BROKEN_ITEMS, encoding="utf-8")
    code = cli_main(["items.csv"])
    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY tables=1 clean=0 degraded=1 aborted=0 records=1" in out
    assert "Required field 'name' is missing" in out


def test_exit_code_aborted_table(write_config, capsys, clean_logging):
    # data directory exists but holds no guilds.csv
    code = cli_main(["guilds.csv"])
    out = capsys.readouterr().out
    assert code == 2
    assert "aborted=1" in out


def test_inspect_data_prints_headers(write_config, sample_tables, capsys, clean_logging):
    code = cli_main(["--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "TABLE: guilds.csv" in out
    assert "record_type=GuildRecord rows=3" in out
    assert "TABLE: items.csv" in out
