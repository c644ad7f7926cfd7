# Shared pytest fixtures
from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

import pytest

from csvbind.config.loader import LoaderConfig
from csvbind.logging.init import reset_logging
from csvbind.services.data_manager import DataManager

SAMPLE_DATA = Path(__file__).resolve().parents[1] / "csvbind" / "samples" / "data"

_ENV_KEYS = ("CSVBIND_CONFIG", "CSVBIND_DATA_DIR")


@pytest.fixture(autouse=True)
def _isolate_env():
    saved = {k: os.environ.pop(k) for k in _ENV_KEYS if k in os.environ}
    yield
    for k in _ENV_KEYS:
        os.environ.pop(k, None)
    os.environ.update(saved)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """data_directory: ./data
null_sentinels: ["null", "n/a"]
models:
  - csvbind.samples.models
preload:
  - guilds.csv
  - items.csv
  - characters.csv
logs_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "csvbind.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_tables(temp_workdir: Path) -> list[Path]:
    """Copy the bundled sample CSVs into the temp data directory."""
    copied = []
    for src in sorted(SAMPLE_DATA.glob("*.csv")):
        dst = temp_workdir / "data" / src.name
        shutil.copyfile(src, dst)
        copied.append(dst)
    return copied


@pytest.fixture()
def manager() -> DataManager:
    """In-memory data manager (rows supplied through load_rows/provide_table)."""
    return DataManager(LoaderConfig(data_directory="."))


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
