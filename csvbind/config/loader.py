from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (default config/csvbind.yml)
- Validate it against config_schema.json (unknown keys are rejected)
- Apply defaults and normalize null sentinels to upper case
- Apply environment overrides (CSVBIND_DATA_DIR)
"""

__all__ = [
    "ConfigError",
    "LoaderConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "config_path_from_env",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/csvbind.yml")

ENV_CONFIG = "CSVBIND_CONFIG"
ENV_DATA_DIR = "CSVBIND_DATA_DIR"

DEFAULT_NULL_SENTINELS = ("NULL",)


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class LoaderConfig:
    data_directory: str = "."
    delimiter: str = ","
    comment_prefix: str | None = "#"
    encoding: str = "utf-8"
    null_sentinels: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_NULL_SENTINELS))
    max_relationship_depth: int = 5
    approx_record_bytes: int = 100
    report_relationship_cycles: bool = False
    models: tuple[str, ...] = ()
    preload: tuple[str, ...] = ()
    logs_directory: str = "./logs"

    @property
    def data_path(self) -> Path:
        return Path(self.data_directory)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_path_from_env(default: Path = DEFAULT_CONFIG_PATH) -> Path:
    value = os.getenv(ENV_CONFIG)
    return Path(value) if value else default


def load_config(path: Path) -> LoaderConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    defaults = LoaderConfig()
    sentinels = data.get("null_sentinels", DEFAULT_NULL_SENTINELS)
    cfg = LoaderConfig(
        data_directory=data["data_directory"],
        delimiter=data.get("delimiter", defaults.delimiter),
        comment_prefix=data.get("comment_prefix", defaults.comment_prefix),
        encoding=data.get("encoding", defaults.encoding),
        null_sentinels=frozenset(s.strip().upper() for s in sentinels),
        max_relationship_depth=data.get("max_relationship_depth", defaults.max_relationship_depth),
        approx_record_bytes=data.get("approx_record_bytes", defaults.approx_record_bytes),
        report_relationship_cycles=data.get(
            "report_relationship_cycles", defaults.report_relationship_cycles
        ),
        models=tuple(data.get("models", ())),
        preload=tuple(data.get("preload", ())),
        logs_directory=data.get("logs_directory", defaults.logs_directory),
    )

    data_dir = os.getenv(ENV_DATA_DIR)
    if data_dir:
        cfg = replace(cfg, data_directory=data_dir)
    return cfg
