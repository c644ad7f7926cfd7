from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

from dotenv import load_dotenv

from csvbind.config.loader import ConfigError, LoaderConfig, config_path_from_env, load_config
from csvbind.logging.diagnostic_log import DiagnosticLogBuffer
from csvbind.logging.init import log_summary, set_debug, setup_logging
from csvbind.schema.record import record_type_for_table
from csvbind.services.data_manager import DataManager
from csvbind.services.summary import render_summary_line
from csvbind.tables.reader import TableReadError, read_table_file

"""CLI entrypoint.

Flow:
- load .env (CSVBIND_CONFIG / CSVBIND_DATA_DIR)
- load and validate the YAML config
- import the configured model modules so record types register themselves
- preload the requested (or configured) tables
- log diagnostics, flush the diagnostics log, print the SUMMARY line

Exit codes: 0 every table clean, 2 any table degraded or aborted, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv; a broken file only warns."""
    if not path.exists():
        return
    try:
        load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="csvbind", description="Load CSV tables into typed records")
    p.add_argument("tables", nargs="*", help="Table names to load (default: config preload list)")
    p.add_argument("--config", type=Path, default=None, help="Config file (default: config/csvbind.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print table headers & first rows then exit")
    return p.parse_args(argv)


def _import_models(modules: tuple[str, ...]) -> None:
    for name in modules:
        importlib.import_module(name)


def _inspect_data(cfg: LoaderConfig, tables: list[str]) -> int:
    directory = cfg.data_path
    if not directory.exists():
        print(f"inspect: directory not found: {directory}")
        return EXIT_FATAL
    paths = [directory / t for t in tables] if tables else sorted(directory.glob("*.csv"))
    if not paths:
        print("inspect: no .csv files")
        return EXIT_SUCCESS_ALL
    for path in paths:
        print(f"TABLE: {path.name}")
        try:
            data = read_table_file(
                path,
                delimiter=cfg.delimiter,
                comment_prefix=cfg.comment_prefix,
                encoding=cfg.encoding,
            )
        except TableReadError as e:
            print(f"  read_error: {e}")
            continue
        record_type = record_type_for_table(path.name)
        type_label = record_type.__name__ if record_type is not None else "-"
        print(f"  record_type={type_label} rows={len(data)} cols={data.header}")
        print("    sample_rows=", data.preview())
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an empty list must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    config_path = args.config or config_path_from_env()
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        _import_models(cfg.models)
    except ImportError as e:
        logger.error(f"models: {e}")
        return EXIT_FATAL

    if not cfg.data_path.exists():
        logger.error(f"directory not found: {cfg.data_path}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, args.tables)

    tables = args.tables or list(cfg.preload)
    if not tables:
        logger.error("no tables to load (pass table names or set 'preload')")
        return EXIT_FATAL

    logger.info(f"Loading {len(tables)} table(s) from: {cfg.data_path}")
    diagnostic_log = DiagnosticLogBuffer(cfg.logs_directory)
    manager = DataManager(cfg, diagnostic_log=diagnostic_log)
    result = manager.preload(tables)

    for stat in result.table_stats:
        logger.info(
            f"table={stat.table} status={stat.status} records={stat.records} "
            f"diagnostics={stat.diagnostics}"
        )
    log_path = diagnostic_log.flush()
    if log_path is not None:
        logger.info(f"diagnostics written to {log_path}")
    logger.debug(manager.cache_stats().summary())

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.degraded_tables or result.aborted_tables:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
