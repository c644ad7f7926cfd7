from __future__ import annotations

import logging
import sys
from typing import IO, Mapping

"""Console logging for csvbind.

Every record under the "csvbind" namespace is written as ``<LABEL> <message>``.
Labels are short (WARN, not WARNING) and SUMMARY is an extra level between INFO
and WARNING that carries the one-line preload summary. Tracebacks, when a
record has one, follow on the next lines.

setup_logging() installs a single ConsoleHandler on the "csvbind" logger and
marks it, so calling it again finds the existing handler instead of adding a
second. Without an explicit stream the handler writes to whatever sys.stdout
is at emit time, which keeps output visible when stdout is swapped after setup.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "ConsoleHandler",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "set_debug",
    "reset_logging",
]

LOGGER_NAME = "csvbind"

SUMMARY_LEVEL = 25

DEFAULT_LABELS: Mapping[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}


class LabeledFormatter(logging.Formatter):
    """Render a record as '<LABEL> <message>', plus any traceback."""

    def __init__(self, labels: Mapping[int, str] | None = None) -> None:
        super().__init__()
        self.labels = dict(DEFAULT_LABELS)
        if labels:
            self.labels.update(labels)

    def label_for(self, record: logging.LogRecord) -> str:
        return self.labels.get(record.levelno, record.levelname)

    def format(self, record: logging.LogRecord) -> str:
        text = f"{self.label_for(record)} {record.getMessage()}"
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            text = f"{text}\n{record.exc_text}"
        return text


class ConsoleHandler(logging.StreamHandler):
    """StreamHandler that follows sys.stdout unless given a fixed stream."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        super().__init__(stream if stream is not None else sys.stdout)
        self.follows_stdout = stream is None

    def emit(self, record: logging.LogRecord) -> None:
        if self.follows_stdout and self.stream is not sys.stdout:
            self.stream = sys.stdout
        super().emit(record)


def _console_handlers(logger: logging.Logger) -> list[ConsoleHandler]:
    return [h for h in logger.handlers if isinstance(h, ConsoleHandler)]


def setup_logging(level: int = logging.INFO, stream: IO[str] | None = None) -> logging.Logger:
    """Install the labeled console handler on the "csvbind" logger.

    Args:
        level: Threshold for both the logger and its handler
        stream: Fixed output stream; defaults to the current sys.stdout

    Returns:
        The "csvbind" logger. A second call returns it unchanged.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if _console_handlers(logger):
        return logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    handler = ConsoleHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger() -> logging.Logger:
    return setup_logging()


def set_debug(enabled: bool = True) -> None:
    """Switch the csvbind logger and its console handler to DEBUG (or back to INFO)."""
    logger = get_logger()
    level = logging.DEBUG if enabled else logging.INFO
    logger.setLevel(level)
    for handler in _console_handlers(logger):
        handler.setLevel(level)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the console handler and hand the logger back to the root. Used by tests."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in _console_handlers(logger):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
