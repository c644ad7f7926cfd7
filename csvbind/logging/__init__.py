from .diagnostic_log import DiagnosticLogBuffer
from .init import get_logger, log_summary, reset_logging, set_debug, setup_logging

__all__ = [
    "DiagnosticLogBuffer",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]
