from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logger for the intake pipeline.

Lines are written as "<LABEL> <message>" with LABEL one of
DEBUG|INFO|WARN|ERROR|SUMMARY. Library modules only call
logging.getLogger(__name__); being children of "oci_intake" they reach the
single handler installed here. The SUMMARY line and the aggregate tables go
to stdout together so they can be piped as one report.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "setup_logging",
    "get_logger",
    "set_debug",
    "log_summary",
    "reset_logging",
]

APP_LOGGER_NAME = "oci_intake"

# Sits between INFO (20) and WARNING (30)
SUMMARY_LEVEL = 25

_LABELS = {
    logging.WARNING: "WARN",
    SUMMARY_LEVEL: "SUMMARY",
}

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Short level label in front of the bare message, no timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def _stdout_handler(stream: TextIO, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    return handler


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Install the labeled stdout handler on the app logger.

    Calling it again returns the already configured logger untouched; use
    reset_logging() first to rebuild it (tests swap sys.stdout).
    """
    global _configured
    if _configured is not None:
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    app = logging.getLogger(APP_LOGGER_NAME)
    app.setLevel(level)
    for stale in list(app.handlers):
        app.removeHandler(stale)
    app.addHandler(_stdout_handler(sys.stdout, level))
    app.propagate = False

    _configured = app
    return app


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def set_debug(logger: logging.Logger) -> None:
    """Lower the logger and its handlers to DEBUG (--debug)."""
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup rebuilds the handler."""
    global _configured
    _configured = None
