"""Logging setup for the promptline package logger."""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
PACKAGE_LOGGER = "promptline"
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def normalize_level(level: str) -> str:
    """Upper-case level name with WARNING folded into WARN."""
    normalized = level.strip().upper()
    return "WARN" if normalized == "WARNING" else normalized


def _attach_file_handler(logger: py_logging.Logger, log_file: str | Path, formatter: py_logging.Formatter) -> bool:
    try:
        log_path = Path(log_file).expanduser()
    except RuntimeError:
        log_path = Path(log_file)
    log_path = log_path.resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        # The prompt still works without its debug log.
        logger.warning("Debug log %s unavailable: %s", log_path, exc)
        return False
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return True


def configure_logging(
    level: str = "WARN",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Route the package logger to stream (stderr) and, optionally, a DEBUG file.

    Unknown level names fall back to WARN. Handlers from a previous call are
    replaced so repeated setup never duplicates output.
    """
    resolved = LOG_LEVELS.get(normalize_level(level), py_logging.WARNING)
    formatter = py_logging.Formatter(_FORMAT)

    logger = py_logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(resolved)

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file and _attach_file_handler(logger, log_file, formatter):
        logger.setLevel(py_logging.DEBUG)
    return logger
