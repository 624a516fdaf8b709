"""
Logging setup for the command-line entry points.

Library modules only call logging.getLogger(__name__). `setup_logger`
attaches handlers to the package loggers, not the root, so an embedding
application keeps control of its own logging.
"""

import logging
import sys
from collections.abc import Iterable
from logging.handlers import RotatingFileHandler
from pathlib import Path

from . import settings

PACKAGE_LOGGERS = ("forecast_core", "warehouse_clients")
LOG_FILE_NAME = "forecast.log"

# Marks handlers installed here so a repeated setup replaces them instead of stacking
_HANDLER_MARK = "_forecast_handler"


class ConsoleFormatter(logging.Formatter):
    """Bare messages for INFO, so report tables print cleanly; a level prefix otherwise."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno == logging.INFO:
            return message
        return f"[{record.levelname}] {message}"


def _build_handlers(log_level: int, log_dir: Path) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter("%(message)s"))

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=2 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    log_file.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )

    handlers = [console, log_file]
    for handler in handlers:
        handler.setLevel(log_level)
        setattr(handler, _HANDLER_MARK, True)
    return handlers


def setup_logger(
    log_level: int = logging.INFO,
    log_dir: Path | None = None,
    names: Iterable[str] = PACKAGE_LOGGERS,
) -> list[logging.Logger]:
    """
    Send the package loggers to stdout and a rotating file under `log_dir`
    (settings.LOG_DIR by default).

    Calling it again swaps in fresh handlers at the new level; handlers added
    by anyone else are left alone.
    """
    log_dir = Path(log_dir) if log_dir is not None else settings.LOG_DIR
    handlers = _build_handlers(log_level, log_dir)

    loggers = []
    for name in names:
        logger = logging.getLogger(name)
        teardown_logger(logger)
        logger.setLevel(log_level)
        for handler in handlers:
            logger.addHandler(handler)
        loggers.append(logger)
    return loggers


def teardown_logger(logger: logging.Logger) -> None:
    """Detach and close the handlers `setup_logger` installed on `logger`."""
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()
