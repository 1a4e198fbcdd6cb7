"""Logging configuration for maptrack.

Console output goes to stderr so command output on stdout (text or
``--json``) stays clean. Every run also writes a DEBUG log file under
``<data_dir>/logs``.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from maptrack.config import Config

# Package logger; modules log through "maptrack.<module>" children
logger = logging.getLogger("maptrack")

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def console_level_for(verbose: int = 0, json_output: bool = False) -> int:
    """Map CLI verbosity flags to a console log level.

    Args:
        verbose: Number of ``-v`` flags.
        json_output: True when stdout carries a JSON document.

    Returns:
        ERROR for JSON output, otherwise WARNING, INFO (-v) or DEBUG (-vv).
    """
    if json_output:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def _drop_handlers() -> None:
    # Handlers from an earlier setup also sit on the urllib3 logger
    urllib3_logger = logging.getLogger("urllib3")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        urllib3_logger.removeHandler(handler)
        handler.close()


def setup_logging(
    config: Config | None = None,
    log_dir: Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    quiet: bool = False,
) -> logging.Logger:
    """Set up logging for maptrack.

    Calling it again replaces the handlers of the previous call.

    Args:
        config: Application config; logs go to ``<data_dir>/logs``.
        log_dir: Explicit log directory, overriding ``config``.
        console_level: Log level for stderr.
        file_level: Log level for the log file.
        quiet: Never show less severe than WARNING on stderr.

    Returns:
        Configured package logger.
    """
    _drop_handlers()
    logger.setLevel(logging.DEBUG)

    # stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(console_level, logging.WARNING) if quiet else console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    # Log file, one per run
    if log_dir is None:
        log_dir = config.data.directory / "logs" if config is not None else Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"maptrack-{datetime.now().strftime('%Y%m%dT%H%M%S')}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    logger.addHandler(file_handler)

    # Requests to the geolocation endpoint
    urllib3_logger = logging.getLogger("urllib3")
    urllib3_logger.setLevel(logging.DEBUG)
    urllib3_logger.addHandler(file_handler)

    logger.debug("Logging initialized. Log file: %s", log_file)
    return logger
