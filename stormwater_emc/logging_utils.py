"""Logging setup shared by the pipeline stages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOGGER_NAME = "stormwater_emc"
LOG_FILE = "analysis.log"

FILE_FORMAT = logging.Formatter('%(asctime)s | %(levelname)-8s | %(message)s',
                                datefmt='%Y-%m-%d %H:%M:%S')
CONSOLE_FORMAT = logging.Formatter('%(levelname)-8s | %(message)s')


def get_logger(logger: Optional[logging.Logger] = None) -> logging.Logger:
    """Return the given logger, or the package logger."""
    return logger if logger is not None else logging.getLogger(LOGGER_NAME)


def setup_logging(output_dir: Path, console_level: int = logging.INFO) -> logging.Logger:
    """Send the full run log to ``output_dir/analysis.log`` and a summary to the console.

    Handlers from a previous run are closed first, so repeated runs in one
    process never write each message twice.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    outputs = [
        (logging.FileHandler(output_dir / LOG_FILE, mode='w'), logging.DEBUG, FILE_FORMAT),
        (logging.StreamHandler(), console_level, CONSOLE_FORMAT),
    ]
    for handler, level, formatter in outputs:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def log_banner(logger: logging.Logger, title: str) -> None:
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)
