"""Logger setup for applications embedding the card engine."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "marketcards",
    level: int | str = logging.INFO,
    log_dir: Path | str | None = None,
) -> logging.Logger:
    """Configure a logger with a console handler and an optional file handler.

    Args:
        name: Logger name (usually the package name).
        level: Logging level, numeric or a level name such as "DEBUG".
        log_dir: When given, also write to ``{log_dir}/{name}_{YYYYMMDD}.log``.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        module_name = name.split(".")[-1]
        log_filename = f"{module_name}_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(
            Path(log_dir) / log_filename, encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
