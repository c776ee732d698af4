from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_LOGGER_NAME = "trconf"


def setup_logging(
    log_file: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the trconf logger.

    Parameters
    ----------
    log_file : Path | None
        Path to the log file. When omitted only the console handler is used.
    level : int
        Logging level (default: INFO).
    console : bool
        Whether to also log to stderr.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    if logger.handlers:
        # Logger already configured
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # Rotating to avoid runaway logs
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

    logger.propagate = False
    logger.info("Logging initialized")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a child logger.

    Example:
        logger = get_logger(__name__)
    """
    base = logging.getLogger(_LOGGER_NAME)
    if name is None:
        return base
    if name == _LOGGER_NAME or name.startswith(_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return base.getChild(name)
