"""Logging configuration for pysysmon."""

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "pysysmon"


def setup_logging(
    level: int = logging.INFO,
    log_file: Path | None = None,
    stream=None,
) -> logging.Logger:
    """
    Configure and return the pysysmon package logger.

    Args:
        level: Console logging level.
        log_file: Optional file receiving DEBUG and above, with timestamps.
        stream: Console stream. Defaults to stderr.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else level)

    # Repeated calls replace the handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
