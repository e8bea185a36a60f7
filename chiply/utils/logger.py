"""Logging setup shared by every chiply module."""
import logging
import sys
from typing import Optional

from chiply.config import config

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """Get a logger writing to stdout.

    Handlers are attached once per logger name, so repeated calls from
    module imports are cheap.

    Args:
        name: Logger name, typically __name__ of the calling module.
        level: Level name overriding LOG_LEVEL from the config.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name or "chiply")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        level_name = (level or config.log_level).upper()
        logger.setLevel(getattr(logging, level_name, logging.INFO))

    return logger
