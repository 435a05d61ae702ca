"""Loguru setup for applications embedding the bus."""

from __future__ import annotations

import sys

from loguru import logger

from eventbus.config import cfg

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"


def setup_logging(verbose: bool = False, level: str | None = None) -> int:
    """Configure loguru. Replace default logging.

    Returns the id of the added sink so callers can ``logger.remove()`` it.
    """
    logger.remove()
    return logger.add(
        sys.stderr,
        level="DEBUG" if verbose else (level or cfg.log_level),
        format=LOG_FORMAT,
    )
