"""Logging setup for the CLI; library modules only call ``logging.getLogger``."""
from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "TMPO_LOG_LEVEL"
DEFAULT_LEVEL = "WARNING"


def configure(verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("tmpo")
    logger.handlers.clear()
    # Keep records away from the root logger to avoid duplicates
    logger.propagate = False

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)

    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, DEFAULT_LEVEL).upper()
    try:
        logger.setLevel(level)
    except ValueError:
        logger.setLevel(DEFAULT_LEVEL)
    return logger
