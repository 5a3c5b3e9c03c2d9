"""Package logger.

Every module logs through the single ``promptgen`` logger returned here.
"""

from __future__ import annotations

import logging
import os
import sys

__all__ = ["LOGGER_NAME", "setup_logger", "logger"]

LOGGER_NAME = "promptgen"


def setup_logger(level: str | None = None) -> logging.Logger:
    """Configure and return the package logger.

    Safe to call more than once: the stderr handler is only installed the
    first time, later calls just adjust the level.
    """
    log = logging.getLogger(LOGGER_NAME)
    level_name = (level or os.getenv("PROMPTGEN_LOG_LEVEL") or "INFO").upper()
    log.setLevel(getattr(logging, level_name, logging.INFO))

    if not log.handlers:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        log.addHandler(handler)

    return log


logger = setup_logger()
