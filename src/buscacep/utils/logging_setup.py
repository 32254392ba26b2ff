"""Utility to provide a shared logger configuration for the project."""

from __future__ import annotations

import logging
import sys
from typing import Final

_LOGGER_NAME: Final = "buscacep"
_FORMAT: Final = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def setup_logger(level: int | None = None) -> logging.Logger:
    """Return the shared buscacep logger configured for console output.

    The level is only changed when given explicitly, so child modules calling
    this at import time never override what the CLI configured.
    """

    logger = logging.getLogger(_LOGGER_NAME)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    logger.propagate = False

    if not any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(_FORMAT, "%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
