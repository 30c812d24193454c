"""Application logging: one stdout handler on the ``asap_agent`` logger.

Module code logs through ``logger``; classes mix in ``LoggerMixin`` and get a
child logger (``asap_agent.<ClassName>``) that shares the same handler.
"""

import logging
import sys
from typing import Optional, Union

from asap_agent.config import LOG_LEVEL

APP_LOGGER_NAME = "asap_agent"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[str, int, None]) -> int:
    """Turn "debug", "WARNING", 10 or None into a logging level (INFO when unknown)."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level or "").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(name: str = APP_LOGGER_NAME, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return ``name``'s logger, attaching the stdout handler on first use."""
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level if level is not None else LOG_LEVEL))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger


logger = setup_logger()


class LoggerMixin:
    """Gives a class a child of the application logger."""

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(APP_LOGGER_NAME).getChild(self.__class__.__name__)
