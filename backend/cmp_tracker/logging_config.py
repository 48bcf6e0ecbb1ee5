"""Process-wide logging setup for the tracker service."""
from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import LOG_LEVEL

DEFAULT_LOGGER_NAME = "cmp_tracker"
_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def _parse_level(value: Optional[str]) -> int:
    """Map 'debug' / 'INFO' / ... to a logging constant, defaulting to INFO."""
    if not value:
        return logging.INFO
    level = getattr(logging, value.strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> logging.Logger:
    """Initialise root logging once and return the service logger.

    Module loggers (``logging.getLogger(__name__)``) propagate to the root
    handler installed here, so uvicorn and our own records share one format.
    """
    root = logging.getLogger()
    if force or not root.handlers:
        logging.basicConfig(
            format=_FORMAT,
            stream=sys.stdout,
            level=_parse_level(level or LOG_LEVEL),
            force=force,
        )
    # httpx logs every request at INFO; our client already does that
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(DEFAULT_LOGGER_NAME)
