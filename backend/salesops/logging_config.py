"""Logging setup for the sales service."""

import logging
import sys

_LOGGER_PREFIX = "salesops"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the salesops namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger(_LOGGER_PREFIX)
    if any(getattr(h, "_salesops", False) for h in root.handlers):
        root.setLevel(level.upper())
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._salesops = True
    root.addHandler(handler)
    root.setLevel(level.upper())
