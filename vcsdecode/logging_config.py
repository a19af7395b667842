"""Logging helpers for per-run debug traces."""

from __future__ import annotations

import logging
from pathlib import Path

__all__ = [
    "configure_debug_file_logger",
    "close_debug_logger",
]

_MARKER = "_vcsdecode_debug_trace"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_debug_file_logger(
    name: str,
    path: Path,
    *,
    level: int = logging.DEBUG,
    formatter: logging.Formatter | None = None,
) -> logging.Logger:
    """Return logger ``name`` with a file handler writing to ``path``.

    A handler installed by an earlier call is replaced, so repeated runs
    overwrite the trace instead of appending to it.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    close_debug_logger(logger)
    logger.propagate = False

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    setattr(handler, _MARKER, True)
    handler.setLevel(level)
    handler.setFormatter(formatter or logging.Formatter(_DEFAULT_FORMAT))
    logger.addHandler(handler)
    return logger


def close_debug_logger(logger: logging.Logger) -> None:
    """Remove handlers installed by :func:`configure_debug_file_logger`."""

    for handler in list(logger.handlers):
        if getattr(handler, _MARKER, False):
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = True
