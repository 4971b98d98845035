"""Logging setup for the toolbox (loguru)."""

from __future__ import annotations

import contextlib
import sys
from typing import Any, TextIO

from loguru import logger


LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"

_handler_id: int | None = None


def setup_logging(level: str = "INFO", sink: TextIO | Any | None = None, *, exclusive: bool = False) -> int:
    """Enable toolbox log output and route it to ``sink`` (stderr by default).

    The package disables its own logger on import so library users are not
    spammed; call this once in scripts or notebooks to see stage summaries and
    data-quality warnings.

    Calling it again replaces the handler added by the previous call. Sinks
    registered elsewhere in the process are kept unless ``exclusive=True``, which
    removes every loguru sink first (including loguru's default stderr sink).

    Returns:
        The loguru handler id, usable with ``logger.remove(handler_id)``.
    """
    global _handler_id
    if exclusive:
        logger.remove()
    elif _handler_id is not None:
        # the caller may already have removed it
        with contextlib.suppress(ValueError):
            logger.remove(_handler_id)
    logger.enable("prep_tlbx")
    _handler_id = logger.add(sink=sink or sys.stderr, level=level, format=LOG_FORMAT)
    return _handler_id


__all__ = ["LOG_FORMAT", "setup_logging"]
