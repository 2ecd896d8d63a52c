"""Logger configuration for applications embedding the batch reporter."""

import sys
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", *, sink: Any = None, colorize: bool | None = None) -> int:
    """Enable batch reporter logs and route them to *sink*.

    The package logs through loguru but is disabled on import, so nothing is
    emitted until this (or ``logger.enable("batch_reporter")``) is called.

    Args:
        level: Minimum level for the added handler.
        sink: Any loguru sink; defaults to ``sys.stderr``.
        colorize: Passed to loguru; ``None`` lets it detect a terminal.

    Returns:
        The handler id, for ``logger.remove``.
    """
    logger.enable("batch_reporter")
    return logger.add(
        sink if sink is not None else sys.stderr,
        format=LOG_FORMAT,
        level=level,
        colorize=colorize,
        filter="batch_reporter",
    )
