"""Logging setup shared by all tools."""

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"
DATE_FORMAT = "[%X]"

_console = Console(stderr=True)


def setup_logger(name: str, level: Union[str, int] = "INFO") -> logging.Logger:
    """
    Configure logging for a command-line run.

    Installs a single rich handler on the root logger so module loggers
    created with get_logger() share it. Calling this again only changes the level.

    Args:
        name: Logger name (usually the calling module)
        level: Logging level name or number

    Returns:
        The configured logger
    """
    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=_console, show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)

    if isinstance(level, str):
        level = level.upper()
    root.setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)
