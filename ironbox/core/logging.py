"""
Logging setup for ironbox.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_ROOT_LOGGER = "ironbox"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for an ironbox module."""
    return logging.getLogger(name)


def setup_logging(level: str | int = "WARNING", rich: bool = True) -> logging.Logger:
    """
    Configure the ironbox logger hierarchy.

    Handlers always write to stderr; stdout is reserved for command output
    and for the MCP stdio transport.

    Args:
        level: Level name or number
        rich: Use rich formatting instead of a plain stream handler

    Returns:
        The package root logger
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level

    root = logging.getLogger(_ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    root.addHandler(handler)
    root.setLevel(resolved)
    root.propagate = False
    return root
