"""
Logging setup for the Resolution Hub backend.

Every module asks for its own logger through ``get_logger(__name__)``. Console
output is color-coded per level and carries a small icon so that ladder
transitions, case emissions and integration failures are easy to spot when
tailing the server.
"""

import copy
import logging
import sys
from typing import Optional, Union

from resolution_hub.core.config import settings


class ColoredFormatter(logging.Formatter):
    """Formatter that paints the level name and logger name for terminals."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    ICONS = {
        'DEBUG': '🔍',
        'INFO': '✅',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '🚨',
    }

    def format(self, record):
        # Work on a copy so other handlers still see the plain record
        record = copy.copy(record)
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}"
                f"{self.ICONS.get(levelname, '')} {levelname}{self.RESET}"
            )
        record.name = f"{self.BOLD}{record.name}{self.RESET}"
        return super().format(record)


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        resolved = getattr(logging, level.upper(), None)
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logger(
    name: str,
    level: Union[int, str, None] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure a named logger once.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Level as int or name; defaults to settings.LOG_LEVEL
        format_string: Custom format string (optional)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    resolved = _resolve_level(level)
    logger.setLevel(resolved)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)

    if format_string is None:
        format_string = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'

    console_handler.setFormatter(
        ColoredFormatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')
    )
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get or create the logger for a module."""
    return setup_logger(name)

