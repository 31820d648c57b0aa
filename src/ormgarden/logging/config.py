"""
Logging configuration for ormgarden.
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import Any, TextIO

from ormgarden.logging.context import ContextFilter
from ormgarden.logging.formatters import JSONFormatter, TextFormatter


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    TEXT = "text"


class GardenLogger:
    """
    Logger wrapper that accepts structured fields as keyword arguments.

    Example:
        logger = GardenLogger("ormgarden.garden")
        logger.info("written", path="my_rose_garden/product.py")
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        """Get the logger name."""
        return self._logger.name

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        exc_info: bool | BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        self._logger.log(level, msg, *args, exc_info=exc_info, extra=kwargs.copy())

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(
        self,
        msg: str,
        *args: Any,
        exc_info: bool | BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        """Log an error message."""
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def is_enabled_for(self, level: int | LogLevel) -> bool:
        """Check if logger is enabled for the given level."""
        if isinstance(level, LogLevel):
            level = getattr(logging, level.value)
        return self._logger.isEnabledFor(level)


def get_logger(name: str) -> GardenLogger:
    """
    Get an ormgarden logger by name.

    Args:
        name: Logger name (typically module name, e.g., "ormgarden.garden")
    """
    return GardenLogger(name)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    format: LogFormat | str = LogFormat.TEXT,
    output: TextIO | None = None,
    include_context: bool = True,
    use_colors: bool = True,
) -> None:
    """
    Configure ormgarden logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format (text for terminals, json for tooling)
        output: Output stream (defaults to stderr)
        include_context: Whether to include schema/table context in logs
        use_colors: Whether to use colors in text format (ignored for JSON)
    """
    if isinstance(level, str):
        level = LogLevel(level.upper())

    if isinstance(format, str):
        format = LogFormat(format.lower())

    if output is None:
        output = sys.stderr

    root_logger = logging.getLogger("ormgarden")
    root_logger.setLevel(getattr(logging, level.value))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(output)
    handler.setLevel(getattr(logging, level.value))

    if format == LogFormat.JSON:
        formatter: logging.Formatter = JSONFormatter(include_extra=True)
    else:
        formatter = TextFormatter(use_colors=use_colors)

    handler.setFormatter(formatter)

    if include_context:
        handler.addFilter(ContextFilter())

    root_logger.addHandler(handler)
    root_logger.propagate = False
