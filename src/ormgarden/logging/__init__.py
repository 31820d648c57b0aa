"""
ormgarden structured logging.

Text output for terminals, JSON output for tooling, and context injection of
the schema and table currently being generated.
"""

from ormgarden.logging.config import (
    GardenLogger,
    LogFormat,
    LogLevel,
    configure_logging,
    get_logger,
)
from ormgarden.logging.context import (
    ContextFilter,
    clear_log_context,
    get_log_context,
    with_log_context,
)
from ormgarden.logging.formatters import JSONFormatter, TextFormatter

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "GardenLogger",
    "LogLevel",
    "LogFormat",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Context
    "ContextFilter",
    "get_log_context",
    "clear_log_context",
    "with_log_context",
]
