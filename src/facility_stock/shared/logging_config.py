"""Logging configuration for structured logging."""
import logging
import sys
from typing import IO, Optional

from facility_stock.shared.exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_structured_logging(level: str = "INFO", stream: Optional[IO[str]] = None):
    """
    Configure root logging for the CLI and embedding applications.

    Entries are written one per line to ``stream`` (stderr by default, so
    that JSON results on stdout stay machine readable).

    Raises:
        ConfigurationError: If ``level`` is not a standard level name
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level '{level}'; expected one of {', '.join(LOG_LEVELS)}"
        )

    logging.basicConfig(
        level=getattr(logging, level_name),
        format="%(message)s",  # JSON already formatted
        stream=stream or sys.stderr,
    )

    # Engine internals only log at debug level
    logging.getLogger("facility_stock.engine").setLevel(
        logging.DEBUG if level_name == "DEBUG" else logging.INFO
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)
