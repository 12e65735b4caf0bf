"""Structured logging utilities for snapshot orchestration."""
import json
import logging
import uuid
from datetime import UTC, datetime
from typing import Any, Optional


class StructuredLogger:
    """JSON logger carrying a correlation ID and bound query context.

    Each snapshot query handled by the orchestrator gets its own
    correlation ID so the fetch, data-quality and compute entries of one
    query can be grouped together. Context given at construction (facility,
    query date) is merged into every entry.
    """

    def __init__(self, logger_name: str, **context: Any):
        self.logger = logging.getLogger(logger_name)
        self._correlation_id: Optional[str] = None
        self._context = context

    @property
    def correlation_id(self) -> Optional[str]:
        return self._correlation_id

    def set_correlation_id(self, correlation_id: str):
        """Set correlation ID for current context."""
        self._correlation_id = correlation_id

    def generate_correlation_id(self) -> str:
        """Generate new snapshot correlation ID."""
        return f"SNAP_{uuid.uuid4().hex[:12]}"

    def _emit(self, level: int, message: str, fields: dict[str, Any]):
        if not self.logger.isEnabledFor(level):
            return
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": logging.getLevelName(level),
            "message": message,
            "correlation_id": self._correlation_id or "none",
        }
        context = {**self._context, **fields}
        if context:
            entry["context"] = context
        # Dates, enums and paths are rendered with str()
        self.logger.log(level, json.dumps(entry, default=str))

    def info(self, message: str, **fields: Any):
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any):
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any):
        self._emit(logging.ERROR, message, fields)

    def debug(self, message: str, **fields: Any):
        self._emit(logging.DEBUG, message, fields)


def get_structured_logger(name: str, **context: Any) -> StructuredLogger:
    """Create a structured logger, optionally with bound context."""
    return StructuredLogger(name, **context)


def snapshot_logger(name: str, **context: Any) -> StructuredLogger:
    """Structured logger with a fresh correlation ID for one snapshot query."""
    log = StructuredLogger(name, **context)
    log.set_correlation_id(log.generate_correlation_id())
    return log
