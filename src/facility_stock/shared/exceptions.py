"""
Custom exceptions for the facility stock reconciliation engine.

Only configuration, caller-input and upstream I/O problems are raised.
Data-quality issues inside the event histories (malformed delivery
timestamps, stores without a facility mapping) are never raised; the
engine skips those records and the orchestration layer reports them.
"""

from pathlib import Path
from typing import Any


class StockReconciliationException(Exception):
    """Base exception for all facility stock errors."""

    pass


class ConfigurationError(StockReconciliationException):
    """Exception raised when the engine configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_path: Path | None = None,
        original_error: Exception | None = None,
    ):
        self.config_path = config_path
        self.original_error = original_error

        if config_path:
            message = f"Error loading configuration '{config_path}': {message}"

        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)


class InvalidQueryDateError(StockReconciliationException, ValueError):
    """Exception raised when a query date is not a calendar date."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(
            f"Query date must be a date or a 'YYYY-MM-DD' string, got {value!r}"
        )


class UnknownProductError(StockReconciliationException, KeyError):
    """Exception raised when a product key is not in the configured catalog."""

    def __init__(self, product_key: str, known_keys: list[str] | None = None):
        self.product_key = product_key
        self.known_keys = known_keys or []

        message = f"Unknown product key '{product_key}'"
        if known_keys:
            message = f"{message}. Known products: {', '.join(known_keys)}"

        super().__init__(message)

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class UpstreamFetchError(StockReconciliationException):
    """Exception raised when an external collaborator fails to deliver data."""

    def __init__(
        self,
        collection: str,
        original_error: BaseException | None = None,
    ):
        self.collection = collection
        self.original_error = original_error

        message = f"Failed to fetch {collection}"
        if original_error is not None:
            # Cancellation carries no message
            detail = str(original_error) or type(original_error).__name__
            message = f"{message} (Original error: {detail})"

        super().__init__(message)


class SourceDataError(StockReconciliationException):
    """Exception raised when a data source contains records that fail validation."""

    def __init__(
        self,
        message: str,
        source_path: Path | None = None,
        collection: str | None = None,
        row_number: int | None = None,
        validation_errors: list[str] | None = None,
    ):
        self.source_path = source_path
        self.collection = collection
        self.row_number = row_number
        self.validation_errors = validation_errors or []

        error_parts = [message]

        if source_path:
            error_parts.append(f"File: {source_path}")

        if collection:
            error_parts.append(f"Collection: {collection}")

        if row_number is not None:
            error_parts.append(f"Row: {row_number}")

        if validation_errors:
            error_parts.extend(
                [f"Validation error: {error}" for error in validation_errors]
            )

        super().__init__(" | ".join(error_parts))
