"""Shared models, exceptions and logging utilities for the stock engine."""

from facility_stock.shared.models import (
    ApprovalStatus,
    DispatchRequest,
    DispatchStatus,
    Facility,
    ProductionRecord,
    ProductStock,
    StockHealth,
    StockSnapshot,
    Store,
)

__all__ = [
    "ApprovalStatus",
    "DispatchRequest",
    "DispatchStatus",
    "Facility",
    "ProductionRecord",
    "ProductStock",
    "StockHealth",
    "StockSnapshot",
    "Store",
]
