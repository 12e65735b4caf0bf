"""Orchestration services: source collaborators, fetching and data-quality reporting."""

from .data_quality import DataQualityReport, collect_data_quality
from .orchestrator import StockInputs, StockSnapshotService
from .sources import (
    InMemoryStockSource,
    JsonFileStockSource,
    StockDataSource,
    map_legacy_row,
)

__all__ = [
    "DataQualityReport",
    "InMemoryStockSource",
    "JsonFileStockSource",
    "StockDataSource",
    "StockInputs",
    "StockSnapshotService",
    "collect_data_quality",
    "map_legacy_row",
]
