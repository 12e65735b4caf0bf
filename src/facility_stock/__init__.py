"""
Facility Stock

Stock reconciliation engine for a food-production/retail network:
- Normalizes heterogeneous delivery timestamps
- Accumulates production and delivered dispatches per facility up to a date
- Reconciles clamped available stock and percent remaining per product
- Reports same-day deltas and approval counts alongside the cumulative view
"""

from facility_stock.engine.snapshot import (
    compute_all_facility_snapshots,
    compute_stock_snapshot,
)

__version__ = "1.0.0"

__all__ = ["compute_all_facility_snapshots", "compute_stock_snapshot"]
