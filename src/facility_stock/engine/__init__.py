"""Pure stock reconciliation engine."""

from .aggregator import CumulativeTotals, aggregate_cumulative
from .approvals import ApprovalCounts, count_approvals
from .daily import DailyDeltas, build_daily_deltas
from .reconciler import ReconciledStock, classify_health, reconcile, reconcile_product
from .snapshot import (
    compute_all_facility_snapshots,
    compute_stock_snapshot,
    empty_snapshot,
)
from .timestamps import (
    IsoWithTime,
    SlashLocale,
    SpaceSeparated,
    Unrecognized,
    normalize_delivery_date,
    parse_delivery_timestamp,
    parse_query_date,
)

__all__ = [
    "ApprovalCounts",
    "CumulativeTotals",
    "DailyDeltas",
    "IsoWithTime",
    "ReconciledStock",
    "SlashLocale",
    "SpaceSeparated",
    "Unrecognized",
    "aggregate_cumulative",
    "build_daily_deltas",
    "classify_health",
    "compute_all_facility_snapshots",
    "compute_stock_snapshot",
    "count_approvals",
    "empty_snapshot",
    "normalize_delivery_date",
    "parse_delivery_timestamp",
    "parse_query_date",
    "reconcile",
    "reconcile_product",
]
