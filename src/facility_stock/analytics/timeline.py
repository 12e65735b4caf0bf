"""Day-by-day stock series and tabular views of snapshots."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

import pandas as pd

from facility_stock.config.models import StockConfig
from facility_stock.engine.snapshot import coerce_models, compute_stock_snapshot
from facility_stock.engine.timestamps import parse_query_date
from facility_stock.shared.models import (
    DispatchRequest,
    ProductionRecord,
    StockSnapshot,
    Store,
)

SNAPSHOT_COLUMNS = [
    "facility_id",
    "facility_name",
    "date",
    "product",
    "label",
    "produced_today",
    "dispatched_today",
    "cumulative_produced",
    "cumulative_dispatched",
    "available_cumulative",
    "percent_remaining",
    "health",
    "degraded",
]


def snapshots_to_frame(snapshots: Iterable[StockSnapshot]) -> pd.DataFrame:
    """Flatten snapshots into one row per (facility, date, product)."""

    rows = [
        {
            "facility_id": snapshot.facility_id,
            "facility_name": snapshot.facility_name,
            "date": pd.Timestamp(snapshot.as_of_date),
            "product": stock.product,
            "label": stock.label,
            "produced_today": stock.produced_today,
            "dispatched_today": stock.dispatched_today,
            "cumulative_produced": stock.cumulative_produced,
            "cumulative_dispatched": stock.cumulative_dispatched,
            "available_cumulative": stock.available_cumulative,
            "percent_remaining": stock.percent_remaining,
            "health": stock.health.value,
            "degraded": snapshot.degraded,
        }
        for snapshot in snapshots
        for stock in snapshot.products.values()
    ]
    return pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)


def build_stock_timeline(
    facility_id: str,
    start: dt.date | str,
    end: dt.date | str,
    production_records: Iterable[ProductionRecord | dict],
    dispatch_requests: Iterable[DispatchRequest | dict],
    stores: Iterable[Store | dict],
    *,
    config: StockConfig | None = None,
) -> pd.DataFrame:
    """
    Compute the snapshot of every day in ``[start, end]`` for one facility.

    Each day is an independent engine call, so every row matches exactly
    what ``compute_stock_snapshot`` returns for that date.

    Args:
        facility_id: Target facility
        start: First day (inclusive)
        end: Last day (inclusive)
        production_records: Full production history
        dispatch_requests: Full dispatch history
        stores: Store directory
        config: Engine configuration

    Returns:
        DataFrame with ``SNAPSHOT_COLUMNS``, sorted by date then catalog order

    Raises:
        ValueError: If ``end`` is before ``start``
    """
    first = parse_query_date(start)
    last = parse_query_date(end)
    if last < first:
        raise ValueError(f"Timeline end {last} is before start {first}")

    records = coerce_models(production_records, ProductionRecord)
    requests = coerce_models(dispatch_requests, DispatchRequest)
    store_list = coerce_models(stores, Store)

    snapshots = [
        compute_stock_snapshot(
            facility_id, day.date(), records, requests, store_list, config=config
        )
        for day in pd.date_range(first, last, freq="D")
    ]
    return snapshots_to_frame(snapshots)


def summarize_timeline(timeline: pd.DataFrame) -> pd.DataFrame:
    """
    Per-product totals over a timeline.

    Returns one row per product with the quantities produced and dispatched
    inside the window and the available stock on the last day.
    """
    if timeline.empty:
        return pd.DataFrame(
            columns=["produced", "dispatched", "ending_available", "ending_percent"]
        )

    ordered = timeline.sort_values("date")
    grouped = ordered.groupby("product", sort=False)
    summary = pd.DataFrame(
        {
            "produced": grouped["produced_today"].sum(),
            "dispatched": grouped["dispatched_today"].sum(),
            "ending_available": grouped["available_cumulative"].last(),
            "ending_percent": grouped["percent_remaining"].last(),
        }
    )
    summary.index.name = "product"
    return summary
