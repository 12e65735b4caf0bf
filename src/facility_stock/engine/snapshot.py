"""
Stock snapshot assembly.

``compute_stock_snapshot`` is the single entry point of the engine: it
normalizes, aggregates, reconciles and attaches the same-day figures and
approval counts for one facility and query date. It is pure and
synchronous; inputs are never mutated and every call allocates a fresh
snapshot, so concurrent calls need no coordination.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from facility_stock.config.models import DEFAULT_STOCK_CONFIG, StockConfig
from facility_stock.shared.models import (
    DispatchRequest,
    Facility,
    ProductionRecord,
    ProductStock,
    StockHealth,
    StockSnapshot,
    Store,
)

from .aggregator import aggregate_cumulative, build_store_index
from .approvals import count_approvals
from .daily import build_daily_deltas
from .reconciler import reconcile
from .timestamps import parse_query_date

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_models(items: Iterable[Any], model: type[ModelT]) -> list[ModelT]:
    """Materialize an input collection, validating raw dicts into ``model``."""
    return [
        item if isinstance(item, model) else model.model_validate(item)
        for item in items
    ]


def _compute(
    facility_id: str,
    facility_name: str,
    as_of: dt.date,
    production_records: list[ProductionRecord],
    dispatch_requests: list[DispatchRequest],
    store_index: Mapping[str, str | None],
    config: StockConfig,
) -> StockSnapshot:
    catalog = config.catalog
    products = catalog.keys

    totals = aggregate_cumulative(
        production_records,
        dispatch_requests,
        store_index,
        facility_id,
        as_of,
        products=products,
        policy=config.approval_policy,
    )
    reconciled = reconcile(totals, config.health)
    daily = build_daily_deltas(
        production_records,
        dispatch_requests,
        store_index,
        facility_id,
        as_of,
        products=products,
        policy=config.approval_policy,
    )
    approvals = count_approvals(production_records, facility_id, as_of)

    stock = {
        product: ProductStock(
            product=product,
            label=catalog.label_for(product),
            produced_today=daily.produced_today[product],
            dispatched_today=daily.dispatched_today[product],
            cumulative_produced=reconciled[product].cumulative_produced,
            cumulative_dispatched=reconciled[product].cumulative_dispatched,
            available_cumulative=reconciled[product].available,
            percent_remaining=reconciled[product].percent_remaining,
            health=reconciled[product].health,
        )
        for product in products
    }

    logger.debug(
        f"Snapshot {facility_id} @ {as_of}: "
        f"produced={totals.produced} dispatched={totals.dispatched}"
    )

    return StockSnapshot(
        facility_id=facility_id,
        facility_name=facility_name,
        as_of_date=as_of,
        products=stock,
        total_produced_today=daily.total_produced,
        total_wastage_today=daily.total_wastage,
        approved_count=approvals.approved,
        pending_count=approvals.pending,
        rejected_count=approvals.rejected,
    )


def compute_stock_snapshot(
    facility_id: str,
    as_of_date: dt.date | str,
    production_records: Iterable[ProductionRecord | dict],
    dispatch_requests: Iterable[DispatchRequest | dict],
    stores: Iterable[Store | dict],
    *,
    config: StockConfig | None = None,
    facility_name: str = "",
) -> StockSnapshot:
    """
    Compute the stock snapshot of one facility on one date.

    Args:
        facility_id: Target facility
        as_of_date: Query date (``date`` or ``YYYY-MM-DD``), inclusive bound
        production_records: Full production history
        dispatch_requests: Full dispatch history
        stores: Store directory used to attribute requests to facilities
        config: Engine configuration; defaults to ``DEFAULT_STOCK_CONFIG``
        facility_name: Display name copied onto the snapshot

    Returns:
        StockSnapshot with one entry per catalog product. A facility with
        no events yields an all-zero snapshot.

    Raises:
        InvalidQueryDateError: If ``as_of_date`` is not a calendar date
    """
    config = config or DEFAULT_STOCK_CONFIG
    as_of = parse_query_date(as_of_date)
    stores = coerce_models(stores, Store)

    return _compute(
        facility_id,
        facility_name,
        as_of,
        coerce_models(production_records, ProductionRecord),
        coerce_models(dispatch_requests, DispatchRequest),
        build_store_index(stores),
        config,
    )


def compute_all_facility_snapshots(
    as_of_date: dt.date | str,
    facilities: Iterable[Facility | dict],
    production_records: Iterable[ProductionRecord | dict],
    dispatch_requests: Iterable[DispatchRequest | dict],
    stores: Iterable[Store | dict],
    *,
    config: StockConfig | None = None,
) -> list[StockSnapshot]:
    """
    Compute one snapshot per facility, in the order the facilities are given.

    The inputs are materialized once and shared across facilities.
    """
    config = config or DEFAULT_STOCK_CONFIG
    as_of = parse_query_date(as_of_date)
    records = coerce_models(production_records, ProductionRecord)
    requests = coerce_models(dispatch_requests, DispatchRequest)
    store_index = build_store_index(coerce_models(stores, Store))

    return [
        _compute(
            facility.id,
            facility.name,
            as_of,
            records,
            requests,
            store_index,
            config,
        )
        for facility in coerce_models(facilities, Facility)
    ]


def empty_snapshot(
    facility_id: str,
    as_of_date: dt.date | str,
    *,
    config: StockConfig | None = None,
    facility_name: str = "",
    degraded: bool = False,
) -> StockSnapshot:
    """All-zero snapshot, used when upstream data is unavailable."""
    config = config or DEFAULT_STOCK_CONFIG
    catalog = config.catalog
    return StockSnapshot(
        facility_id=facility_id,
        facility_name=facility_name,
        as_of_date=parse_query_date(as_of_date),
        products={
            product: ProductStock(
                product=product,
                label=catalog.label_for(product),
                health=StockHealth.CRITICAL,
            )
            for product in catalog.keys
        },
        degraded=degraded,
    )
