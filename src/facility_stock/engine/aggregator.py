"""
Cumulative aggregation of production and dispatch histories.

Reduces the two event histories, filtered by facility and an inclusive
upper date bound, into per-product running totals. Every call recomputes
from scratch in O(P + D); nothing is cached between calls.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from facility_stock.config.models import ApprovalInclusionPolicy
from facility_stock.shared.models import (
    DispatchRequest,
    ProductionRecord,
    ProductKey,
    Store,
)

from .timestamps import parse_delivery_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CumulativeTotals:
    """Running totals for one facility up to and including ``as_of_date``."""

    facility_id: str
    as_of_date: dt.date
    produced: dict[ProductKey, float] = field(default_factory=dict)
    dispatched: dict[ProductKey, float] = field(default_factory=dict)

    def produced_of(self, product: ProductKey) -> float:
        return self.produced.get(product, 0.0)

    def dispatched_of(self, product: ProductKey) -> float:
        return self.dispatched.get(product, 0.0)


def build_store_index(stores: Iterable[Store]) -> dict[str, str | None]:
    """Map store id to its facility id (None for unmapped stores)."""
    return {store.id: store.facility_id for store in stores}


def select_production_records(
    records: Iterable[ProductionRecord],
    facility_id: str,
    as_of_date: dt.date,
    *,
    policy: ApprovalInclusionPolicy = ApprovalInclusionPolicy.INCLUDE_ALL,
    exact: bool = False,
) -> Iterator[ProductionRecord]:
    """
    Yield the production records of a facility up to (or exactly on) a date.

    Args:
        records: Full production history
        facility_id: Target facility
        as_of_date: Inclusive upper bound, or the exact day when ``exact``
        policy: Approval inclusion policy gating which records count
        exact: Select only records dated ``as_of_date``
    """
    for record in records:
        if record.facility_id != facility_id:
            continue
        if exact:
            if record.date != as_of_date:
                continue
        elif record.date > as_of_date:
            continue
        if not policy.admits(record.approval_status):
            continue
        yield record


def select_delivered_requests(
    requests: Iterable[DispatchRequest],
    store_index: Mapping[str, str | None],
    facility_id: str,
    as_of_date: dt.date,
    *,
    exact: bool = False,
) -> Iterator[DispatchRequest]:
    """
    Yield delivered requests from stores of a facility up to (or exactly on) a date.

    A request is selected iff its status is ``delivered``, its store maps to
    ``facility_id`` and its normalized delivery date passes the date bound.
    Requests with an unrecognized timestamp or an unknown/unmapped store are
    skipped without error, as are production records without a facility.
    """
    for request in requests:
        if not request.status.is_countable:
            continue
        if store_index.get(request.store_id) != facility_id:
            continue
        parsed = parse_delivery_timestamp(request.delivered_at)
        if not parsed.recognized:
            logger.debug(
                f"Skipping request {request.id}: delivery timestamp "
                f"{request.delivered_at!r} {parsed.reason}"
            )
            continue
        if exact:
            if parsed.date != as_of_date:
                continue
        elif parsed.date > as_of_date:
            continue
        yield request


def sum_quantities(
    quantity_maps: Iterable[Mapping[ProductKey, float]],
    products: Iterable[ProductKey] | None = None,
) -> dict[ProductKey, float]:
    """
    Sum per-product quantity maps.

    Args:
        quantity_maps: Maps of product key to quantity
        products: When given, the result holds exactly these keys (missing
            ones as 0.0) and quantities of other keys are ignored

    Returns:
        New dict of product key to total
    """
    if products is None:
        totals: dict[ProductKey, float] = {}
        for quantities in quantity_maps:
            for product, qty in quantities.items():
                totals[product] = totals.get(product, 0.0) + qty
        return totals

    totals = {product: 0.0 for product in products}
    for quantities in quantity_maps:
        for product, qty in quantities.items():
            if product in totals:
                totals[product] += qty
    return totals


def aggregate_cumulative(
    production_records: Iterable[ProductionRecord],
    dispatch_requests: Iterable[DispatchRequest],
    stores: Iterable[Store] | Mapping[str, str | None],
    facility_id: str,
    as_of_date: dt.date,
    *,
    products: Iterable[ProductKey] | None = None,
    policy: ApprovalInclusionPolicy = ApprovalInclusionPolicy.INCLUDE_ALL,
) -> CumulativeTotals:
    """
    Compute cumulative produced and dispatched totals for one facility.

    Args:
        production_records: Full production history
        dispatch_requests: Full dispatch history
        stores: Store directory, or a prebuilt store-to-facility index
        facility_id: Target facility
        as_of_date: Inclusive upper date bound
        products: Catalog keys to report; all seen keys when None
        policy: Approval inclusion policy for production records

    Returns:
        CumulativeTotals with fresh dicts (inputs are never mutated)
    """
    store_index = stores if isinstance(stores, Mapping) else build_store_index(stores)
    product_keys = tuple(products) if products is not None else None

    produced = sum_quantities(
        (
            record.finalized_yield
            for record in select_production_records(
                production_records, facility_id, as_of_date, policy=policy
            )
        ),
        product_keys,
    )
    dispatched = sum_quantities(
        (
            request.dispatched_quantities
            for request in select_delivered_requests(
                dispatch_requests, store_index, facility_id, as_of_date
            )
        ),
        product_keys,
    )

    return CumulativeTotals(
        facility_id=facility_id,
        as_of_date=as_of_date,
        produced=produced,
        dispatched=dispatched,
    )
