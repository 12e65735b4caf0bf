"""
Same-day deltas for the query date.

These are raw sums over events dated exactly on ``as_of_date``. They are
computed independently of the cumulative clamp and are never clamped
themselves; they cannot go negative because every input quantity is
non-negative.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from facility_stock.config.models import ApprovalInclusionPolicy
from facility_stock.shared.models import (
    DispatchRequest,
    ProductionRecord,
    ProductKey,
    Store,
)

from .aggregator import (
    build_store_index,
    select_delivered_requests,
    select_production_records,
    sum_quantities,
)


@dataclass(frozen=True, slots=True)
class DailyDeltas:
    facility_id: str
    as_of_date: dt.date
    produced_today: dict[ProductKey, float] = field(default_factory=dict)
    dispatched_today: dict[ProductKey, float] = field(default_factory=dict)
    wastage_today: dict[str, float] = field(default_factory=dict)

    @property
    def total_produced(self) -> float:
        return sum(self.produced_today.values())

    @property
    def total_dispatched(self) -> float:
        return sum(self.dispatched_today.values())

    @property
    def total_wastage(self) -> float:
        return sum(self.wastage_today.values())


def build_daily_deltas(
    production_records: Iterable[ProductionRecord],
    dispatch_requests: Iterable[DispatchRequest],
    stores: Iterable[Store] | Mapping[str, str | None],
    facility_id: str,
    as_of_date: dt.date,
    *,
    products: Iterable[ProductKey] | None = None,
    policy: ApprovalInclusionPolicy = ApprovalInclusionPolicy.INCLUDE_ALL,
) -> DailyDeltas:
    """
    Compute produced/dispatched quantities and wastage for exactly ``as_of_date``.

    Multiple production entries on the same day are summed. Wastage is
    summed per raw-material category over the same records that count as
    produced.
    """
    store_index = stores if isinstance(stores, Mapping) else build_store_index(stores)
    product_keys = tuple(products) if products is not None else None

    todays_records = list(
        select_production_records(
            production_records, facility_id, as_of_date, policy=policy, exact=True
        )
    )
    produced_today = sum_quantities(
        (record.finalized_yield for record in todays_records), product_keys
    )
    wastage_today = sum_quantities(record.wastage for record in todays_records)
    dispatched_today = sum_quantities(
        (
            request.dispatched_quantities
            for request in select_delivered_requests(
                dispatch_requests, store_index, facility_id, as_of_date, exact=True
            )
        ),
        product_keys,
    )

    return DailyDeltas(
        facility_id=facility_id,
        as_of_date=as_of_date,
        produced_today=produced_today,
        dispatched_today=dispatched_today,
        wastage_today=wastage_today,
    )
