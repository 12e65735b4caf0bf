"""
Data-quality checks over the production and dispatch histories.

The engine silently excludes delivered requests it cannot attribute or
date, and production entries that name no facility. Silent exclusion
means silent undercounting, so the orchestration layer runs these checks
and logs what was dropped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from facility_stock.engine.timestamps import parse_delivery_timestamp
from facility_stock.shared.models import DispatchRequest, ProductionRecord


@dataclass(slots=True)
class DataQualityReport:
    """Source rows that the engine excludes or treats specially."""

    delivered_requests: int = 0
    # Delivered, but the timestamp matches no accepted shape
    unrecognized_timestamps: list[str] = field(default_factory=list)
    # Delivered, store exists but has no facility mapping
    unmapped_stores: list[str] = field(default_factory=list)
    # Delivered, store id not in the directory
    unknown_stores: list[str] = field(default_factory=list)
    # Delivered, store mapped to a facility id that is not in the facility list
    unknown_facilities: list[str] = field(default_factory=list)
    # Delivered without a delivered breakdown; requested quantities are used
    missing_delivered_quantities: list[str] = field(default_factory=list)
    # Production entries without a facility (legacy rows); counted for none
    unattributed_production: list[str] = field(default_factory=list)

    @property
    def excluded_count(self) -> int:
        return len(
            set(self.unrecognized_timestamps)
            | set(self.unmapped_stores)
            | set(self.unknown_stores)
            | set(self.unknown_facilities)
        )

    @property
    def has_issues(self) -> bool:
        return bool(
            self.unrecognized_timestamps
            or self.unmapped_stores
            or self.unknown_stores
            or self.unknown_facilities
            or self.missing_delivered_quantities
            or self.unattributed_production
        )

    def as_dict(self) -> dict:
        return {
            "delivered_requests": self.delivered_requests,
            "excluded_count": self.excluded_count,
            "unrecognized_timestamps": list(self.unrecognized_timestamps),
            "unmapped_stores": list(self.unmapped_stores),
            "unknown_stores": list(self.unknown_stores),
            "unknown_facilities": list(self.unknown_facilities),
            "missing_delivered_quantities": list(self.missing_delivered_quantities),
            "unattributed_production": list(self.unattributed_production),
        }


def collect_data_quality(
    dispatch_requests: Iterable[DispatchRequest],
    store_index: Mapping[str, str | None],
    facility_ids: Iterable[str] | None = None,
    production_records: Iterable[ProductionRecord] = (),
) -> DataQualityReport:
    """
    Inspect source rows for the conditions the engine skips.

    Args:
        dispatch_requests: Dispatch history
        store_index: Store id to facility id (None when unmapped)
        facility_ids: Known facilities; when given, mappings to other ids
            are reported as unknown facilities
        production_records: Production history; entries without a facility
            are reported by id (or by date when they have none)

    Returns:
        DataQualityReport listing affected request and record ids
    """
    known_facilities = set(facility_ids) if facility_ids is not None else None
    report = DataQualityReport()
    for request in dispatch_requests:
        if not request.status.is_countable:
            continue
        report.delivered_requests += 1

        if not parse_delivery_timestamp(request.delivered_at).recognized:
            report.unrecognized_timestamps.append(request.id)

        if request.store_id not in store_index:
            report.unknown_stores.append(request.id)
        elif store_index[request.store_id] is None:
            report.unmapped_stores.append(request.id)
        elif (
            known_facilities is not None
            and store_index[request.store_id] not in known_facilities
        ):
            report.unknown_facilities.append(request.id)

        if request.delivered_quantities is None:
            report.missing_delivered_quantities.append(request.id)

    for record in production_records:
        if record.facility_id is None:
            report.unattributed_production.append(record.id or record.date.isoformat())

    return report
