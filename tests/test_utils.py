"""
Builders shared by the stock reconciliation tests.
"""

from datetime import date

from facility_stock.shared.models import (
    ApprovalStatus,
    DispatchRequest,
    DispatchStatus,
    ProductionRecord,
)

FACILITY = "F1"
OTHER_FACILITY = "F2"


def make_record(
    day: str | date,
    facility_id: str | None = FACILITY,
    approval: ApprovalStatus | None = ApprovalStatus.APPROVED,
    wastage: dict | None = None,
    **yields: float,
) -> ProductionRecord:
    """Production record with the given per-product finalized yields."""
    return ProductionRecord(
        facility_id=facility_id,
        date=day,
        finalized_yield=yields,
        wastage=wastage or {},
        approval_status=approval,
    )


def make_request(
    request_id: str,
    delivered_at: str | None,
    store_id: str = "S1",
    status: DispatchStatus = DispatchStatus.DELIVERED,
    **quantities: float,
) -> DispatchRequest:
    """Dispatch request; delivered quantities are recorded only once delivered."""
    return DispatchRequest(
        id=request_id,
        store_id=store_id,
        requested_quantities=quantities,
        delivered_quantities=quantities if status is DispatchStatus.DELIVERED else None,
        status=status,
        delivered_at=delivered_at,
    )
