"""Approval status counts for same-day production entries (data-quality signal only)."""

from __future__ import annotations

import datetime as dt
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from facility_stock.shared.models import ApprovalStatus, ProductionRecord


@dataclass(frozen=True, slots=True)
class ApprovalCounts:
    approved: int = 0
    pending: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.approved + self.pending + self.rejected


def count_approvals(
    production_records: Iterable[ProductionRecord],
    facility_id: str,
    as_of_date: dt.date,
) -> ApprovalCounts:
    """
    Count production records of ``(facility_id, as_of_date)`` per approval state.

    Every record is counted regardless of the approval inclusion policy;
    the counts never gate what enters the produced totals. Records with no
    recorded status are counted as neither approved nor pending.
    """
    counts = Counter(
        record.approval_status
        for record in production_records
        if record.facility_id == facility_id and record.date == as_of_date
    )
    return ApprovalCounts(
        approved=counts[ApprovalStatus.APPROVED],
        pending=counts[ApprovalStatus.PENDING],
        rejected=counts[ApprovalStatus.REJECTED],
    )
