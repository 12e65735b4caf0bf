"""
Tests for the input and snapshot models.

Covers backend field aliases, quantity validation, immutability and the
dispatch request state machine.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from facility_stock.shared.models import (
    VALID_DISPATCH_TRANSITIONS,
    ApprovalStatus,
    DispatchRequest,
    DispatchStatus,
    ProductionRecord,
    ProductStock,
    StockSnapshot,
    Store,
)


class TestStore:
    def test_camel_case_alias(self):
        store = Store.model_validate({"id": "S1", "name": "A", "facilityId": "F1"})
        assert store.facility_id == "F1"

    def test_production_house_alias(self):
        store = Store.model_validate({"id": "S1", "productionHouseId": "F9"})
        assert store.facility_id == "F9"

    def test_blank_facility_is_unmapped(self):
        assert Store(id="S1", facility_id="  ").facility_id is None

    def test_missing_facility_is_unmapped(self):
        assert Store(id="S1").facility_id is None


class TestProductionRecord:
    def test_backend_payload(self):
        record = ProductionRecord.model_validate(
            {
                "id": "P1",
                "facilityId": "F1",
                "date": "2025-01-01",
                "finalizedYield": {"chicken": 100, "veg": None},
                "wastage": {"dough": 1.5},
                "approvalStatus": "approved",
            }
        )
        assert record.date == date(2025, 1, 1)
        assert record.finalized_yield == {"chicken": 100.0}
        assert record.wastage == {"dough": 1.5}
        assert record.approval_status is ApprovalStatus.APPROVED

    def test_datetime_text_keeps_date_component(self):
        record = ProductionRecord(facility_id="F1", date="2025-01-01T18:30:00")
        assert record.date == date(2025, 1, 1)

    def test_missing_approval_status_is_none(self):
        record = ProductionRecord(facility_id="F1", date="2025-01-01")
        assert record.approval_status is None
        assert record.finalized_yield == {}

    def test_legacy_row_without_facility(self):
        record = ProductionRecord.model_validate(
            {"id": "P9", "storeId": "S1", "date": "2025-01-01"}
        )
        assert record.facility_id is None

    def test_blank_facility_is_none(self):
        assert ProductionRecord(facility_id=" ", date="2025-01-01").facility_id is None

    def test_negative_yield_rejected(self):
        with pytest.raises(ValidationError):
            ProductionRecord(
                facility_id="F1", date="2025-01-01", finalized_yield={"veg": -1}
            )

    def test_negative_wastage_rejected(self):
        with pytest.raises(ValidationError):
            ProductionRecord(facility_id="F1", date="2025-01-01", wastage={"dough": -2})

    def test_unknown_approval_status_rejected(self):
        with pytest.raises(ValidationError):
            ProductionRecord(facility_id="F1", date="2025-01-01", approval_status="maybe")

    def test_is_frozen(self):
        record = ProductionRecord(facility_id="F1", date="2025-01-01")
        with pytest.raises(ValidationError):
            record.facility_id = "F2"


class TestDispatchRequest:
    def test_backend_payload(self):
        request = DispatchRequest.model_validate(
            {
                "id": "R1",
                "storeId": "S1",
                "requestedQuantities": {"chicken": 50},
                "fulfilledQuantities": {"chicken": 40},
                "status": "delivered",
                "deliveredAt": "01/01/2025, 10:00:00",
            }
        )
        assert request.store_id == "S1"
        assert request.status is DispatchStatus.DELIVERED
        assert request.dispatched_quantities == {"chicken": 40.0}

    def test_dispatched_falls_back_to_requested(self):
        request = DispatchRequest(
            id="R1",
            store_id="S1",
            requested_quantities={"veg": 12},
            status=DispatchStatus.DELIVERED,
        )
        assert request.dispatched_quantities == {"veg": 12.0}

    def test_empty_delivered_breakdown_is_respected(self):
        request = DispatchRequest(
            id="R1",
            store_id="S1",
            requested_quantities={"veg": 12},
            delivered_quantities={},
            status=DispatchStatus.DELIVERED,
        )
        assert request.dispatched_quantities == {}

    def test_blank_timestamp_is_none(self):
        request = DispatchRequest(id="R1", store_id="S1", delivered_at="")
        assert request.delivered_at is None

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            DispatchRequest(id="R1", store_id="S1", status="shipped")


class TestDispatchStatus:
    def test_happy_path_transitions(self):
        path = [
            DispatchStatus.PENDING,
            DispatchStatus.APPROVED,
            DispatchStatus.FULFILLED,
            DispatchStatus.DELIVERED,
        ]
        for current, nxt in zip(path, path[1:]):
            assert current.can_transition_to(nxt)

    def test_partial_fulfilment_can_be_delivered(self):
        assert DispatchStatus.APPROVED.can_transition_to(
            DispatchStatus.PARTIALLY_FULFILLED
        )
        assert DispatchStatus.PARTIALLY_FULFILLED.can_transition_to(
            DispatchStatus.DELIVERED
        )

    @pytest.mark.parametrize(
        "status",
        [
            DispatchStatus.PENDING,
            DispatchStatus.APPROVED,
            DispatchStatus.FULFILLED,
            DispatchStatus.PARTIALLY_FULFILLED,
        ],
    )
    def test_rejection_from_any_pre_delivery_state(self, status):
        assert status.can_transition_to(DispatchStatus.REJECTED)

    def test_no_skipping_approval(self):
        assert not DispatchStatus.PENDING.can_transition_to(DispatchStatus.DELIVERED)

    def test_terminal_states(self):
        assert DispatchStatus.DELIVERED.is_terminal
        assert DispatchStatus.REJECTED.is_terminal
        assert not DispatchStatus.FULFILLED.is_terminal
        assert not DispatchStatus.DELIVERED.can_transition_to(DispatchStatus.REJECTED)

    def test_only_delivered_is_countable(self):
        countable = [s for s in DispatchStatus if s.is_countable]
        assert countable == [DispatchStatus.DELIVERED]

    def test_transition_table_covers_every_state(self):
        assert set(VALID_DISPATCH_TRANSITIONS) == set(DispatchStatus)


class TestSnapshotModels:
    def test_product_stock_rejects_negative_available(self):
        with pytest.raises(ValidationError):
            ProductStock(product="veg", available_cumulative=-1)

    def test_snapshot_total_available(self):
        snapshot = StockSnapshot(
            facility_id="F1",
            as_of_date=date(2025, 1, 1),
            products={
                "veg": ProductStock(product="veg", available_cumulative=10),
                "paneer": ProductStock(product="paneer", available_cumulative=5),
            },
        )
        assert snapshot.total_available == 15
        assert snapshot.product("veg").available_cumulative == 10
