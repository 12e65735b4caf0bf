"""Tests for the production and dispatch data-quality report."""

from facility_stock.engine.aggregator import build_store_index
from facility_stock.services.data_quality import DataQualityReport, collect_data_quality
from facility_stock.shared.models import (
    DispatchRequest,
    DispatchStatus,
    ProductionRecord,
    Store,
)
from tests.test_utils import FACILITY, OTHER_FACILITY, make_record, make_request


def test_clean_history(stores):
    requests = [make_request("R1", "01/01/2025, 10:00:00", veg=1)]
    report = collect_data_quality(requests, build_store_index(stores))
    assert report.delivered_requests == 1
    assert not report.has_issues
    assert report.excluded_count == 0


def test_flags_each_condition(stores):
    index = build_store_index(stores + [Store(id="S9", facility_id="F9")])
    requests = [
        make_request("R1", "not a time", veg=1),
        make_request("R2", "2025-01-01 10:00:00", store_id="S3", veg=1),
        make_request("R3", "2025-01-01 10:00:00", store_id="S404", veg=1),
        make_request("R4", "2025-01-01 10:00:00", store_id="S9", veg=1),
        DispatchRequest(
            id="R5",
            store_id="S1",
            requested_quantities={"veg": 3},
            status=DispatchStatus.DELIVERED,
            delivered_at="2025-01-01 10:00:00",
        ),
    ]
    report = collect_data_quality(requests, index, [FACILITY, OTHER_FACILITY])
    assert report.unrecognized_timestamps == ["R1"]
    assert report.unmapped_stores == ["R2"]
    assert report.unknown_stores == ["R3"]
    assert report.unknown_facilities == ["R4"]
    assert report.missing_delivered_quantities == ["R5"]
    # R5 is still counted, using its requested quantities
    assert report.excluded_count == 4
    assert report.has_issues


def test_request_with_several_problems_is_excluded_once(stores):
    requests = [make_request("R1", None, store_id="S404", veg=1)]
    report = collect_data_quality(requests, build_store_index(stores))
    assert report.unrecognized_timestamps == ["R1"]
    assert report.unknown_stores == ["R1"]
    assert report.excluded_count == 1


def test_undelivered_requests_are_ignored(stores):
    requests = [
        make_request("R1", None, status=DispatchStatus.PENDING, veg=1),
        make_request("R2", "garbled", status=DispatchStatus.FULFILLED, veg=1),
    ]
    report = collect_data_quality(requests, build_store_index(stores))
    assert report.delivered_requests == 0
    assert not report.has_issues


def test_unknown_facilities_need_a_facility_list(stores):
    index = {"S9": "F9"}
    requests = [make_request("R1", "2025-01-01 10:00:00", store_id="S9", veg=1)]
    assert collect_data_quality(requests, index).unknown_facilities == []


def test_production_without_facility_is_unattributed(stores):
    records = [
        make_record("2025-01-01", chicken=100),
        make_record("2025-01-02", facility_id=None, chicken=5),
        ProductionRecord(id="P7", date="2025-01-03"),
    ]
    report = collect_data_quality([], build_store_index(stores), production_records=records)
    assert report.unattributed_production == ["2025-01-02", "P7"]
    assert report.excluded_count == 0
    assert report.has_issues
    assert report.as_dict()["unattributed_production"] == ["2025-01-02", "P7"]


def test_as_dict():
    report = DataQualityReport(delivered_requests=2, unknown_stores=["R1"])
    data = report.as_dict()
    assert data["delivered_requests"] == 2
    assert data["excluded_count"] == 1
    assert data["unknown_stores"] == ["R1"]
    data["unknown_stores"].append("R2")
    assert report.unknown_stores == ["R1"]
