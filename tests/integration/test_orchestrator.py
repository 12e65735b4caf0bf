"""
Integration tests for the snapshot orchestration service.

Exercises concurrent fetching through in-memory and failing sources,
degraded snapshots, token handling and data-quality logging.
"""

import asyncio
import json
import logging
from datetime import date

import pytest

from facility_stock.config.models import StockConfig
from facility_stock.services.orchestrator import StockSnapshotService
from facility_stock.services.sources import InMemoryStockSource, StockDataSource
from facility_stock.shared.exceptions import InvalidQueryDateError, UpstreamFetchError
from tests.test_utils import FACILITY, OTHER_FACILITY, make_record, make_request

pytestmark = pytest.mark.integration


@pytest.fixture
def source(facilities, stores):
    return InMemoryStockSource(
        production_records=[
            make_record("2025-01-01", chicken=100),
            make_record("2025-01-01", facility_id=OTHER_FACILITY, veg=40),
        ],
        dispatch_requests=[
            make_request("R1", "01/01/2025, 10:00:00", chicken=40),
            make_request("R2", "01/01/2025, 10:00:00", store_id="S2", veg=10),
            make_request("R3", "whenever", chicken=5),
        ],
        stores=stores,
        facilities=facilities,
    )


class FailingSource(InMemoryStockSource):
    """Source whose store directory cannot be fetched."""

    def __init__(self, *args, fail_facilities=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_facilities = fail_facilities

    async def list_stores(self):
        raise ConnectionError("store directory unavailable")

    async def list_facilities(self):
        if self.fail_facilities:
            raise ConnectionError("facility list unavailable")
        return await super().list_facilities()


class CancelledSource(InMemoryStockSource):
    """Source whose store fetch is cancelled mid-flight."""

    async def list_stores(self):
        raise asyncio.CancelledError()


class TokenRecordingSource(InMemoryStockSource):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tokens = []

    async def fetch_dispatch_requests(self, auth_token=None):
        self.tokens.append(auth_token)
        return await super().fetch_dispatch_requests(auth_token)


def test_in_memory_source_satisfies_protocol(source):
    assert isinstance(source, StockDataSource)


@pytest.mark.asyncio
async def test_snapshot_for(source):
    service = StockSnapshotService(source)
    snapshot = await service.snapshot_for(
        FACILITY, "2025-01-01", facility_name="Central Kitchen"
    )
    assert not snapshot.degraded
    assert snapshot.facility_name == "Central Kitchen"
    assert snapshot.product("chicken").available_cumulative == 60


@pytest.mark.asyncio
async def test_snapshots_for_all(source):
    service = StockSnapshotService(source)
    snapshots = await service.snapshots_for_all(date(2025, 1, 1))
    assert [s.facility_id for s in snapshots] == [FACILITY, OTHER_FACILITY]
    assert snapshots[1].facility_name == "East Kitchen"
    assert snapshots[1].product("veg").available_cumulative == 30


@pytest.mark.asyncio
async def test_concurrent_calls_are_independent(source):
    service = StockSnapshotService(source)
    first, second = await asyncio.gather(
        service.snapshot_for(FACILITY, "2025-01-01"),
        service.snapshot_for(FACILITY, "2024-12-31"),
    )
    assert first.product("chicken").available_cumulative == 60
    assert second.total_available == 0


@pytest.mark.asyncio
async def test_fetch_inputs(source):
    inputs = await StockSnapshotService(source).fetch_inputs(include_facilities=True)
    assert len(inputs.production_records) == 2
    assert len(inputs.dispatch_requests) == 3
    assert len(inputs.stores) == 3
    assert len(inputs.facilities) == 2


@pytest.mark.asyncio
async def test_fetch_inputs_raises_after_failure(facilities, stores):
    service = StockSnapshotService(FailingSource(stores=stores, facilities=facilities))
    with pytest.raises(UpstreamFetchError) as exc_info:
        await service.fetch_inputs()
    assert exc_info.value.collection == "stores"
    assert isinstance(exc_info.value.original_error, ConnectionError)


@pytest.mark.asyncio
async def test_failed_fetch_yields_degraded_snapshot(facilities, stores, caplog):
    service = StockSnapshotService(
        FailingSource([make_record("2025-01-01", veg=10)], facilities=facilities)
    )
    with caplog.at_level(logging.WARNING):
        snapshot = await service.snapshot_for(FACILITY, "2025-01-01")

    assert snapshot.degraded
    assert snapshot.total_available == 0
    assert "Upstream fetch failed" in caplog.text
    assert "Returning degraded snapshot" in caplog.text


@pytest.mark.asyncio
async def test_cancelled_fetch_yields_degraded_snapshot(caplog):
    service = StockSnapshotService(
        CancelledSource([make_record("2025-01-01", veg=10)])
    )
    with caplog.at_level(logging.WARNING):
        snapshot = await service.snapshot_for(FACILITY, "2025-01-01")

    assert snapshot.degraded
    assert snapshot.total_available == 0
    assert "CancelledError" in caplog.text


@pytest.mark.asyncio
async def test_cancelled_fetch_is_wrapped(facilities):
    service = StockSnapshotService(CancelledSource(facilities=facilities))
    with pytest.raises(UpstreamFetchError) as exc_info:
        await service.fetch_inputs()
    assert exc_info.value.collection == "stores"
    assert isinstance(exc_info.value.original_error, asyncio.CancelledError)
    assert "Original error: CancelledError" in str(exc_info.value)

    snapshots = await service.snapshots_for_all("2025-01-01")
    assert [s.degraded for s in snapshots] == [True, True]


@pytest.mark.asyncio
async def test_failed_fetch_degrades_every_facility(facilities):
    service = StockSnapshotService(FailingSource(facilities=facilities))
    snapshots = await service.snapshots_for_all("2025-01-01")
    assert [s.facility_id for s in snapshots] == [FACILITY, OTHER_FACILITY]
    assert all(s.degraded for s in snapshots)


@pytest.mark.asyncio
async def test_failed_facility_list_yields_nothing(facilities):
    service = StockSnapshotService(
        FailingSource(facilities=facilities, fail_facilities=True)
    )
    assert await service.snapshots_for_all("2025-01-01") == []


@pytest.mark.asyncio
async def test_invalid_date_is_raised_not_degraded(source):
    with pytest.raises(InvalidQueryDateError):
        await StockSnapshotService(source).snapshot_for(FACILITY, "tomorrow")


@pytest.mark.asyncio
async def test_static_token_is_forwarded(stores):
    source = TokenRecordingSource(stores=stores)
    await StockSnapshotService(source, auth_token="static").snapshot_for(
        FACILITY, "2025-01-01"
    )
    assert source.tokens == ["static"]


@pytest.mark.asyncio
async def test_token_provider_takes_precedence(stores):
    source = TokenRecordingSource(stores=stores)
    issued = iter(["t1", "t2"])

    async def provider():
        return next(issued)

    service = StockSnapshotService(source, auth_token="static", token_provider=provider)
    await service.snapshot_for(FACILITY, "2025-01-01")
    await service.snapshot_for(FACILITY, "2025-01-01")
    assert source.tokens == ["t1", "t2"]


@pytest.mark.asyncio
async def test_data_quality_is_logged(source, caplog):
    with caplog.at_level(logging.WARNING):
        await StockSnapshotService(source).snapshot_for(FACILITY, "2025-01-01")

    warnings = [
        json.loads(r.getMessage())
        for r in caplog.records
        if "excluded or approximated" in r.getMessage()
    ]
    assert len(warnings) == 1
    assert warnings[0]["context"]["unrecognized_timestamps"] == ["R3"]
    assert warnings[0]["correlation_id"].startswith("SNAP_")


@pytest.mark.asyncio
async def test_data_quality_logging_can_be_disabled(source, caplog):
    config = StockConfig.from_dict({"logging": {"report_data_quality": False}})
    with caplog.at_level(logging.WARNING):
        await StockSnapshotService(source, config).snapshot_for(FACILITY, "2025-01-01")
    assert "excluded or approximated" not in caplog.text


@pytest.mark.asyncio
async def test_production_without_facility_is_reported_not_fatal(stores, caplog):
    source = InMemoryStockSource(
        production_records=[
            make_record("2025-01-01", chicken=100),
            make_record("2025-01-01", facility_id=None, chicken=50),
        ],
        stores=stores,
    )
    with caplog.at_level(logging.WARNING):
        snapshot = await StockSnapshotService(source).snapshot_for(FACILITY, "2025-01-01")

    assert not snapshot.degraded
    assert snapshot.product("chicken").available_cumulative == 100
    (warning,) = [
        json.loads(r.getMessage())
        for r in caplog.records
        if "excluded or approximated" in r.getMessage()
    ]
    assert warning["context"]["unattributed_production"] == ["2025-01-01"]
