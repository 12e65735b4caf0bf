"""
Snapshot orchestration: fetch the raw collections, then run the engine.

The three collections the engine needs (production records, dispatch
requests, store directory) are fetched concurrently and the computation
starts only once all of them have completed. If any fetch fails nothing is
computed from partial data: every requested facility gets an all-zero
snapshot flagged ``degraded`` and the failure is logged.

No retry, timeout or cancellation policy is applied here; a caller that
abandons a slow query cancels the awaiting task.
"""

from __future__ import annotations

import asyncio
import datetime as dt
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from facility_stock.config.models import DEFAULT_STOCK_CONFIG, StockConfig
from facility_stock.engine.aggregator import build_store_index
from facility_stock.engine.snapshot import (
    coerce_models,
    compute_all_facility_snapshots,
    compute_stock_snapshot,
    empty_snapshot,
)
from facility_stock.engine.timestamps import parse_query_date
from facility_stock.shared.exceptions import UpstreamFetchError
from facility_stock.shared.logging_utils import (
    StructuredLogger,
    get_structured_logger,
    snapshot_logger,
)
from facility_stock.shared.models import (
    DispatchRequest,
    Facility,
    ProductionRecord,
    StockSnapshot,
    Store,
)

from .data_quality import DataQualityReport, collect_data_quality
from .sources import StockDataSource

TokenProvider = Callable[[], Awaitable[str | None]]


@dataclass(frozen=True, slots=True)
class StockInputs:
    """The fully materialized collections of one snapshot call."""

    production_records: list[ProductionRecord]
    dispatch_requests: list[DispatchRequest]
    stores: list[Store]
    facilities: list[Facility] | None = None


class StockSnapshotService:
    """Fetches source collections and computes stock snapshots.

    Holds no cached data: each call fetches fresh collections, so two
    calls never observe each other's inputs.
    """

    def __init__(
        self,
        source: StockDataSource,
        config: StockConfig | None = None,
        *,
        auth_token: str | None = None,
        token_provider: TokenProvider | None = None,
    ):
        """
        Initialize the service.

        Args:
            source: External collaborator owning the raw collections
            config: Engine configuration; defaults to ``DEFAULT_STOCK_CONFIG``
            auth_token: Static token passed to the dispatch-request fetch
            token_provider: Coroutine returning a fresh token per call;
                takes precedence over ``auth_token``
        """
        self.source = source
        self.config = config or DEFAULT_STOCK_CONFIG
        self._auth_token = auth_token
        self._token_provider = token_provider

    async def _resolve_token(self) -> str | None:
        if self._token_provider is not None:
            return await self._token_provider()
        return self._auth_token

    async def _fetch_dispatch_requests(self) -> list[DispatchRequest]:
        token = await self._resolve_token()
        return await self.source.fetch_dispatch_requests(token)

    async def _gather(
        self, include_facilities: bool, log: StructuredLogger
    ) -> tuple[dict[str, list], dict[str, BaseException]]:
        """Run every fetch concurrently and wait until all have settled."""
        fetches: dict[str, Awaitable] = {
            "production records": self.source.fetch_production_records(),
            "dispatch requests": self._fetch_dispatch_requests(),
            "stores": self.source.list_stores(),
        }
        if include_facilities:
            fetches["facilities"] = self.source.list_facilities()

        results = await asyncio.gather(*fetches.values(), return_exceptions=True)

        fetched: dict[str, list] = {}
        failures: dict[str, BaseException] = {}
        for name, result in zip(fetches, results):
            # CancelledError is a BaseException, not an Exception
            if isinstance(result, BaseException):
                log.error(
                    "Upstream fetch failed",
                    collection=name,
                    error_type=type(result).__name__,
                    error=str(result),
                )
                failures[name] = result
            else:
                fetched[name] = result
        return fetched, failures

    @staticmethod
    def _inputs_or_raise(
        fetched: dict[str, list], failures: dict[str, BaseException]
    ) -> StockInputs:
        if failures:
            name, error = next(iter(failures.items()))
            raise UpstreamFetchError(name, original_error=error) from error
        return StockInputs(
            production_records=fetched["production records"],
            dispatch_requests=fetched["dispatch requests"],
            stores=fetched["stores"],
            facilities=fetched.get("facilities"),
        )

    async def fetch_inputs(
        self, *, include_facilities: bool = False, log: StructuredLogger | None = None
    ) -> StockInputs:
        """
        Fetch all collections concurrently and wait for every one of them.

        Raises:
            UpstreamFetchError: For the first failed collection, after all
                fetches have settled
        """
        log = log or get_structured_logger(__name__)
        fetched, failures = await self._gather(include_facilities, log)
        inputs = self._inputs_or_raise(fetched, failures)
        log.debug(
            "Fetched source collections",
            **{name.replace(" ", "_"): len(rows) for name, rows in fetched.items()},
        )
        return inputs

    def _report_data_quality(
        self,
        log: StructuredLogger,
        inputs: StockInputs,
        facility_ids: list[str] | None = None,
    ) -> DataQualityReport:
        report = collect_data_quality(
            inputs.dispatch_requests,
            build_store_index(inputs.stores),
            facility_ids,
            inputs.production_records,
        )
        if report.has_issues and self.config.logging.report_data_quality:
            log.warning(
                "Source rows excluded or approximated",
                **report.as_dict(),
            )
        return report

    async def snapshot_for(
        self,
        facility_id: str,
        as_of_date: dt.date | str,
        *,
        facility_name: str = "",
    ) -> StockSnapshot:
        """
        Fetch the source collections and compute one facility's snapshot.

        Returns a degraded all-zero snapshot if any fetch fails.

        Raises:
            InvalidQueryDateError: If ``as_of_date`` is not a calendar date
        """
        as_of = parse_query_date(as_of_date)
        log = snapshot_logger(__name__, facility_id=facility_id, as_of_date=as_of)

        try:
            inputs = await self.fetch_inputs(log=log)
        except UpstreamFetchError as e:
            log.warning("Returning degraded snapshot", reason=str(e))
            return empty_snapshot(
                facility_id,
                as_of,
                config=self.config,
                facility_name=facility_name,
                degraded=True,
            )

        self._report_data_quality(log, inputs)
        snapshot = compute_stock_snapshot(
            facility_id,
            as_of,
            inputs.production_records,
            inputs.dispatch_requests,
            inputs.stores,
            config=self.config,
            facility_name=facility_name,
        )
        log.info("Computed stock snapshot", total_available=snapshot.total_available)
        return snapshot

    async def snapshots_for_all(self, as_of_date: dt.date | str) -> list[StockSnapshot]:
        """
        Fetch everything including the facility list and compute every snapshot.

        If the facility list itself cannot be fetched there is nothing to
        report on and an empty list is returned. If only the other
        collections fail, each known facility gets a degraded snapshot.
        """
        as_of = parse_query_date(as_of_date)
        log = snapshot_logger(__name__, as_of_date=as_of)

        fetched, failures = await self._gather(True, log)
        facilities = coerce_models(fetched.get("facilities", []), Facility)

        if "facilities" in failures:
            log.warning("No facilities available", reason=str(failures["facilities"]))
            return []

        if failures:
            log.warning(
                "Returning degraded snapshots",
                facilities=len(facilities),
                failed=sorted(failures),
            )
            return [
                empty_snapshot(
                    facility.id,
                    as_of,
                    config=self.config,
                    facility_name=facility.name,
                    degraded=True,
                )
                for facility in facilities
            ]

        inputs = self._inputs_or_raise(fetched, failures)
        self._report_data_quality(log, inputs, [f.id for f in facilities])
        snapshots = compute_all_facility_snapshots(
            as_of,
            facilities,
            inputs.production_records,
            inputs.dispatch_requests,
            inputs.stores,
            config=self.config,
        )
        log.info("Computed stock snapshots", facilities=len(snapshots))
        return snapshots

