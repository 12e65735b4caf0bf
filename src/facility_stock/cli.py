"""Command-line entry point computing stock snapshots from a JSON data export."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from facility_stock.analytics.timeline import build_stock_timeline, summarize_timeline
from facility_stock.config.settings import load_config_with_fallback
from facility_stock.services.orchestrator import StockSnapshotService
from facility_stock.services.sources import JsonFileStockSource
from facility_stock.shared.exceptions import StockReconciliationException
from facility_stock.shared.logging_config import configure_structured_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="facility-stock",
        description="Reconcile production and dispatch histories into facility stock",
    )
    parser.add_argument("--config", type=Path, help="Path to a stock_config.json")
    parser.add_argument("--log-level", help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    snap = sub.add_parser("snapshot", help="Stock snapshot for one date")
    snap.add_argument("--data", type=Path, required=True, help="JSON data export")
    snap.add_argument("--date", required=True, help="Query date (YYYY-MM-DD)")
    snap.add_argument("--facility", help="Facility id (default: every facility)")

    timeline = sub.add_parser("timeline", help="Per-product summary over a date range")
    timeline.add_argument("--data", type=Path, required=True, help="JSON data export")
    timeline.add_argument("--facility", required=True, help="Facility id")
    timeline.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    timeline.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")
    return parser


async def _run_snapshot(args: argparse.Namespace, service: StockSnapshotService) -> list:
    if args.facility:
        facilities = await service.source.list_facilities()
        name = next((f.name for f in facilities if f.id == args.facility), "")
        snapshots = [
            await service.snapshot_for(args.facility, args.date, facility_name=name)
        ]
    else:
        snapshots = await service.snapshots_for_all(args.date)
    return [snapshot.model_dump(mode="json") for snapshot in snapshots]


async def _run_timeline(args: argparse.Namespace, service: StockSnapshotService) -> dict:
    inputs = await service.fetch_inputs()
    timeline = build_stock_timeline(
        args.facility,
        args.start,
        args.end,
        inputs.production_records,
        inputs.dispatch_requests,
        inputs.stores,
        config=service.config,
    )
    return summarize_timeline(timeline).to_dict(orient="index")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if not args.data.exists():
            raise FileNotFoundError(f"Data export not found: {args.data}")
        config = load_config_with_fallback(args.config)
        configure_structured_logging(args.log_level or config.logging.level)
        service = StockSnapshotService(
            JsonFileStockSource(args.data, config.catalog), config
        )

        if args.command == "snapshot":
            result = asyncio.run(_run_snapshot(args, service))
        else:
            result = asyncio.run(_run_timeline(args, service))
    except (StockReconciliationException, FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, default=float, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
