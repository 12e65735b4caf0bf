"""Tabular and time-series views over stock snapshots."""

from .timeline import build_stock_timeline, snapshots_to_frame, summarize_timeline

__all__ = ["build_stock_timeline", "snapshots_to_frame", "summarize_timeline"]
