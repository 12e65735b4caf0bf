"""
Stock reconciliation: clamped available quantity and percent remaining.
"""

from __future__ import annotations

from dataclasses import dataclass

from facility_stock.config.models import HealthThresholds
from facility_stock.shared.models import ProductKey, StockHealth

from .aggregator import CumulativeTotals

DEFAULT_THRESHOLDS = HealthThresholds()


@dataclass(frozen=True, slots=True)
class ReconciledStock:
    product: ProductKey
    cumulative_produced: float
    cumulative_dispatched: float
    available: float
    percent_remaining: float
    health: StockHealth


def classify_health(
    percent_remaining: float, thresholds: HealthThresholds = DEFAULT_THRESHOLDS
) -> StockHealth:
    """Map percent remaining to a health band using inclusive lower bounds."""
    if percent_remaining >= thresholds.excellent:
        return StockHealth.EXCELLENT
    if percent_remaining >= thresholds.good:
        return StockHealth.GOOD
    if percent_remaining >= thresholds.fair:
        return StockHealth.FAIR
    if percent_remaining >= thresholds.low:
        return StockHealth.LOW
    return StockHealth.CRITICAL


def reconcile_product(
    product: ProductKey,
    produced: float,
    dispatched: float,
    thresholds: HealthThresholds = DEFAULT_THRESHOLDS,
) -> ReconciledStock:
    """
    Reconcile one product.

    ``available = max(0, produced - dispatched)``. Over-dispatch (more
    delivered than produced, e.g. after a missed production entry) clamps
    to zero rather than going negative.
    """
    available = max(0.0, produced - dispatched)
    percent = (available / produced * 100.0) if produced > 0 else 0.0
    return ReconciledStock(
        product=product,
        cumulative_produced=produced,
        cumulative_dispatched=dispatched,
        available=available,
        percent_remaining=percent,
        health=classify_health(percent, thresholds),
    )


def reconcile(
    totals: CumulativeTotals, thresholds: HealthThresholds = DEFAULT_THRESHOLDS
) -> dict[ProductKey, ReconciledStock]:
    """Reconcile every product present in either cumulative total."""
    products = list(totals.produced)
    products.extend(p for p in totals.dispatched if p not in totals.produced)
    return {
        product: reconcile_product(
            product,
            totals.produced_of(product),
            totals.dispatched_of(product),
            thresholds,
        )
        for product in products
    }
