"""
Core data models for the facility stock reconciliation engine.

This module contains the input models (facilities, stores, production
records, dispatch requests) as they arrive from the backend, and the
derived snapshot models returned to the presentation tier.

Input models accept both snake_case field names and the camelCase names
used by the backend export (``facilityId``, ``deliveredAt`` ...). All
models are frozen: the engine never mutates what it is given.
"""

import datetime as dt
from enum import Enum

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    field_validator,
)

ProductKey = str
"""Key of a product in the configured catalog (e.g. ``"chicken"``)."""

QuantityMap = dict[ProductKey, NonNegativeFloat]


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


# ================================
# ENUMERATIONS
# ================================


class ApprovalStatus(str, Enum):
    """Approval state of a production entry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DispatchStatus(str, Enum):
    """Dispatch request status.

    State machine lifecycle for store stock requests:
        PENDING -> APPROVED -> FULFILLED | PARTIALLY_FULFILLED -> DELIVERED

    Any state before DELIVERED may move to REJECTED. DELIVERED and REJECTED
    are terminal. Only DELIVERED requests count towards a facility's
    dispatched totals; FULFILLED and PARTIALLY_FULFILLED mean the stock was
    packed but has not reached the store yet.
    """

    PENDING = "pending"
    APPROVED = "approved"
    FULFILLED = "fulfilled"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    DELIVERED = "delivered"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return not VALID_DISPATCH_TRANSITIONS[self]

    @property
    def is_countable(self) -> bool:
        """True only for the state whose quantities are final for accounting."""
        return self is DispatchStatus.DELIVERED

    def can_transition_to(self, new_status: "DispatchStatus") -> bool:
        return new_status in VALID_DISPATCH_TRANSITIONS[self]


# Each state maps to the set of valid next states
VALID_DISPATCH_TRANSITIONS: dict[DispatchStatus, frozenset[DispatchStatus]] = {
    DispatchStatus.PENDING: frozenset(
        {DispatchStatus.APPROVED, DispatchStatus.REJECTED}
    ),
    DispatchStatus.APPROVED: frozenset(
        {
            DispatchStatus.FULFILLED,
            DispatchStatus.PARTIALLY_FULFILLED,
            DispatchStatus.REJECTED,
        }
    ),
    DispatchStatus.FULFILLED: frozenset(
        {DispatchStatus.DELIVERED, DispatchStatus.REJECTED}
    ),
    DispatchStatus.PARTIALLY_FULFILLED: frozenset(
        {DispatchStatus.DELIVERED, DispatchStatus.REJECTED}
    ),
    DispatchStatus.DELIVERED: frozenset(),  # Terminal state
    DispatchStatus.REJECTED: frozenset(),  # Terminal state
}


class StockHealth(str, Enum):
    """Presentation band for the share of cumulative production still on hand."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    LOW = "low"
    CRITICAL = "critical"


# ================================
# INPUT MODELS
# ================================


class _InputModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Facility(_InputModel):
    """Production facility (a production house in the backend)."""

    id: str = Field(..., min_length=1, description="Facility identifier")
    name: str = Field("", description="Display name")


class Store(_InputModel):
    """Retail store, optionally mapped to the facility that supplies it."""

    id: str = Field(..., min_length=1, description="Store identifier")
    name: str = Field("", description="Display name")
    facility_id: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "facility_id", "facilityId", "productionHouseId"
        ),
        description="Supplying facility; unmapped stores count for no facility",
    )

    @field_validator("facility_id", mode="before")
    @classmethod
    def empty_facility_to_none(cls, v):
        """Treat empty strings as an unmapped store."""
        return _blank_to_none(v)


class ProductionRecord(_InputModel):
    """One production entry: finalized yield of a facility on a calendar date."""

    id: str | None = Field(None, description="Record identifier, if known")
    facility_id: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "facility_id", "facilityId", "productionHouseId"
        ),
        description="Producing facility; legacy rows without one count for none",
    )
    date: dt.date = Field(..., description="Production calendar date")
    finalized_yield: QuantityMap = Field(
        default_factory=dict,
        validation_alias=AliasChoices("finalized_yield", "finalizedYield"),
        description="Finished quantity per product, already net of waste",
    )
    wastage: dict[str, NonNegativeFloat] = Field(
        default_factory=dict,
        description="Waste by raw-material category (dough, stuffing, ...)",
    )
    approval_status: ApprovalStatus | None = Field(
        None,
        validation_alias=AliasChoices("approval_status", "approvalStatus"),
        description="Approval state of the entry; None when never recorded",
    )

    @field_validator("facility_id", mode="before")
    @classmethod
    def empty_facility_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_record_date(cls, v):
        """Accept ISO date-times by keeping only the date component."""
        if isinstance(v, str) and len(v) > 10 and v[10] in ("T", " "):
            return v[:10]
        return v

    @field_validator("finalized_yield", "wastage", mode="before")
    @classmethod
    def drop_null_quantities(cls, v):
        """Treat missing per-key quantities (``null``) as absent."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {key: qty for key, qty in v.items() if qty is not None}
        return v


class DispatchRequest(_InputModel):
    """A store-originated stock request travelling through the dispatch lifecycle."""

    id: str = Field(..., min_length=1, description="Request identifier")
    store_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("store_id", "storeId"),
        description="Requesting store",
    )
    requested_quantities: QuantityMap = Field(
        default_factory=dict,
        validation_alias=AliasChoices("requested_quantities", "requestedQuantities"),
        description="Requested quantity per product",
    )
    delivered_quantities: QuantityMap | None = Field(
        None,
        validation_alias=AliasChoices(
            "delivered_quantities", "deliveredQuantities", "fulfilledQuantities"
        ),
        description="Delivered quantity per product; present once delivered",
    )
    status: DispatchStatus = Field(
        DispatchStatus.PENDING, description="Lifecycle state"
    )
    delivered_at: str | None = Field(
        None,
        validation_alias=AliasChoices("delivered_at", "deliveredAt"),
        description="Free-text delivery timestamp, present once delivered",
    )

    @field_validator("requested_quantities", "delivered_quantities", mode="before")
    @classmethod
    def drop_null_quantities(cls, v):
        if isinstance(v, dict):
            return {key: qty for key, qty in v.items() if qty is not None}
        return v

    @field_validator("delivered_at", mode="before")
    @classmethod
    def empty_timestamp_to_none(cls, v):
        return _blank_to_none(v)

    @property
    def dispatched_quantities(self) -> dict[ProductKey, float]:
        """Quantities that left the facility for this request.

        Delivered quantities when recorded; requests that were marked
        delivered without a delivered breakdown shipped what was requested.
        """
        if self.delivered_quantities is not None:
            return self.delivered_quantities
        return self.requested_quantities


# ================================
# DERIVED SNAPSHOT MODELS
# ================================


class ProductStock(BaseModel):
    """Stock position of one product at one facility on the query date."""

    model_config = ConfigDict(frozen=True)

    product: ProductKey
    label: str = ""
    produced_today: float = Field(0.0, ge=0)
    dispatched_today: float = Field(0.0, ge=0)
    cumulative_produced: float = Field(0.0, ge=0)
    cumulative_dispatched: float = Field(0.0, ge=0)
    available_cumulative: float = Field(0.0, ge=0)
    percent_remaining: float = Field(0.0, ge=0, le=100)
    health: StockHealth = StockHealth.CRITICAL


class StockSnapshot(BaseModel):
    """Per-facility stock snapshot for one query date.

    Recomputed from the source events on every call and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    facility_id: str
    facility_name: str = ""
    as_of_date: dt.date
    products: dict[ProductKey, ProductStock] = Field(default_factory=dict)
    total_produced_today: float = Field(0.0, ge=0)
    total_wastage_today: float = Field(0.0, ge=0)
    approved_count: int = Field(0, ge=0)
    pending_count: int = Field(0, ge=0)
    rejected_count: int = Field(0, ge=0)
    degraded: bool = Field(
        False, description="True when upstream data could not be fetched"
    )

    @property
    def total_available(self) -> float:
        return sum(stock.available_cumulative for stock in self.products.values())

    def product(self, key: ProductKey) -> ProductStock:
        return self.products[key]
