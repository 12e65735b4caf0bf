"""
Data sources for the raw collections the engine consumes.

The backend (persistence, authentication, HTTP) is an external
collaborator; this module only defines the interface the orchestration
layer fetches through, plus two implementations:

- ``InMemoryStockSource`` holds already-loaded collections (tests, embedding)
- ``JsonFileStockSource`` reads a JSON export of the backend collections

JSON export layout (camelCase or snake_case keys are both accepted)::

    {
      "facilities": [{"id": "F1", "name": "Central Kitchen"}],
      "stores": [{"id": "S1", "name": "Mall Road", "facilityId": "F1"}],
      "productionRecords": [{"facilityId": "F1", "date": "2025-01-01",
                             "finalizedYield": {"chicken": 100}}],
      "dispatchRequests": [{"id": "R1", "storeId": "S1", "status": "delivered",
                            "deliveredAt": "01/01/2025, 10:00:00",
                            "deliveredQuantities": {"chicken": 40}}]
    }

Rows exported by the legacy backend carry one field per product instead of
a quantity map: production rows nest the finished count (``"chickenMomos":
{"final": 100}``) and requests hold flat numbers (``"chickenMomos": 40``).
Those fields are mapped onto catalog keys through each product's
``source_field`` before validation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from facility_stock.config.models import DEFAULT_CATALOG, ProductCatalog
from facility_stock.shared.exceptions import SourceDataError
from facility_stock.shared.models import (
    DispatchRequest,
    Facility,
    ProductionRecord,
    Store,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Canonical quantity-map keys; a row carrying one of these is never remapped
QUANTITY_KEYS: dict[str, tuple[str, ...]] = {
    "production_records": ("finalizedYield", "finalized_yield"),
    "dispatch_requests": ("requestedQuantities", "requested_quantities"),
}

# Collection name -> accepted keys in a JSON export
COLLECTION_KEYS: dict[str, tuple[str, ...]] = {
    "facilities": ("facilities", "productionHouses", "production_houses"),
    "stores": ("stores",),
    "production_records": (
        "productionRecords",
        "production_records",
        "productionData",
    ),
    "dispatch_requests": (
        "dispatchRequests",
        "dispatch_requests",
        "productionRequests",
    ),
}


@runtime_checkable
class StockDataSource(Protocol):
    """Interface of the external collaborators that own the raw collections."""

    async def fetch_production_records(self) -> list[ProductionRecord]: ...

    async def fetch_dispatch_requests(
        self, auth_token: str | None = None
    ) -> list[DispatchRequest]: ...

    async def list_stores(self) -> list[Store]: ...

    async def list_facilities(self) -> list[Facility]: ...


class InMemoryStockSource:
    """Source over collections that are already in memory.

    Each fetch returns a new list, so callers can never alias the
    source's own storage.
    """

    def __init__(
        self,
        production_records: Iterable[ProductionRecord] = (),
        dispatch_requests: Iterable[DispatchRequest] = (),
        stores: Iterable[Store] = (),
        facilities: Iterable[Facility] = (),
    ):
        self._production_records = list(production_records)
        self._dispatch_requests = list(dispatch_requests)
        self._stores = list(stores)
        self._facilities = list(facilities)

    async def fetch_production_records(self) -> list[ProductionRecord]:
        return list(self._production_records)

    async def fetch_dispatch_requests(
        self, auth_token: str | None = None
    ) -> list[DispatchRequest]:
        return list(self._dispatch_requests)

    async def list_stores(self) -> list[Store]:
        return list(self._stores)

    async def list_facilities(self) -> list[Facility]:
        return list(self._facilities)


def _legacy_quantities(
    row: dict[str, Any], catalog: ProductCatalog, *, nested: bool
) -> dict[str, Any]:
    quantities: dict[str, Any] = {}
    for product in catalog.products:
        if product.source_field is None or product.source_field not in row:
            continue
        value = row[product.source_field]
        if nested:
            value = value.get("final") if isinstance(value, dict) else None
        if value is not None:
            quantities[product.key] = value
    return quantities


def map_legacy_row(row: Any, collection: str, catalog: ProductCatalog) -> Any:
    """
    Rewrite a legacy per-product row into the quantity-map shape.

    Production rows get ``finalized_yield`` from each product's ``final``
    count. Requests get ``requested_quantities`` from the flat fields and,
    once delivered, the same map as ``delivered_quantities``: the legacy
    backend records only what was sent. Rows that already carry a quantity
    map, or no legacy field at all, are returned unchanged.
    """
    keys = QUANTITY_KEYS.get(collection)
    if keys is None or not isinstance(row, dict) or any(k in row for k in keys):
        return row

    if collection == "production_records":
        legacy = _legacy_quantities(row, catalog, nested=True)
        return {**row, "finalized_yield": legacy} if legacy else row

    legacy = _legacy_quantities(row, catalog, nested=False)
    if not legacy:
        return row
    mapped = {**row, "requested_quantities": legacy}
    if row.get("status") == "delivered" and not any(
        k in row
        for k in ("deliveredQuantities", "delivered_quantities", "fulfilledQuantities")
    ):
        mapped["delivered_quantities"] = legacy
    return mapped


def _validate_rows(
    rows: list[Any], model: type[ModelT], collection: str, source_path: Path | None
) -> list[ModelT]:
    validated: list[ModelT] = []
    for row_number, row in enumerate(rows, start=1):
        try:
            validated.append(model.model_validate(row))
        except ValidationError as e:
            raise SourceDataError(
                f"Invalid {model.__name__} record",
                source_path=source_path,
                collection=collection,
                row_number=row_number,
                validation_errors=[
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ],
            ) from e
    return validated


class JsonFileStockSource:
    """Source reading a JSON export of the backend collections.

    The file is read once, lazily, on the first fetch; each fetch then
    validates its own collection. ``catalog`` supplies the legacy
    per-product field names (see ``map_legacy_row``).
    """

    def __init__(self, path: str | Path, catalog: ProductCatalog | None = None):
        self.path = Path(path)
        self.catalog = catalog or DEFAULT_CATALOG
        self._payload: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            raise FileNotFoundError(f"Data export not found: {self.path}")
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise SourceDataError(
                f"Invalid JSON: {e}", source_path=self.path
            ) from e
        if not isinstance(payload, dict):
            raise SourceDataError(
                "Top level of the export must be an object", source_path=self.path
            )
        logger.info(f"Loaded data export {self.path}")
        return payload

    async def _load(self) -> dict[str, Any]:
        async with self._lock:
            if self._payload is None:
                self._payload = await asyncio.to_thread(self._read)
        return self._payload

    async def _collection(self, name: str, model: type[ModelT]) -> list[ModelT]:
        payload = await self._load()
        for key in COLLECTION_KEYS[name]:
            if key in payload:
                rows = payload[key] or []
                break
        else:
            logger.warning(f"Collection '{name}' missing from {self.path}")
            rows = []
        if not isinstance(rows, list):
            raise SourceDataError(
                "Collection must be a list", source_path=self.path, collection=name
            )
        mapped = [map_legacy_row(row, name, self.catalog) for row in rows]
        legacy_rows = sum(1 for old, new in zip(rows, mapped) if old is not new)
        if legacy_rows:
            logger.info(
                f"Mapped {legacy_rows} legacy '{name}' rows onto catalog product keys"
            )
        return _validate_rows(mapped, model, name, self.path)

    async def fetch_production_records(self) -> list[ProductionRecord]:
        return await self._collection("production_records", ProductionRecord)

    async def fetch_dispatch_requests(
        self, auth_token: str | None = None
    ) -> list[DispatchRequest]:
        return await self._collection("dispatch_requests", DispatchRequest)

    async def list_stores(self) -> list[Store]:
        return await self._collection("stores", Store)

    async def list_facilities(self) -> list[Facility]:
        return await self._collection("facilities", Facility)
