"""
Pytest configuration and fixtures for the stock reconciliation tests.

Provides a small facility network: two facilities and three stores, one of
which is not mapped to any facility.
"""

import sys
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for local test runs without installation
_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.exists() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from facility_stock.config.models import (  # noqa: E402
    ProductCatalog,
    ProductDefinition,
    StockConfig,
)
from facility_stock.shared.models import Facility, Store  # noqa: E402

from tests.test_utils import FACILITY, OTHER_FACILITY  # noqa: E402


@pytest.fixture
def facilities() -> list[Facility]:
    return [
        Facility(id=FACILITY, name="Central Kitchen"),
        Facility(id=OTHER_FACILITY, name="East Kitchen"),
    ]


@pytest.fixture
def stores() -> list[Store]:
    return [
        Store(id="S1", name="Mall Road", facility_id=FACILITY),
        Store(id="S2", name="Station", facility_id=OTHER_FACILITY),
        Store(id="S3", name="Pop-up", facility_id=None),
    ]


@pytest.fixture
def two_product_config() -> StockConfig:
    return StockConfig(
        catalog=ProductCatalog(
            products=[
                ProductDefinition(key="chicken", label="Chicken Momos"),
                ProductDefinition(key="veg", label="Veg Momos"),
            ]
        )
    )
