"""
Configuration models for the facility stock reconciliation engine.

The product catalog, the approval inclusion policy and the health bands
are configuration, not code: adding a product or moving a threshold never
requires touching the engine.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from facility_stock.shared.exceptions import ConfigurationError, UnknownProductError
from facility_stock.shared.logging_config import LOG_LEVELS
from facility_stock.shared.models import ApprovalStatus

logger = logging.getLogger(__name__)


class ProductDefinition(BaseModel):
    """One finished product of the catalog."""

    key: str = Field(
        ...,
        min_length=1,
        pattern=r"^[a-z][a-z0-9_]*$",
        description="Stable product key used in quantity maps",
    )
    label: str = Field("", description="Display label")
    source_field: str | None = Field(
        None,
        description="Per-product field of legacy backend rows (e.g. chickenMomos)",
    )

    @model_validator(mode="after")
    def default_label(self) -> "ProductDefinition":
        if not self.label:
            self.label = self.key.replace("_", " ").title()
        return self


class ProductCatalog(BaseModel):
    """Ordered, extensible list of the products a facility can yield."""

    products: list[ProductDefinition] = Field(
        ..., min_length=1, description="Catalog entries in display order"
    )

    @field_validator("products")
    @classmethod
    def validate_unique_keys(
        cls, v: list[ProductDefinition]
    ) -> list[ProductDefinition]:
        seen: set[str] = set()
        duplicates: list[str] = []
        for product in v:
            if product.key in seen:
                duplicates.append(product.key)
            seen.add(product.key)
        if duplicates:
            raise ValueError(f"Duplicate product keys in catalog: {duplicates}")
        return v

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(p.key for p in self.products)

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def __len__(self) -> int:
        return len(self.products)

    def label_for(self, key: str) -> str:
        for product in self.products:
            if product.key == key:
                return product.label
        raise UnknownProductError(key, list(self.keys))


class ApprovalInclusionPolicy(str, Enum):
    """Which production records count towards produced quantities.

    INCLUDE_ALL is the historical behaviour: approval status is informational
    and every record counts. The approval counter is unaffected by the policy.
    """

    INCLUDE_ALL = "include_all"
    APPROVED_ONLY = "approved_only"
    EXCLUDE_REJECTED = "exclude_rejected"

    def admits(self, status: ApprovalStatus | None) -> bool:
        """Whether a record with ``status`` counts; records without one are never approved."""
        if self is ApprovalInclusionPolicy.APPROVED_ONLY:
            return status is ApprovalStatus.APPROVED
        if self is ApprovalInclusionPolicy.EXCLUDE_REJECTED:
            return status is not ApprovalStatus.REJECTED
        return True


class HealthThresholds(BaseModel):
    """Inclusive lower bounds (percent remaining) of each health band."""

    excellent: float = Field(80.0, ge=0, le=100)
    good: float = Field(60.0, ge=0, le=100)
    fair: float = Field(40.0, ge=0, le=100)
    low: float = Field(20.0, ge=0, le=100)

    @model_validator(mode="after")
    def validate_descending(self) -> "HealthThresholds":
        if not (self.excellent >= self.good >= self.fair >= self.low):
            raise ValueError(
                "Health thresholds must satisfy excellent >= good >= fair >= low"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging settings for the orchestration layer."""

    level: str = Field("INFO", description="Root log level")
    report_data_quality: bool = Field(
        True,
        description="Log a warning listing dispatches excluded for data-quality reasons",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level


class StockConfig(BaseModel):
    """Top level configuration for the stock reconciliation engine."""

    catalog: ProductCatalog = Field(
        default_factory=lambda: DEFAULT_CATALOG.model_copy(deep=True),
        description="Finished-product catalog",
    )
    approval_policy: ApprovalInclusionPolicy = Field(
        ApprovalInclusionPolicy.INCLUDE_ALL,
        description="Which production records count towards produced quantities",
    )
    health: HealthThresholds = Field(default_factory=HealthThresholds)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "StockConfig":
        """Create a ``StockConfig`` from a Python dictionary."""

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError("Invalid configuration", original_error=e)

    @classmethod
    def from_file(cls, file_path: str | Path) -> "StockConfig":
        """
        Load configuration from a JSON file.

        Args:
            file_path: Path to the configuration JSON file

        Returns:
            StockConfig instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigurationError: If the JSON is invalid or doesn't match the schema
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError("Invalid JSON", config_path=path, original_error=e)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                "Schema validation failed", config_path=path, original_error=e
            )

    def to_file(self, file_path: str | Path) -> None:
        """Save configuration to a JSON file."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)


DEFAULT_CATALOG = ProductCatalog(
    products=[
        ProductDefinition(
            key="chicken",
            label="Chicken Momos",
            source_field="chickenMomos",
        ),
        ProductDefinition(
            key="chicken_cheese",
            label="Chicken Cheese Momos",
            source_field="chickenCheeseMomos",
        ),
        ProductDefinition(
            key="veg",
            label="Veg Momos",
            source_field="vegMomos",
        ),
        ProductDefinition(
            key="cheese_corn",
            label="Cheese Corn Momos",
            source_field="cheeseCornMomos",
        ),
        ProductDefinition(
            key="paneer",
            label="Paneer Momos",
            source_field="paneerMomos",
        ),
        ProductDefinition(
            key="veg_kurkure",
            label="Veg Kurkure Momos",
            source_field="vegKurkureMomos",
        ),
        ProductDefinition(
            key="chicken_kurkure",
            label="Chicken Kurkure Momos",
            source_field="chickenKurkureMomos",
        ),
    ]
)
"""The seven finished products of the momo production houses."""

DEFAULT_STOCK_CONFIG = StockConfig()
"""A ready-to-use default configuration."""
