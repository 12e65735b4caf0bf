"""Configuration models and loaders for the stock reconciliation engine."""

from .models import (
    DEFAULT_CATALOG,
    DEFAULT_STOCK_CONFIG,
    ApprovalInclusionPolicy,
    HealthThresholds,
    LoggingConfig,
    ProductCatalog,
    ProductDefinition,
    StockConfig,
)
from .settings import get_config_from_env, load_config, load_config_with_fallback

__all__ = [
    "DEFAULT_CATALOG",
    "DEFAULT_STOCK_CONFIG",
    "ApprovalInclusionPolicy",
    "HealthThresholds",
    "LoggingConfig",
    "ProductCatalog",
    "ProductDefinition",
    "StockConfig",
    "get_config_from_env",
    "load_config",
    "load_config_with_fallback",
]
