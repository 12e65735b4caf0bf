"""
Configuration loading and management for the stock reconciliation engine.

Resolves a StockConfig from an explicit file, FACILITY_STOCK_* environment
variables, the conventional file locations, or the built-in defaults.
"""

import logging
import os
from pathlib import Path

from facility_stock.shared.exceptions import ConfigurationError

from .models import DEFAULT_STOCK_CONFIG, StockConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "FACILITY_STOCK_"


def load_config(
    config_path: str | Path | None = None, config_name: str = "stock_config.json"
) -> StockConfig:
    """
    Load configuration from file with path resolution.

    Args:
        config_path: Explicit path to config file or directory containing config
        config_name: Name of config file (default: "stock_config.json")

    Returns:
        StockConfig: Loaded and validated configuration

    Raises:
        FileNotFoundError: If no configuration file is found
        ConfigurationError: If configuration is invalid
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / config_name,
            Path.cwd() / "config" / config_name,
        ]

        for path in search_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError(
                f"Configuration file '{config_name}' not found in any of: "
                f"{[str(p) for p in search_paths]}"
            )

    config_path = Path(config_path)

    if config_path.is_dir():
        config_path = config_path / config_name

    return StockConfig.from_file(config_path)


def get_config_from_env() -> StockConfig | None:
    """
    Try to load configuration from environment variables.

    ``FACILITY_STOCK_CONFIG_FILE`` points at a JSON file; otherwise the
    individual ``FACILITY_STOCK_*`` variables override the defaults.

    Returns:
        StockConfig if environment variables are set, None otherwise
    """
    config_file_env = os.getenv(f"{ENV_PREFIX}CONFIG_FILE")
    if config_file_env:
        return load_config(config_file_env)

    env_vars = {
        f"{ENV_PREFIX}APPROVAL_POLICY": "approval_policy",
        f"{ENV_PREFIX}LOG_LEVEL": "logging.level",
        f"{ENV_PREFIX}HEALTH_EXCELLENT": "health.excellent",
        f"{ENV_PREFIX}HEALTH_GOOD": "health.good",
        f"{ENV_PREFIX}HEALTH_FAIR": "health.fair",
        f"{ENV_PREFIX}HEALTH_LOW": "health.low",
    }

    env_values = {key: os.getenv(key) for key in env_vars}
    if not any(env_values.values()):
        return None

    config_data = DEFAULT_STOCK_CONFIG.model_dump(mode="json")
    for env_key, dotted in env_vars.items():
        value = env_values[env_key]
        if value is None:
            continue
        section, _, field = dotted.rpartition(".")
        target = config_data[section] if section else config_data
        target[field] = value

    return StockConfig.from_dict(config_data)


def load_config_with_fallback(config_path: str | Path | None = None) -> StockConfig:
    """
    Load configuration with fallback to environment variables and defaults.

    Priority order:
    1. Explicit config file path
    2. Environment variable FACILITY_STOCK_CONFIG_FILE
    3. Individual FACILITY_STOCK_* environment variables
    4. Default locations (stock_config.json, config/stock_config.json)
    5. Built-in defaults

    Args:
        config_path: Optional explicit path to config file

    Returns:
        StockConfig: Loaded configuration
    """
    if config_path:
        try:
            return load_config(config_path)
        except FileNotFoundError:
            logger.warning(f"Configuration file {config_path} not found, falling back")

    try:
        env_config = get_config_from_env()
        if env_config:
            return env_config
    except (ConfigurationError, FileNotFoundError) as e:
        logger.warning(f"Ignoring invalid environment configuration: {e}")

    try:
        return load_config()
    except FileNotFoundError:
        pass

    logger.info("No configuration found, using built-in defaults")
    return DEFAULT_STOCK_CONFIG.model_copy(deep=True)
