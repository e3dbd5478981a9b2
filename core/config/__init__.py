"""
Runtime Configuration Module

Provides configuration loading and management for deployment runs.
"""

from .runtime import (
    DEFAULT_NETWORK_KEY,
    ChainSettings,
    FactorySettings,
    FundingSettings,
    NetworkEntry,
    NetworkTable,
    OracleSettings,
    RuntimeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "DEFAULT_NETWORK_KEY",
    "ChainSettings",
    "FactorySettings",
    "FundingSettings",
    "NetworkEntry",
    "NetworkTable",
    "OracleSettings",
    "RuntimeConfig",
    "get_default_config",
    "set_default_config",
]
