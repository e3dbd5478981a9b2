"""
CLI Configuration

Configuration management for the PixelPack CLI.
Supports JSON or YAML configuration files and environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.config import RuntimeConfig


# Environment variable prefix
ENV_PREFIX = "PIXELPACK_"

_CLI_KEYS = ("log_level", "log_file", "default_output_format")


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Output
    default_output_format: str = "human"  # "human" or "json"

    # Pipeline settings (networks, confirmations, oracle waits, ...)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


def _read_file(path: Path) -> dict[str, Any]:
    with open(path, "r") as f:
        if path.suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def load_config_from_file(path: Path) -> CLIConfig:
    """Load configuration from a JSON or YAML file."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = _read_file(path)
    config = CLIConfig()

    config.log_level = data.get("log_level", config.log_level)
    config.log_file = data.get("log_file", config.log_file)
    config.default_output_format = data.get("default_output_format", config.default_output_format)

    runtime_data = {k: v for k, v in data.items() if k not in _CLI_KEYS}
    config.runtime = RuntimeConfig.from_dict(runtime_data)
    return config


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to config file

    Returns:
        Merged configuration
    """
    # Start with defaults
    config = CLIConfig()

    if config_path is not None:
        config = load_config_from_file(config_path)
    else:
        default_paths = [
            Path.cwd() / "pixelpack.json",
            Path.cwd() / "pixelpack.yaml",
            Path.home() / ".config" / "pixelpack" / "config.json",
        ]
        for default_path in default_paths:
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    # Override with environment variables
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO")
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = os.getenv(f"{ENV_PREFIX}LOG_FILE")
    if os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT"):
        config.default_output_format = os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT", "human")

    config.runtime = config.runtime.with_env_overrides()
    return config


def get_default_config_template() -> str:
    """Get a template configuration file."""
    data: dict[str, Any] = {
        "log_level": "INFO",
        "log_file": None,
        "default_output_format": "human",
    }
    data.update(RuntimeConfig().to_dict())
    return json.dumps(data, indent=2) + "\n"
