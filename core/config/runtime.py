"""
Runtime Configuration

Central configuration for pipeline execution: the static per-network
table, transaction confirmation policy, oracle wait policy and factory
constructor parameters.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_NETWORK_KEY = "default"

# Chainlink VRF v1 job key and fee shared by every configured network.
_KEY_HASH = "0x2ed0feb3e7fd2022120aa84fab1945545a9f2ffc9076fd6156fa96eaff4c1311"
_FEE = 100_000_000_000_000_000  # 0.1 LINK
_FUND_AMOUNT = 1_000_000_000_000_000_000  # 1 LINK


@dataclass
class NetworkEntry:
    """Static configuration for one network id."""
    name: str
    key_hash: Optional[str] = _KEY_HASH
    fee: Optional[int] = _FEE
    fund_amount: Optional[int] = _FUND_AMOUNT
    link_token: Optional[str] = None
    vrf_coordinator: Optional[str] = None
    rpc_url: Optional[str] = None

    def __post_init__(self):
        # YAML/JSON files commonly carry uint256 values as strings
        if isinstance(self.fee, str):
            self.fee = int(self.fee)
        if isinstance(self.fund_amount, str):
            self.fund_amount = int(self.fund_amount)
        if self.rpc_url is None:
            self.rpc_url = os.getenv(f"{self.name.upper()}_RPC_URL")


def _default_entries() -> dict[str, NetworkEntry]:
    return {
        DEFAULT_NETWORK_KEY: NetworkEntry(name="hardhat"),
        "31337": NetworkEntry(name="localhost"),
        "4": NetworkEntry(
            name="rinkeby",
            link_token="0x01BE23585060835E02B77ef475b0Cc51aA1e0709",
            vrf_coordinator="0xb3dCcb4Cf7a26f6cf6B120Cf5A73875B7BBc655B",
        ),
    }


@dataclass
class NetworkTable:
    """
    Static per-network parameters keyed by chain id.

    The ``default`` entry supplies parameters for chains with no entry of
    their own; it is never returned by name lookup.
    """
    entries: dict[str, NetworkEntry] = field(default_factory=_default_entries)
    development_chains: list[str] = field(
        default_factory=lambda: ["hardhat", "localhost"]
    )

    def get(self, network_id: str) -> Optional[NetworkEntry]:
        if network_id == DEFAULT_NETWORK_KEY:
            return None
        return self.entries.get(network_id)

    @property
    def default(self) -> NetworkEntry:
        return self.entries.get(DEFAULT_NETWORK_KEY) or NetworkEntry(name="hardhat")

    def network_id_for_name(self, name: str) -> Optional[str]:
        for network_id, entry in self.entries.items():
            if network_id != DEFAULT_NETWORK_KEY and entry.name == name:
                return network_id
        return None

    def fund_amount_for(self, network_id: str) -> int:
        """Funding amount for a chain id, falling back to the default entry."""
        entry = self.get(network_id)
        if entry is not None and entry.fund_amount is not None:
            return entry.fund_amount
        return self.default.fund_amount or _FUND_AMOUNT

    def names(self) -> list[str]:
        return [e.name for k, e in self.entries.items() if k != DEFAULT_NETWORK_KEY]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NetworkTable":
        entries = _default_entries()
        for network_id, entry_data in (data.get("entries") or {}).items():
            entries[str(network_id)] = NetworkEntry(**entry_data)
        table = cls(entries=entries)
        if data.get("development_chains"):
            table.development_chains = list(data["development_chains"])
        return table


@dataclass
class ChainSettings:
    """Transaction confirmation policy."""
    confirmations: int = 1
    confirmation_timeout_s: float = 120.0
    poll_interval_s: float = 2.0


@dataclass
class OracleSettings:
    """Randomness request/response wait policy."""
    fulfillment_timeout_s: float = 180.0
    finalize_retries: int = 3
    finalize_retry_delay_s: float = 30.0
    randomness_upper_bound: int = 100_000


@dataclass
class FundingSettings:
    """Funding step behavior."""
    skip_if_funded: bool = False  # When set, an already-funded target is not re-funded


@dataclass
class FactorySettings:
    """PixelPackFactory constructor parameters."""
    # dark aura, light aura, dark stroke, light stroke, corrupt, noble
    attribute_odds: list[int] = field(
        default_factory=lambda: [1, 1, 1, 1, 1000, 1000]
    )


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for a deployment run.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    networks: NetworkTable = field(default_factory=NetworkTable)
    chain: ChainSettings = field(default_factory=ChainSettings)
    oracle: OracleSettings = field(default_factory=OracleSettings)
    funding: FundingSettings = field(default_factory=FundingSettings)
    factory: FactorySettings = field(default_factory=FactorySettings)
    deployments_dir: str = "deployments"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - PIXELPACK_CONFIRMATIONS: confirmation depth per transaction
        - PIXELPACK_CONFIRMATION_TIMEOUT: seconds to wait for confirmations
        - PIXELPACK_POLL_INTERVAL: seconds between chain polls
        - PIXELPACK_FULFILLMENT_TIMEOUT: upper bound on the live oracle wait
        - PIXELPACK_FINALIZE_RETRIES: finalize attempts on live networks
        - PIXELPACK_SKIP_IF_FUNDED: skip funding already-funded targets (true/false)
        - PIXELPACK_DEPLOYMENTS_DIR: artifact persistence directory
        """
        overrides: dict[str, Any] = {}

        if os.getenv("PIXELPACK_CONFIRMATIONS"):
            overrides.setdefault("chain", {})["confirmations"] = int(
                os.getenv("PIXELPACK_CONFIRMATIONS", "1")
            )
        if os.getenv("PIXELPACK_CONFIRMATION_TIMEOUT"):
            overrides.setdefault("chain", {})["confirmation_timeout_s"] = float(
                os.getenv("PIXELPACK_CONFIRMATION_TIMEOUT", "120")
            )
        if os.getenv("PIXELPACK_POLL_INTERVAL"):
            overrides.setdefault("chain", {})["poll_interval_s"] = float(
                os.getenv("PIXELPACK_POLL_INTERVAL", "2")
            )

        if os.getenv("PIXELPACK_FULFILLMENT_TIMEOUT"):
            overrides.setdefault("oracle", {})["fulfillment_timeout_s"] = float(
                os.getenv("PIXELPACK_FULFILLMENT_TIMEOUT", "180")
            )
        if os.getenv("PIXELPACK_FINALIZE_RETRIES"):
            overrides.setdefault("oracle", {})["finalize_retries"] = int(
                os.getenv("PIXELPACK_FINALIZE_RETRIES", "3")
            )

        if os.getenv("PIXELPACK_SKIP_IF_FUNDED"):
            overrides.setdefault("funding", {})["skip_if_funded"] = (
                os.getenv("PIXELPACK_SKIP_IF_FUNDED", "false").lower() == "true"
            )

        if os.getenv("PIXELPACK_DEPLOYMENTS_DIR"):
            overrides["deployments_dir"] = os.getenv("PIXELPACK_DEPLOYMENTS_DIR")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Load configuration purely from environment variables."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        networks_data = data.get("networks", {})
        chain_data = data.get("chain", {})
        oracle_data = data.get("oracle", {})
        funding_data = data.get("funding", {})
        factory_data = data.get("factory", {})

        networks = NetworkTable.from_dict(networks_data) if networks_data else NetworkTable()
        chain = ChainSettings(**chain_data) if chain_data else ChainSettings()
        oracle = OracleSettings(**oracle_data) if oracle_data else OracleSettings()
        funding = FundingSettings(**funding_data) if funding_data else FundingSettings()
        factory = FactorySettings(**factory_data) if factory_data else FactorySettings()

        return cls(
            networks=networks,
            chain=chain,
            oracle=oracle,
            funding=funding,
            factory=factory,
            deployments_dir=data.get("deployments_dir", "deployments"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        Allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section in ("chain", "oracle", "funding"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)
        if "deployments_dir" in overrides:
            new_config.deployments_dir = overrides["deployments_dir"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "networks": {
                "development_chains": list(self.networks.development_chains),
                "entries": {
                    network_id: {
                        "name": entry.name,
                        "key_hash": entry.key_hash,
                        "fee": str(entry.fee) if entry.fee is not None else None,
                        "fund_amount": (
                            str(entry.fund_amount) if entry.fund_amount is not None else None
                        ),
                        "link_token": entry.link_token,
                        "vrf_coordinator": entry.vrf_coordinator,
                    }
                    for network_id, entry in self.networks.entries.items()
                },
            },
            "chain": {
                "confirmations": self.chain.confirmations,
                "confirmation_timeout_s": self.chain.confirmation_timeout_s,
                "poll_interval_s": self.chain.poll_interval_s,
            },
            "oracle": {
                "fulfillment_timeout_s": self.oracle.fulfillment_timeout_s,
                "finalize_retries": self.oracle.finalize_retries,
                "finalize_retry_delay_s": self.oracle.finalize_retry_delay_s,
                "randomness_upper_bound": self.oracle.randomness_upper_bound,
            },
            "funding": {"skip_if_funded": self.funding.skip_if_funded},
            "factory": {"attribute_odds": list(self.factory.attribute_odds)},
            "deployments_dir": self.deployments_dir,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
