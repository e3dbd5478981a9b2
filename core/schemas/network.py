"""
Module 01 - Schemas
File: network.py

Purpose: Target-network identity and the per-network environment
parameters consumed by deployment steps.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import MissingConfigFieldException, UnknownNetworkException


LOCAL_CHAIN_ID = "31337"


class NetworkContext(BaseModel):
    """
    Identifies the target chain for one pipeline run.

    Immutable for the duration of the run and passed explicitly to every
    component that needs it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., description="Chain id as a decimal string", min_length=1)
    name: str = Field(..., description="Network name (e.g. 'localhost', 'rinkeby')")
    is_local: bool = Field(
        default=False,
        description="True for in-process or development chains with mocked dependencies",
    )

    @classmethod
    def from_name(
        cls,
        name: str,
        table: Any,
        chain_id: Optional[str] = None,
    ) -> "NetworkContext":
        """
        Build a context from a network name using the static network table.

        Development chains (``table.development_chains``) and the local
        chain id are local. A live name with no table entry and no explicit
        ``chain_id`` raises UnknownNetworkException.
        """
        network_id = chain_id or table.network_id_for_name(name)
        is_local = name in table.development_chains or network_id == LOCAL_CHAIN_ID
        if network_id is None:
            if not is_local:
                raise UnknownNetworkException(name)
            network_id = LOCAL_CHAIN_ID
        return cls(id=str(network_id), name=name, is_local=is_local)


class EnvironmentConfig(BaseModel):
    """
    Resolved environment parameters for one network.

    On local networks the address fields come from just-deployed mock
    artifacts; on live networks they come from the static network table.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    network_id: str
    funding_token_address: Optional[str] = Field(
        default=None,
        description="ERC-677 token used to pay the oracle fee (LINK)",
    )
    oracle_service_address: Optional[str] = Field(
        default=None,
        description="Randomness oracle coordinator address",
    )
    callback_key: Optional[str] = Field(
        default=None,
        description="bytes32 key hash identifying the oracle job",
    )
    request_fee: Optional[int] = Field(default=None, ge=0)
    fund_amount: Optional[int] = Field(default=None, ge=0)

    def require(self, *field_names: str) -> None:
        """Raise MissingConfigFieldException for the first unset field."""
        for name in field_names:
            if getattr(self, name) is None:
                raise MissingConfigFieldException(name, self.network_id)
