"""
Module 01 - Schemas
File: chain.py

Purpose: Transport types exchanged with the chain client collaborator.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Transaction(BaseModel):
    """
    A state-changing call to submit.

    ``to=None`` together with ``contract`` describes a deployment.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sender: str = Field(..., description="Account the transaction is sent from")
    to: Optional[str] = Field(default=None, description="Target contract address")
    method: Optional[str] = Field(default=None, description="Method name for calls")
    args: list[Any] = Field(default_factory=list)
    contract: Optional[str] = Field(
        default=None,
        description="Contract name for deployments",
    )

    @property
    def is_deployment(self) -> bool:
        return self.to is None

    @classmethod
    def deploy(cls, sender: str, contract: str, args: Optional[list[Any]] = None) -> "Transaction":
        return cls(sender=sender, contract=contract, args=list(args or []))

    @classmethod
    def call(cls, sender: str, to: str, method: str, args: Optional[list[Any]] = None) -> "Transaction":
        return cls(sender=sender, to=to, method=method, args=list(args or []))


class TxHandle(BaseModel):
    """Reference to a submitted, possibly unconfirmed, transaction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tx_hash: str
    transaction: Transaction


class Event(BaseModel):
    """
    A decoded entry of a transaction's effect log.

    Fields are looked up by event name and argument name, never by
    position in the log.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str = Field(..., description="Emitting contract address")
    name: str = Field(..., description="Event name, e.g. 'RandomnessRequested'")
    args: dict[str, Any] = Field(default_factory=dict)
    log_index: int = Field(default=0, ge=0)
    block_number: int = Field(default=0, ge=0)
    tx_hash: Optional[str] = Field(default=None)


class TxReceipt(BaseModel):
    """Confirmed transaction outcome."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tx_hash: str
    status: int = Field(..., description="1 for success, 0 for revert")
    block_number: int = Field(..., ge=0)
    contract_address: Optional[str] = Field(default=None)
    events: list[Event] = Field(default_factory=list)
    revert_reason: Optional[str] = Field(default=None)

    @property
    def succeeded(self) -> bool:
        return self.status == 1
