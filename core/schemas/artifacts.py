"""
Module 01 - Schemas
File: artifacts.py

Purpose: Deployment records produced by pipeline steps.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Artifact(BaseModel):
    """
    A recorded deployment result.

    Keyed by (name, network); at most one artifact exists per key.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Deployed unit name, e.g. 'LinkToken'")
    address: str = Field(..., min_length=1, description="Contract address")
    network: str = Field(..., min_length=1, description="Chain id the unit lives on")
    args: list[Any] = Field(
        default_factory=list,
        description="Constructor arguments the unit was deployed with",
    )
    transaction_hash: Optional[str] = Field(default=None)
    block_number: Optional[int] = Field(default=None, ge=0)
    deployed_at: Optional[datetime] = Field(default=None)

    @property
    def key(self) -> tuple[str, str]:
        return (self.network, self.name)

    def same_deployment(self, args: list[Any]) -> bool:
        """True when re-deploying with ``args`` would produce this artifact."""
        return list(self.args) == list(args)
