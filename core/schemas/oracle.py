"""
Module 01 - Schemas
File: oracle.py

Purpose: State of a single randomness request/response cycle.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestStatus(str, Enum):
    """Lifecycle of a randomness request."""
    REQUESTED = "requested"
    FULFILLED = "fulfilled"
    TIMED_OUT = "timed_out"  # No fulfillment observed before the wait bound
    FAILED = "failed"


class PendingRequest(BaseModel):
    """
    A randomness request awaiting its oracle response.

    Created once the create transaction is confirmed; owned by the oracle
    workflow and discarded once terminal. Terminal means failed, or
    finalized (descriptor read back after a successful finalize).
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    request_id: str = Field(..., description="bytes32 id the oracle echoes back")
    token_id: int = Field(..., ge=0, description="Token created by the request")
    requested_at: datetime
    consumer: str = Field(..., description="Address of the requesting contract")
    block_number: int = Field(default=0, ge=0, description="Block the request was mined in")
    status: RequestStatus = Field(default=RequestStatus.REQUESTED)
    randomness: Optional[int] = Field(default=None)
    token_uri: Optional[str] = Field(default=None)
    finalize_attempts: int = Field(default=0, ge=0)

    @property
    def finalized(self) -> bool:
        return self.token_uri is not None

    @property
    def is_terminal(self) -> bool:
        return self.status == RequestStatus.FAILED or self.finalized

    def mark(self, status: RequestStatus) -> None:
        if self.is_terminal:
            raise ValueError(f"Request {self.request_id} is already terminal ({self.status.value})")
        self.status = status
