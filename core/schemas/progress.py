"""
Module 01 - Schemas
File: progress.py

Purpose: Structured progress events emitted while a pipeline runs.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProgressKind(str, Enum):
    STEP_STARTED = "step_started"
    STEP_COMPLETED = "step_completed"
    STEP_SKIPPED = "step_skipped"
    STEP_FAILED = "step_failed"
    REQUEST_ISSUED = "request_issued"
    REQUEST_FULFILLED = "request_fulfilled"
    FUNDING_SENT = "funding_sent"
    FINALIZED = "finalized"


class ProgressEvent(BaseModel):
    """One progress notification; rendering is left to subscribers."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ProgressKind
    network_id: str
    step: Optional[str] = None
    at: datetime
    data: dict[str, Any] = Field(default_factory=dict)
