"""
Progress Reporter

Emits structured progress events while a pipeline runs. Every event is
logged and kept in order; subscribers decide how to render them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from core.schemas.artifacts import Artifact
from core.schemas.errors import DeployError
from core.schemas.progress import ProgressEvent, ProgressKind

from orchestrator.context import Clock, RealClock


logger = logging.getLogger(__name__)


Subscriber = Callable[[ProgressEvent], None]


class ProgressReporter:
    """
    Collects progress events for one or more runs.

    Usage:
        reporter = ProgressReporter()
        reporter.subscribe(lambda event: print(event.kind.value))
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock or RealClock()
        self._events: list[ProgressEvent] = []
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    @property
    def events(self) -> list[ProgressEvent]:
        return list(self._events)

    def of_kind(self, kind: ProgressKind) -> list[ProgressEvent]:
        return [e for e in self._events if e.kind == kind]

    def emit(
        self,
        kind: ProgressKind,
        network_id: str,
        step: Optional[str] = None,
        **data: Any,
    ) -> ProgressEvent:
        event = ProgressEvent(
            kind=kind,
            network_id=network_id,
            step=step,
            at=self.clock.now(),
            data=data,
        )
        self._events.append(event)
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except (ValueError, RuntimeError, OSError, TypeError):
                logger.exception("Progress subscriber failed: %r", subscriber)
        return event

    # -------------------------------------------------------------------------
    # Named events
    # -------------------------------------------------------------------------

    def step_started(self, network_id: str, step: str) -> None:
        logger.info("---------------------------------------------------------------------")
        logger.info("[%s] started on network %s", step, network_id)
        self.emit(ProgressKind.STEP_STARTED, network_id, step)

    def step_completed(self, network_id: str, step: str, artifacts: list[Artifact]) -> None:
        for artifact in artifacts:
            logger.info("[%s] %s at %s", step, artifact.name, artifact.address)
        logger.info("[%s] completed", step)
        self.emit(
            ProgressKind.STEP_COMPLETED, network_id, step,
            artifacts=[a.model_dump(mode="json", exclude_none=True) for a in artifacts],
        )

    def step_skipped(self, network_id: str, step: str, reason: str) -> None:
        logger.info("[%s] skipped: %s", step, reason)
        self.emit(ProgressKind.STEP_SKIPPED, network_id, step, reason=reason)

    def step_failed(self, network_id: str, step: str, error: DeployError) -> None:
        logger.error("[%s] failed: %s (%s)", step, error.message, error.code)
        self.emit(ProgressKind.STEP_FAILED, network_id, step, error=error.model_dump(mode="json"))

    def request_issued(self, network_id: str, step: str, request_id: str, token_id: int) -> None:
        logger.info("NFT created with token number %d (request %s)", token_id, request_id)
        self.emit(
            ProgressKind.REQUEST_ISSUED, network_id, step,
            request_id=request_id, token_id=token_id,
        )

    def request_fulfilled(self, network_id: str, step: str, request_id: str, observed: bool) -> None:
        if observed:
            logger.info("Randomness fulfilled for request %s", request_id)
        else:
            logger.warning(
                "No fulfillment observed for request %s; finalizing optimistically", request_id
            )
        self.emit(
            ProgressKind.REQUEST_FULFILLED, network_id, step,
            request_id=request_id, observed=observed,
        )

    def funding_sent(self, network_id: str, step: str, amount: int, target: str) -> None:
        logger.info("Funded %s with %d LINK wei", target, amount)
        self.emit(ProgressKind.FUNDING_SENT, network_id, step, amount=str(amount), target=target)

    def finalized(self, network_id: str, step: str, token_id: int, token_uri: str) -> None:
        logger.info("NFT Minting Complete. You may view the tokenURI here: %s", token_uri)
        self.emit(
            ProgressKind.FINALIZED, network_id, step,
            token_id=token_id, token_uri=token_uri,
        )
