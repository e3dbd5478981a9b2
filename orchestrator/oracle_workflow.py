"""
Oracle Request/Response Workflow

Drives one randomness request through issue, fulfillment and finalize.

- Issue: send the create transaction, then read the request id and the
  token id from the named fields of its request event.
- Fulfillment: on local networks, invoke the mock coordinator's callback
  directly; on live networks, watch the coordinator's fulfillment event
  until a bounded timeout and then proceed optimistically.
- Finalize: check that the token still correlates with the issued
  request id, then send the finalize transaction and read the token's
  descriptor. On live networks a rejected finalize is retried after a
  delay, since fulfillment may simply not have landed yet.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.chain.events import event_field, find_event
from core.config import OracleSettings
from core.schemas.artifacts import Artifact
from core.schemas.chain import Transaction
from core.schemas.errors import (
    FinalizeRejectedException,
    IssueFailedException,
    TransactionException,
    TransactionRevertedException,
)
from core.schemas.network import EnvironmentConfig
from core.schemas.oracle import PendingRequest, RequestStatus

from orchestrator.context import StepContext


logger = logging.getLogger(__name__)


CREATE_METHOD = "generatePixelPack"
FINALIZE_METHOD = "finishMint"
CALLBACK_METHOD = "callBackWithRandomness"
REQUEST_EVENT = "RandomnessRequested"
FULFILLED_EVENT = "RandomnessRequestFulfilled"


class OracleWorkflow:
    """
    Randomness request/response workflow.

    Usage:
        workflow = OracleWorkflow(config.oracle, poll_interval_s=2.0)
        pending = workflow.run(factory_artifact, env, ctx)
        print(pending.token_uri)
    """

    def __init__(
        self,
        settings: Optional[OracleSettings] = None,
        *,
        poll_interval_s: float = 2.0,
    ) -> None:
        self.settings = settings or OracleSettings()
        self.poll_interval_s = poll_interval_s

    def run(self, consumer: Artifact, env: EnvironmentConfig, ctx: StepContext) -> PendingRequest:
        """Issue a request, await its fulfillment and finalize it."""
        pending = self.issue(consumer, ctx)
        self.await_fulfillment(pending, env, ctx)
        attempts = 1 if ctx.network.is_local else self.settings.finalize_retries
        self.finalize_with_retry(pending, ctx, attempts=attempts)
        return pending

    # -------------------------------------------------------------------------
    # Phase 1: issue
    # -------------------------------------------------------------------------

    def issue(self, consumer: Artifact, ctx: StepContext) -> PendingRequest:
        """
        Send the create transaction and correlate its request.

        Raises:
            IssueFailedException: The transaction reverted or never confirmed
            MalformedEffectLogException: The request event or a named field is absent
        """
        logger.info("Generating Pixel Pack...")
        tx = Transaction.call(ctx.deployer, consumer.address, CREATE_METHOD)
        try:
            receipt = ctx.transact(tx)
        except TransactionException as e:
            raise IssueFailedException(
                f"{CREATE_METHOD} failed: {e.message}",
                details={"code": e.code, **e.details},
            ) from e

        event = find_event(ctx.client.read_effect_log(receipt), REQUEST_EVENT, consumer.address)
        request_id = event_field(event, "requestId")
        token_id = int(event_field(event, "tokenId"))

        pending = PendingRequest(
            request_id=str(request_id),
            token_id=token_id,
            requested_at=ctx.clock.now(),
            consumer=consumer.address,
            block_number=receipt.block_number,
        )
        ctx.reporter.request_issued(ctx.network.id, ctx.step, pending.request_id, token_id)
        return pending

    # -------------------------------------------------------------------------
    # Phase 2: await fulfillment
    # -------------------------------------------------------------------------

    def await_fulfillment(
        self,
        pending: PendingRequest,
        env: EnvironmentConfig,
        ctx: StepContext,
    ) -> bool:
        """
        Wait for the oracle response.

        Returns:
            True if fulfillment was observed, False if the wait timed out
            and finalize will proceed optimistically
        """
        env.require("oracle_service_address")
        coordinator = env.oracle_service_address
        logger.info("Awaiting response from ChainLink VRF")

        if ctx.network.is_local:
            self._fulfill_locally(pending, coordinator, ctx)
            return True
        return self._wait_for_fulfillment(pending, coordinator, ctx)

    def _fulfill_locally(self, pending: PendingRequest, coordinator: str, ctx: StepContext) -> None:
        logger.info("Detected local chain configuration.")
        logger.info("Mocking VRFCoordinator random number and callback...")
        randomness = ctx.rng.randrange(self.settings.randomness_upper_bound)
        ctx.transact(
            Transaction.call(
                ctx.deployer,
                coordinator,
                CALLBACK_METHOD,
                [pending.request_id, randomness, pending.consumer],
            )
        )
        pending.randomness = randomness
        pending.mark(RequestStatus.FULFILLED)
        logger.info("Random number mock completed.")
        ctx.reporter.request_fulfilled(ctx.network.id, ctx.step, pending.request_id, observed=True)

    def _wait_for_fulfillment(
        self,
        pending: PendingRequest,
        coordinator: str,
        ctx: StepContext,
    ) -> bool:
        clock = ctx.clock
        timeout = self.settings.fulfillment_timeout_s
        deadline = clock.monotonic() + timeout

        while True:
            for event in ctx.client.get_events(coordinator, FULFILLED_EVENT, pending.block_number):
                if event.args.get("requestId") == pending.request_id:
                    pending.randomness = event.args.get("output")
                    pending.mark(RequestStatus.FULFILLED)
                    ctx.reporter.request_fulfilled(
                        ctx.network.id, ctx.step, pending.request_id, observed=True,
                    )
                    return True

            remaining = deadline - clock.monotonic()
            if remaining <= 0:
                break
            clock.sleep(min(self.poll_interval_s, remaining))

        logger.warning("No fulfillment for %s within %ss", pending.request_id, timeout)
        pending.mark(RequestStatus.TIMED_OUT)
        ctx.reporter.request_fulfilled(ctx.network.id, ctx.step, pending.request_id, observed=False)
        return False

    # -------------------------------------------------------------------------
    # Phase 3: finalize
    # -------------------------------------------------------------------------

    def finalize(self, pending: PendingRequest, ctx: StepContext) -> str:
        """
        Send the finalize transaction for a correlated request.

        Returns:
            The token's descriptor (metadata URI)

        Raises:
            FinalizeRejectedException: Correlation mismatch or a confirmed
                mint with no descriptor (not retryable), or the transaction
                reverted (retryable)
        """
        if pending.is_terminal:
            raise ValueError(f"Request {pending.request_id} is already terminal")

        pending.finalize_attempts += 1
        client = ctx.client

        onchain_request = client.call_static(pending.consumer, "requestIdForToken", [pending.token_id])
        if onchain_request != pending.request_id:
            pending.mark(RequestStatus.FAILED)
            raise FinalizeRejectedException(
                f"Token {pending.token_id} belongs to request {onchain_request}, "
                f"not {pending.request_id}",
                details={
                    "token_id": pending.token_id,
                    "expected_request_id": pending.request_id,
                    "onchain_request_id": onchain_request,
                },
                retryable=False,
            )

        logger.info("Finishing NFT Mint...")
        tx = Transaction.call(ctx.deployer, pending.consumer, FINALIZE_METHOD, [pending.token_id])
        try:
            ctx.transact(tx)
        except TransactionRevertedException as e:
            raise FinalizeRejectedException(
                f"{FINALIZE_METHOD}({pending.token_id}) rejected: {e.message}",
                details={"token_id": pending.token_id, "tx_hash": e.tx_hash},
            ) from e

        # finishMint is confirmed from here on and must not be sent again
        token_uri = client.call_static(pending.consumer, "tokenURI", [pending.token_id])
        if not token_uri:
            raise FinalizeRejectedException(
                f"Token {pending.token_id} has no descriptor after finalize",
                details={"token_id": pending.token_id, "minted": True},
                retryable=False,
            )

        if pending.status != RequestStatus.FULFILLED:
            pending.mark(RequestStatus.FULFILLED)
        pending.token_uri = token_uri
        ctx.reporter.finalized(ctx.network.id, ctx.step, pending.token_id, token_uri)
        return token_uri

    def finalize_with_retry(
        self,
        pending: PendingRequest,
        ctx: StepContext,
        *,
        attempts: Optional[int] = None,
    ) -> str:
        """
        Finalize, re-trying retryable rejections after a delay.

        Raises:
            FinalizeRejectedException: When attempts are exhausted or the
                rejection is not retryable; the request is then failed
        """
        attempts = max(1, attempts if attempts is not None else self.settings.finalize_retries)
        delay = self.settings.finalize_retry_delay_s

        for attempt in range(1, attempts + 1):
            try:
                return self.finalize(pending, ctx)
            except FinalizeRejectedException as e:
                if not e.retryable or attempt == attempts:
                    if not pending.is_terminal:
                        pending.mark(RequestStatus.FAILED)
                    raise
                logger.warning(
                    "Finalize attempt %d/%d rejected (%s); retrying in %ss",
                    attempt, attempts, e.message, delay,
                )
                ctx.clock.sleep(delay)

        raise AssertionError("unreachable")
