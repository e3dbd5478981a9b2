"""
Funding Orchestrator

Sends the configured amount of the fee token from the deployer to a
deployed contract so it can pay for oracle requests.

Re-running against an already-funded target sends the amount again
unless FundingSettings.skip_if_funded is set.
"""

from __future__ import annotations

import logging

from core.config import FundingSettings
from core.schemas.artifacts import Artifact
from core.schemas.chain import Transaction
from core.schemas.errors import (
    ConfirmationTimeoutException,
    FundingException,
    InsufficientBalanceException,
    TransactionRevertedException,
    TransferNotConfirmedException,
)
from core.schemas.network import EnvironmentConfig

from orchestrator.context import StepContext


logger = logging.getLogger(__name__)


class FundingOrchestrator:
    """
    Transfers the per-network fund amount to a target artifact.

    Usage:
        funder = FundingOrchestrator(config.funding)
        sent = funder.fund(factory_artifact, env, ctx)
    """

    def __init__(self, settings: FundingSettings | None = None) -> None:
        self.settings = settings or FundingSettings()

    def fund(self, target: Artifact, env: EnvironmentConfig, ctx: StepContext) -> int:
        """
        Fund ``target`` with ``env.fund_amount`` of the funding token.

        Args:
            target: Artifact whose address receives the funds
            env: Resolved environment; must carry the token address and amount
            ctx: Run context

        Returns:
            Amount sent (0 when skipped because the target is already funded)

        Raises:
            MissingConfigFieldException: Token address or amount unresolved
            InsufficientBalanceException: Deployer holds less than the amount
            TransferNotConfirmedException: Transfer never reached confirmation depth
            FundingException: Transfer rejected for another reason
        """
        env.require("funding_token_address", "fund_amount")
        token = env.funding_token_address
        amount = env.fund_amount
        client = ctx.client

        logger.info("Funding %s with LINK...", target.name)

        if self.settings.skip_if_funded:
            current = int(client.call_static(token, "balanceOf", [target.address]))
            if current >= amount:
                logger.info(
                    "%s already holds %d (>= %d); not funding again",
                    target.name, current, amount,
                )
                return 0

        balance = int(client.call_static(token, "balanceOf", [ctx.deployer]))
        if balance < amount:
            raise InsufficientBalanceException(balance, amount, ctx.deployer)

        tx = Transaction.call(ctx.deployer, token, "transfer", [target.address, amount])
        try:
            ctx.transact(tx)
        except ConfirmationTimeoutException as e:
            raise TransferNotConfirmedException(
                f"Funding transfer to {target.address} was not confirmed",
                details={"tx_hash": e.tx_hash, "amount": str(amount)},
            ) from e
        except TransactionRevertedException as e:
            raise FundingException(
                f"Funding transfer to {target.address} was rejected: {e.message}",
                details={"tx_hash": e.tx_hash, "amount": str(amount)},
            ) from e

        ctx.reporter.funding_sent(ctx.network.id, ctx.step, amount, target.address)
        logger.info("Funded contract with configured LINK amount")
        return amount
