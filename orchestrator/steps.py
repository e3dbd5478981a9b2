"""
Deployment Steps

The concrete step actions and their registration.

Declared order:
    1. mocks               LinkToken + VRFCoordinatorMock (local networks only)
    2. pixel_pack_factory  PixelPackFactory(vrf, link, keyHash, fee, odds)
    3. fund_with_link      fund the factory with LINK
    4. create_pixel_pack   request randomness, await it, finish the mint
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.config import RuntimeConfig
from core.schemas.artifacts import Artifact
from core.schemas.chain import Transaction
from core.schemas.errors import TransactionException
from core.schemas.network import EnvironmentConfig

from orchestrator.artifacts.store import ArtifactStore
from orchestrator.context import StepContext
from orchestrator.funding import FundingOrchestrator
from orchestrator.oracle_workflow import OracleWorkflow
from orchestrator.registry import RunMode, StepRegistry


logger = logging.getLogger(__name__)


LINK_TOKEN = "LinkToken"
VRF_COORDINATOR = "VRFCoordinatorMock"
PIXEL_PACK_FACTORY = "PixelPackFactory"


def deploy_contract(
    name: str,
    args: list[Any],
    store: ArtifactStore,
    ctx: StepContext,
) -> Artifact:
    """
    Deploy ``name`` unless an identical deployment is already recorded.

    An existing artifact is reused when it was deployed with the same
    constructor args and its address still holds code. Otherwise the
    contract is deployed and the artifact overwritten. The artifact is
    saved as soon as the deployment confirms.
    """
    network_id = ctx.network.id
    existing = store.get(network_id, name)
    if existing is not None and existing.same_deployment(args):
        if ctx.client.get_code(existing.address):
            logger.info('reusing "%s" at %s', name, existing.address)
            return existing
        logger.info('"%s" at %s has no code on %s; redeploying', name, existing.address, ctx.network.name)

    receipt = ctx.transact(Transaction.deploy(ctx.deployer, name, args))
    if not receipt.contract_address:
        raise TransactionException(
            f"Deployment of {name} confirmed without a contract address",
            tx_hash=receipt.tx_hash,
        )

    artifact = Artifact(
        name=name,
        address=receipt.contract_address,
        network=network_id,
        args=list(args),
        transaction_hash=receipt.tx_hash,
        block_number=receipt.block_number,
        deployed_at=ctx.clock.now(),
    )
    store.save(artifact)
    logger.info('deployed "%s" (tx: %s) at %s', name, receipt.tx_hash, artifact.address)
    return artifact


def verify_hint(network_name: str, artifact: Artifact) -> str:
    args = " ".join(_format_arg(a) for a in artifact.args)
    return f"Verify with: npx hardhat verify --network {network_name} {artifact.address} {args}".rstrip()


def _format_arg(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return '"[' + ",".join(str(v) for v in value) + ']"'
    return str(value)


# =============================================================================
# Step Actions
# =============================================================================

def deploy_mocks(env: Optional[EnvironmentConfig], store: ArtifactStore, ctx: StepContext) -> list[Artifact]:
    """Deploy the fee token and the randomness coordinator mock."""
    logger.info("Local network detected! Deploying mocks...")
    link = deploy_contract(LINK_TOKEN, [], store, ctx)
    vrf = deploy_contract(VRF_COORDINATOR, [link.address], store, ctx)
    logger.info("Mocks Deployed!")
    return [link, vrf]


class FactoryStep:
    """Deploys the PixelPackFactory with the resolved oracle parameters."""

    def __init__(self, attribute_odds: list[int]) -> None:
        self.attribute_odds = list(attribute_odds)

    def __call__(self, env: Optional[EnvironmentConfig], store: ArtifactStore, ctx: StepContext) -> list[Artifact]:
        env.require("oracle_service_address", "funding_token_address", "callback_key", "request_fee")
        args = [
            env.oracle_service_address,
            env.funding_token_address,
            env.callback_key,
            env.request_fee,
            list(self.attribute_odds),
        ]
        factory = deploy_contract(PIXEL_PACK_FACTORY, args, store, ctx)
        logger.info(verify_hint(ctx.network.name, factory))
        return [factory]


class FundStep:
    """Funds the deployed factory with LINK."""

    def __init__(self, funder: FundingOrchestrator) -> None:
        self.funder = funder

    def __call__(self, env: Optional[EnvironmentConfig], store: ArtifactStore, ctx: StepContext) -> None:
        factory = store.require(ctx.network.id, PIXEL_PACK_FACTORY)
        self.funder.fund(factory, env, ctx)


class CreatePixelPackStep:
    """Creates one pixel pack through the randomness request workflow."""

    def __init__(self, workflow: OracleWorkflow) -> None:
        self.workflow = workflow
        self.last_request = None

    def __call__(self, env: Optional[EnvironmentConfig], store: ArtifactStore, ctx: StepContext) -> None:
        factory = store.require(ctx.network.id, PIXEL_PACK_FACTORY)
        self.last_request = self.workflow.run(factory, env, ctx)
        logger.info("Token %d URI: %s", self.last_request.token_id, self.last_request.token_uri)


# =============================================================================
# Registration
# =============================================================================

def register_default_steps(registry: StepRegistry, config: RuntimeConfig) -> StepRegistry:
    """Register the four deployment steps in their declared order."""
    registry.register(
        "mocks",
        deploy_mocks,
        tags={RunMode.ALL, RunMode.MOCKS},
        local_only=True,
        description="Deploy LinkToken and VRFCoordinatorMock",
    )
    registry.register(
        "pixel_pack_factory",
        FactoryStep(config.factory.attribute_odds),
        tags={RunMode.ALL, RunMode.MOCK_PXP, RunMode.PXP_ONLY, RunMode.FUNDLINK},
        env_fields={"oracle_service_address", "funding_token_address", "callback_key", "request_fee"},
        description="Deploy PixelPackFactory",
    )
    registry.register(
        "fund_with_link",
        FundStep(FundingOrchestrator(config.funding)),
        tags={RunMode.ALL, RunMode.FUND_LINK, RunMode.FUND_ONLY},
        requires={PIXEL_PACK_FACTORY},
        env_fields={"funding_token_address", "fund_amount"},
        description="Fund PixelPackFactory with LINK",
    )
    registry.register(
        "create_pixel_pack",
        CreatePixelPackStep(OracleWorkflow(config.oracle, poll_interval_s=config.chain.poll_interval_s)),
        tags={RunMode.ALL, RunMode.CREATE_ONLY},
        requires={PIXEL_PACK_FACTORY},
        env_fields={"oracle_service_address"},
        description="Create a pixel pack and finish its mint",
    )
    return registry


def build_registry(config: RuntimeConfig) -> StepRegistry:
    return register_default_steps(StepRegistry(), config)
