"""
Pipeline Integration

In-process runner composing the registry, resolver, executor, artifact
store and chain client for one target network.

Key features:
- Development chains get an in-process DevChain; live networks use a
  client from the registered ChainClientFactory
- Artifacts persist to ``<deployments_dir>/<network_id>/`` unless an
  in-memory store is requested
- Injectable clock and random source for deterministic runs
"""
from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Iterable, Optional, Union

from core.chain import ChainClient, DevChain, get_client_factory
from core.config import RuntimeConfig, get_default_config
from core.schemas.network import NetworkContext

from orchestrator.artifacts.io import JsonArtifactStore
from orchestrator.artifacts.store import ArtifactStore
from orchestrator.context import Clock, ManualClock, RealClock, StepContext
from orchestrator.environment import EnvironmentResolver
from orchestrator.executor import PipelineExecutor, RunSummary
from orchestrator.progress import ProgressReporter
from orchestrator.registry import RunMode, Step, StepRegistry
from orchestrator.steps import build_registry


logger = logging.getLogger(__name__)


Modes = Iterable[Union[RunMode, str]]


class Pipeline:
    """
    Main pipeline runner for one network.

    Usage:
        pipeline = create_pipeline("localhost")
        summary = pipeline.run([RunMode.ALL])
        if not summary.ok:
            print(summary.error.message)
    """

    def __init__(
        self,
        network: NetworkContext,
        client: ChainClient,
        *,
        config: Optional[RuntimeConfig] = None,
        store: Optional[ArtifactStore] = None,
        registry: Optional[StepRegistry] = None,
        reporter: Optional[ProgressReporter] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize pipeline.

        Args:
            network: Target network
            client: Chain client connected to ``network``
            config: Runtime configuration (process default if not provided)
            store: Artifact store (in-memory if not provided)
            registry: Step registry (the default four steps if not provided)
            reporter: Progress reporter (created if not provided)
            clock: Time source for waits
            rng: Random source for local oracle responses
        """
        self.config = config or get_default_config()
        self.network = network
        self.client = client
        self.store = store if store is not None else ArtifactStore()
        self.registry = registry or build_registry(self.config)
        self.resolver = EnvironmentResolver(self.config.networks)
        self.executor = PipelineExecutor(self.resolver, self.store)

        clock = clock or RealClock()
        self.reporter = reporter or ProgressReporter(clock)
        self.context = StepContext(
            network=network,
            client=client,
            config=self.config,
            reporter=self.reporter,
            clock=clock,
            rng=rng or random.Random(),
        )

    def select(self, modes: Modes) -> list[Step]:
        return self.registry.select(modes)

    def run(self, modes: Modes = (RunMode.ALL,)) -> RunSummary:
        """
        Run every step selected by ``modes`` against the target network.

        Returns:
            RunSummary; failures are reported there rather than raised
        """
        modes = list(modes)
        steps = self.select(modes)
        if not steps:
            logger.warning("No steps selected for %s", ", ".join(str(getattr(m, "value", m)) for m in modes))
        return self.executor.run(steps, self.context)

    def cancel(self) -> None:
        self.executor.cancel()


# =============================================================================
# Factory Functions
# =============================================================================

def create_client(network: NetworkContext, config: RuntimeConfig) -> ChainClient:
    """
    Chain client for a network.

    Raises:
        ConfigurationException: Live network with no registered client factory
    """
    factories = get_client_factory()
    if factories.has(network.name):
        return factories.create(network, config.networks.get(network.id))
    if network.is_local:
        logger.info("Using in-process development chain for %s", network.name)
        return DevChain(chain_id=network.id)
    return factories.create(network, config.networks.get(network.id))


def create_pipeline(
    network_name: str,
    *,
    config: Optional[RuntimeConfig] = None,
    client: Optional[ChainClient] = None,
    chain_id: Optional[str] = None,
    deployments_dir: Optional[Union[str, Path]] = None,
    persist: bool = True,
    reporter: Optional[ProgressReporter] = None,
) -> Pipeline:
    """
    Convenience function to create a pipeline for a named network.

    Args:
        network_name: Network name, e.g. "localhost" or "rinkeby"
        config: Runtime configuration (process default if not provided)
        client: Chain client (created from the network if not provided)
        chain_id: Explicit chain id overriding the table lookup
        deployments_dir: Artifact directory (config.deployments_dir if not provided)
        persist: Persist artifacts as JSON files; False keeps them in memory
        reporter: Progress reporter

    Returns:
        Configured Pipeline instance

    Raises:
        UnknownNetworkException: Live network name missing from the table
        ConfigurationException: No client available for the network
    """
    config = config or get_default_config()
    network = NetworkContext.from_name(network_name, config.networks, chain_id)
    if client is None:
        client = create_client(network, config)

    store: ArtifactStore
    if persist:
        store = JsonArtifactStore(deployments_dir or config.deployments_dir)
    else:
        store = ArtifactStore()

    return Pipeline(network, client, config=config, store=store, reporter=reporter)


def create_test_pipeline(
    network_name: str = "hardhat",
    *,
    config: Optional[RuntimeConfig] = None,
    client: Optional[ChainClient] = None,
    chain_id: Optional[str] = None,
    store: Optional[ArtifactStore] = None,
    seed: int = 0,
) -> Pipeline:
    """
    Create a deterministic pipeline: DevChain, in-memory store, manual
    clock and a seeded random source.
    """
    config = config or RuntimeConfig()
    network = NetworkContext.from_name(network_name, config.networks, chain_id)
    return Pipeline(
        network,
        client or DevChain(chain_id=network.id),
        config=config,
        store=store if store is not None else ArtifactStore(),
        clock=ManualClock(),
        rng=random.Random(seed),
    )
