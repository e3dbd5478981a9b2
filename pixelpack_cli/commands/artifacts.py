"""
CLI Artifacts Command

List persisted deployment artifacts for a network.

Usage:
    pixelpack artifacts --network rinkeby [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace

from core.schemas.errors import ConfigurationException
from core.schemas.network import NetworkContext
from orchestrator.artifacts import ArtifactIOError, JsonArtifactStore

from pixelpack_cli.config import CLIConfig


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2


def artifacts_cmd(args: Namespace) -> int:
    """List artifacts recorded under the deployments directory."""
    config: CLIConfig = getattr(args, "cli_config", None) or CLIConfig()
    runtime = config.runtime

    try:
        network = NetworkContext.from_name(args.network, runtime.networks)
    except ConfigurationException as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        store = JsonArtifactStore(args.deployments_dir or runtime.deployments_dir)
    except ArtifactIOError as e:
        print(f"Failed to load artifacts: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    artifacts = store.all_for(network.id)

    if args.json:
        print(json.dumps([a.model_dump(mode="json", exclude_none=True) for a in artifacts], indent=2))
        return EXIT_SUCCESS

    if not artifacts:
        print(f"No artifacts for {network.name} ({network.id})")
        return EXIT_SUCCESS

    print(f"{network.name} ({network.id}):")
    for artifact in artifacts:
        block = f" block {artifact.block_number}" if artifact.block_number is not None else ""
        print(f"  {artifact.name}: {artifact.address}{block}")
    return EXIT_SUCCESS
