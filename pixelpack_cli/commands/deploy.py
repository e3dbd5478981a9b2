"""
CLI Deploy Command

Run the deployment pipeline against one network.

Usage:
    pixelpack deploy --network localhost
    pixelpack deploy --network rinkeby --tags fundOnly createonly --json
"""

from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from argparse import Namespace
from contextlib import contextmanager
from typing import Iterator

from core.schemas.errors import ConfigurationException
from orchestrator import Pipeline, RunSummary, create_pipeline

from pixelpack_cli.config import CLIConfig


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2

# Networks whose state does not outlive the process
EPHEMERAL_NETWORKS = {"hardhat"}


def print_summary_human(summary: RunSummary) -> None:
    """Print summary in human-readable format."""
    network = summary.network
    print(f"network: {network.name} ({network.id})")
    for record in summary.records:
        line = f"  {record.status.value:<8} {record.name}"
        if record.reason:
            line += f" ({record.reason})"
        print(line)

    if summary.artifacts_produced:
        print("\nartifacts:")
        for artifact in summary.artifacts_produced:
            print(f"  {artifact.name}: {artifact.address}")

    if summary.failed_step:
        print(f"\nfailed_step: {summary.failed_step}")
    if summary.error is not None:
        print(f"error: [{summary.error.code}] {summary.error.message}")
    if summary.cancelled:
        print("\ncancelled: true")
    print(f"ok: {str(summary.ok).lower()}")


def print_summary_json(summary: RunSummary) -> None:
    """Print summary as JSON."""
    print(json.dumps(summary.to_dict(), indent=2))


@contextmanager
def cancel_on_interrupt(pipeline: Pipeline) -> Iterator[None]:
    """
    Turn the first Ctrl-C into a cancellation between steps.

    The in-flight step finishes and the partial summary is still reported.
    A second Ctrl-C raises KeyboardInterrupt as usual.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        print("\nCancelling after the current step (Ctrl-C again to abort)...", file=sys.stderr)
        pipeline.cancel()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def deploy_cmd(args: Namespace) -> int:
    """
    Execute the deploy command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    config: CLIConfig = getattr(args, "cli_config", None) or CLIConfig()
    runtime = config.runtime
    tags = args.tags or ["all"]
    output_json = args.json or config.default_output_format == "json"

    persist = not args.no_persist and args.network not in EPHEMERAL_NETWORKS
    try:
        pipeline = create_pipeline(
            args.network,
            config=runtime,
            deployments_dir=args.deployments_dir,
            persist=persist,
        )
    except ConfigurationException as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    logger.info("Deploying to %s with tags: %s", args.network, ", ".join(tags))
    try:
        with cancel_on_interrupt(pipeline):
            summary = pipeline.run(tags)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if output_json:
        print_summary_json(summary)
    else:
        print_summary_human(summary)

    return EXIT_SUCCESS if summary.ok else EXIT_RUNTIME_ERROR
