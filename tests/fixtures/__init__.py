"""
Test fixtures package for the deployment pipeline tests.

This package provides factory functions for creating test objects:
- chain_fixtures.py: DevChain stacks, network contexts, step contexts,
  configs and artifacts

Usage:
    from fixtures import deploy_stack, make_context

    def test_something():
        chain = DevChain()
        stack = deploy_stack(chain)
        ctx = make_context(chain)
"""

from .chain_fixtures import (
    FEE,
    FUND_AMOUNT,
    KEY_HASH,
    LIVE_CHAIN_ID,
    LIVE_NAME,
    ODDS,
    Stack,
    deploy_stack,
    fulfill,
    make_artifact,
    make_context,
    make_env,
    make_live_config,
    make_live_network,
    make_local_network,
)

__all__ = [
    "FEE",
    "FUND_AMOUNT",
    "KEY_HASH",
    "LIVE_CHAIN_ID",
    "LIVE_NAME",
    "ODDS",
    "Stack",
    "deploy_stack",
    "fulfill",
    "make_artifact",
    "make_context",
    "make_env",
    "make_live_config",
    "make_live_network",
    "make_local_network",
]
