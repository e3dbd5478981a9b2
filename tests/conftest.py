"""
Pytest configuration and shared fixtures for the deployment pipeline tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

# Import fixture modules
_chain = importlib.import_module("fixtures.chain_fixtures")

# Extract factory functions
deploy_stack = _chain.deploy_stack
make_context = _chain.make_context
make_live_network = _chain.make_live_network
make_local_network = _chain.make_local_network

from core.chain import DevChain
from core.config import RuntimeConfig
from orchestrator.artifacts import ArtifactStore
from orchestrator.context import ManualClock
from orchestrator.progress import ProgressReporter


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def dev_chain():
    """Provide a fresh in-process development chain (chain id 31337)."""
    return DevChain()


@pytest.fixture
def live_chain():
    """Provide a DevChain posing as a live network (chain id 4)."""
    return DevChain(chain_id=_chain.LIVE_CHAIN_ID)


@pytest.fixture
def store():
    """Provide an empty in-memory artifact store."""
    return ArtifactStore()


@pytest.fixture
def runtime_config():
    """Provide a default RuntimeConfig, isolated from the environment."""
    return RuntimeConfig()


@pytest.fixture
def local_network():
    """Provide the hardhat network context (local, chain id 31337)."""
    return make_local_network()


@pytest.fixture
def live_network():
    """Provide the rinkeby network context (live, chain id 4)."""
    return make_live_network()


@pytest.fixture
def manual_clock():
    """Provide a manual clock; sleeps advance time instantly."""
    return ManualClock()


@pytest.fixture
def reporter(manual_clock):
    """Provide a progress reporter stamped by the manual clock."""
    return ProgressReporter(manual_clock)


@pytest.fixture
def local_stack(dev_chain):
    """Provide a funded LinkToken/VRFCoordinatorMock/PixelPackFactory stack."""
    return deploy_stack(dev_chain)


@pytest.fixture
def local_ctx(dev_chain, local_network, runtime_config, manual_clock):
    """Provide a StepContext on the local network."""
    return make_context(dev_chain, local_network, runtime_config, clock=manual_clock)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_step_status():
    """Helper to assert the recorded status of a step in a RunSummary."""
    def _assert(summary, step: str, status: str):
        record = summary.record(step)
        assert record is not None, f"Step '{step}' not found in {[r.name for r in summary.records]}"
        assert record.status.value == status, (
            f"Step '{step}' is {record.status.value}, expected {status}"
            + (f": {record.error.message}" if record.error else "")
        )
        return record
    return _assert
