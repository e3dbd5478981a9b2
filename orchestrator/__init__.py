"""
Deployment Orchestrator

Resolves a requested run mode into an ordered sequence of deployment
steps and executes them against one network: mock contracts on local
chains, the PixelPackFactory, LINK funding, and the randomness
request/response workflow that finishes a mint.

Public API:
- Pipeline: Runner for one network
- create_pipeline / create_test_pipeline: Factory functions
- StepRegistry, Step, RunMode: Step declaration and selection
- PipelineExecutor, RunSummary, StepRecord: Sequential execution
- EnvironmentResolver: Per-network environment parameters
- ArtifactStore, JsonArtifactStore: Deployment records
- FundingOrchestrator: LINK funding
- OracleWorkflow: Issue, await and finalize a randomness request
- ProgressReporter: Structured progress events
"""

from orchestrator.artifacts import ArtifactStore, JsonArtifactStore
from orchestrator.context import Clock, ManualClock, RealClock, StepContext
from orchestrator.environment import EnvironmentResolver
from orchestrator.executor import PipelineExecutor, RunSummary, StepRecord, StepStatus
from orchestrator.funding import FundingOrchestrator
from orchestrator.oracle_workflow import OracleWorkflow
from orchestrator.pipeline import Pipeline, create_client, create_pipeline, create_test_pipeline
from orchestrator.progress import ProgressReporter
from orchestrator.registry import RunMode, Step, StepRegistry
from orchestrator.steps import (
    LINK_TOKEN,
    PIXEL_PACK_FACTORY,
    VRF_COORDINATOR,
    build_registry,
    deploy_contract,
    register_default_steps,
)


__all__ = [
    # Main pipeline
    "Pipeline",
    "create_pipeline",
    "create_test_pipeline",
    "create_client",
    # Steps
    "StepRegistry",
    "Step",
    "RunMode",
    "build_registry",
    "register_default_steps",
    "deploy_contract",
    "LINK_TOKEN",
    "VRF_COORDINATOR",
    "PIXEL_PACK_FACTORY",
    # Execution
    "PipelineExecutor",
    "RunSummary",
    "StepRecord",
    "StepStatus",
    "StepContext",
    "Clock",
    "RealClock",
    "ManualClock",
    # Components
    "EnvironmentResolver",
    "ArtifactStore",
    "JsonArtifactStore",
    "FundingOrchestrator",
    "OracleWorkflow",
    "ProgressReporter",
]
