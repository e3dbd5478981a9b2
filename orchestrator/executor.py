"""
Pipeline Executor

Runs selected steps strictly in sequence against one network.

Provides:
- StepRecord: outcome of one step
- RunSummary: outcome of a run, including partial progress on failure
- PipelineExecutor: runner that checks dependencies, resolves the
  environment, invokes each action and persists what it produced

The executor is the single place where step errors are caught. A failed
step aborts the remaining sequence; artifacts already persisted are kept
so a re-run resumes instead of starting over.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from core.schemas.artifacts import Artifact
from core.schemas.errors import (
    ConfigurationException,
    DeployError,
    ErrorCodes,
    PixelPackException,
    StepExecutionException,
    UnsatisfiedDependencyException,
)
from core.schemas.network import NetworkContext

from orchestrator.artifacts.store import ArtifactStore
from orchestrator.context import StepContext
from orchestrator.environment import EnvironmentResolver
from orchestrator.registry import Step


logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StepRecord:
    """Outcome of a single step."""
    name: str
    status: StepStatus
    artifacts: list[str] = field(default_factory=list)
    duration_s: float = 0.0
    reason: Optional[str] = None
    error: Optional[DeployError] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "duration_s": round(self.duration_s, 3),
        }
        if self.artifacts:
            d["artifacts"] = list(self.artifacts)
        if self.reason:
            d["reason"] = self.reason
        if self.error is not None:
            d["error"] = self.error.model_dump(mode="json")
        return d


@dataclass
class RunSummary:
    """Complete result of a pipeline run."""
    network: NetworkContext
    records: list[StepRecord] = field(default_factory=list)
    artifacts_produced: list[Artifact] = field(default_factory=list)
    failed_step: Optional[str] = None
    error: Optional[DeployError] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    @property
    def executed(self) -> list[str]:
        return [r.name for r in self.records if r.status == StepStatus.DONE]

    @property
    def skipped(self) -> list[str]:
        return [r.name for r in self.records if r.status == StepStatus.SKIPPED]

    def record(self, name: str) -> Optional[StepRecord]:
        for r in self.records:
            if r.name == name:
                return r
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "ok": self.ok,
            "network": self.network.model_dump(),
            "steps": [r.to_dict() for r in self.records],
            "artifacts": [a.model_dump(mode="json", exclude_none=True) for a in self.artifacts_produced],
        }
        if self.failed_step:
            d["failed_step"] = self.failed_step
        if self.error is not None:
            d["error"] = self.error.model_dump(mode="json")
        if self.cancelled:
            d["cancelled"] = True
        return d


class PipelineExecutor:
    """
    Executor that runs a sequence of Steps.

    Before the first step, the static-table fields of every step that
    will run are checked; a gap fails the run with nothing sent.

    Then, for each step:
    1. Verify its required artifacts exist on the network
    2. Resolve the EnvironmentConfig fields it needs
    3. Invoke the action
    4. Persist the artifacts it produced
    """

    def __init__(self, resolver: EnvironmentResolver, store: ArtifactStore) -> None:
        self.resolver = resolver
        self.store = store
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """
        Stop issuing further steps.

        Takes effect between steps; an in-flight step and its submitted
        transactions always run to completion.
        """
        self._cancelled.set()

    def run(self, steps: list[Step], ctx: StepContext) -> RunSummary:
        """
        Execute all steps in sequence.

        Args:
            steps: Ordered steps, usually from StepRegistry.select()
            ctx: Run context for the target network

        Returns:
            RunSummary reflecting every step attempted, including partial
            success when a step fails
        """
        self._cancelled.clear()
        network = ctx.network
        summary = RunSummary(network=network)
        logger.info(
            "Running %d step(s) on %s (%s): %s",
            len(steps), network.name, network.id, ", ".join(s.name for s in steps),
        )

        if self._check_configuration(steps, ctx, summary):
            return summary

        for index, step in enumerate(steps):
            if self._cancelled.is_set():
                for remaining in steps[index:]:
                    summary.records.append(
                        StepRecord(remaining.name, StepStatus.SKIPPED, reason="cancelled")
                    )
                    ctx.reporter.step_skipped(network.id, remaining.name, "cancelled")
                summary.cancelled = True
                summary.error = DeployError(
                    code=ErrorCodes.RUN_CANCELLED,
                    message=f"Run cancelled before step '{step.name}'",
                    details={"remaining": [s.name for s in steps[index:]]},
                )
                logger.warning("Run cancelled before step '%s'", step.name)
                break

            if self._skips(step, network):
                summary.records.append(
                    StepRecord(step.name, StepStatus.SKIPPED, reason="local networks only")
                )
                ctx.reporter.step_skipped(network.id, step.name, "local networks only")
                continue

            record = self._run_step(step, ctx, summary)
            summary.records.append(record)
            if record.status == StepStatus.FAILED:
                summary.failed_step = step.name
                summary.error = record.error
                self._log_failure(summary)
                break

        if summary.ok:
            logger.info(
                "Run on %s complete: %d step(s) done, %d skipped",
                network.name, len(summary.executed), len(summary.skipped),
            )
        return summary

    @staticmethod
    def _skips(step: Step, network: NetworkContext) -> bool:
        return step.local_only and not network.is_local

    def _check_configuration(self, steps: list[Step], ctx: StepContext, summary: RunSummary) -> bool:
        """
        Check every step's static-table fields before the first step runs.

        Returns True when a field is missing; the summary then records the
        first step that needs it as failed and no action has been invoked.
        """
        network = ctx.network
        for step in steps:
            if self._skips(step, network) or not step.env_fields:
                continue
            try:
                self.resolver.check_static(network, step.env_fields)
            except ConfigurationException as e:
                error = e.to_error_model()
                ctx.reporter.step_failed(network.id, step.name, error)
                summary.records.append(StepRecord(step.name, StepStatus.FAILED, error=error))
                summary.failed_step = step.name
                summary.error = error
                self._log_failure(summary)
                return True
        return False

    def _run_step(self, step: Step, ctx: StepContext, summary: RunSummary) -> StepRecord:
        network = ctx.network
        clock = ctx.clock
        ctx.reporter.step_started(network.id, step.name)
        started = clock.monotonic()
        before = {a.name: a for a in self.store.all_for(network.id)}

        error: Optional[DeployError] = None
        try:
            missing = self.store.missing(network.id, step.requires)
            if missing:
                raise UnsatisfiedDependencyException(step.name, missing, network.id)

            env = self.resolver.resolve(network, self.store, step.env_fields)
            returned = step.action(env, self.store, ctx.for_step(step.name)) or []

            for artifact in returned:
                if self.store.get(artifact.network, artifact.name) != artifact:
                    self.store.save(artifact)
        except PixelPackException as e:
            error = e.to_error_model()
        except Exception as e:
            logger.exception("Unexpected error in step '%s'", step.name)
            error = StepExecutionException(
                f"Step '{step.name}' failed: {e}",
                step=step.name,
                details={"type": type(e).__name__},
            ).to_error_model()

        # Anything written during the step counts as produced, even when a
        # later transaction in the same step failed.
        produced = [
            a for a in self.store.all_for(network.id)
            if before.get(a.name) != a
        ]
        summary.artifacts_produced.extend(produced)
        duration = clock.monotonic() - started

        if error is not None:
            ctx.reporter.step_failed(network.id, step.name, error)
            return StepRecord(
                step.name,
                StepStatus.FAILED,
                artifacts=[a.name for a in produced],
                duration_s=duration,
                error=error,
            )

        ctx.reporter.step_completed(network.id, step.name, produced)
        return StepRecord(
            step.name,
            StepStatus.DONE,
            artifacts=[a.name for a in produced],
            duration_s=duration,
        )

    def _log_failure(self, summary: RunSummary) -> None:
        produced = ", ".join(a.name for a in summary.artifacts_produced) or "none"
        logger.error(
            "Run on %s failed at step '%s' [%s]: %s. Artifacts produced so far: %s",
            summary.network.name,
            summary.failed_step,
            summary.error.code if summary.error else "?",
            summary.error.message if summary.error else "",
            produced,
        )
