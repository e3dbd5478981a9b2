"""
Tests for the Pipeline Executor

Tests dependency checks, failure isolation, partial progress reporting,
local-only skipping and cooperative cancellation.
"""

import pytest

from core.config import NetworkTable
from core.schemas import ErrorCodes, MissingConfigFieldException
from core.schemas.progress import ProgressKind
from orchestrator.environment import EnvironmentResolver
from orchestrator.executor import PipelineExecutor, StepStatus
from orchestrator.registry import StepRegistry
from orchestrator.steps import build_registry

from fixtures import make_artifact, make_context, make_live_config


@pytest.fixture
def executor(store):
    return PipelineExecutor(EnvironmentResolver(NetworkTable()), store)


def _recording_action(calls, name, artifact=None):
    def action(env, store, ctx):
        calls.append(name)
        return [artifact] if artifact else None
    return action


class TestDependencies:
    """Tests for requires checks."""

    def test_unsatisfied_dependency_sends_nothing(self, executor, local_ctx, runtime_config, dev_chain):
        """createonly on a fresh network fails before any transaction."""
        registry = build_registry(runtime_config)
        summary = executor.run(registry.select(["createonly"]), local_ctx)

        assert not summary.ok
        assert summary.failed_step == "create_pixel_pack"
        assert summary.error.code == ErrorCodes.UNSATISFIED_DEPENDENCY
        assert summary.error.details["missing"] == ["PixelPackFactory"]
        assert dev_chain.transactions == []

    def test_requires_checked_before_environment(self, executor, local_ctx):
        """A missing artifact is reported as a dependency problem, not a config one."""
        registry = StepRegistry()
        registry.register(
            "needs_both",
            _recording_action([], "needs_both"),
            tags={"x"},
            requires={"PixelPackFactory"},
            env_fields={"funding_token_address"},
        )
        summary = executor.run(registry.select(["x"]), local_ctx)
        assert summary.error.code == ErrorCodes.UNSATISFIED_DEPENDENCY

    def test_satisfied_dependency_runs(self, executor, store, local_ctx):
        calls = []
        store.save(make_artifact("PixelPackFactory"))
        registry = StepRegistry()
        registry.register("uses_factory", _recording_action(calls, "uses_factory"), tags={"x"}, requires={"PixelPackFactory"})

        summary = executor.run(registry.select(["x"]), local_ctx)
        assert summary.ok
        assert calls == ["uses_factory"]


class TestConfigurationCheck:
    """Tests for the static-table check that runs before any step."""

    @pytest.fixture
    def gap_config(self):
        return make_live_config(link="0x" + "01" * 20)

    def test_later_step_gap_runs_nothing(self, store, live_chain, live_network, gap_config):
        """A field missing for the second step stops the first step too."""
        calls = []
        registry = StepRegistry()
        registry.register("funds", _recording_action(calls, "funds"), tags={"x"}, env_fields={"funding_token_address"})
        registry.register("calls_oracle", _recording_action(calls, "calls_oracle"), tags={"x"}, env_fields={"oracle_service_address"})

        executor = PipelineExecutor(EnvironmentResolver(gap_config.networks), store)
        ctx = make_context(live_chain, live_network, gap_config)
        summary = executor.run(registry.select(["x"]), ctx)

        assert calls == []
        assert summary.failed_step == "calls_oracle"
        assert summary.error.code == ErrorCodes.MISSING_CONFIG_FIELD
        assert summary.error.details["field"] == "oracle_service_address"
        assert [(r.name, r.status) for r in summary.records] == [("calls_oracle", StepStatus.FAILED)]
        assert [e.kind for e in ctx.reporter.events] == [ProgressKind.STEP_FAILED]

    def test_skipped_steps_not_checked(self, store, live_chain, live_network, gap_config):
        calls = []
        registry = StepRegistry()
        registry.register("local", _recording_action(calls, "local"), tags={"x"}, env_fields={"oracle_service_address"}, local_only=True)
        registry.register("funds", _recording_action(calls, "funds"), tags={"x"}, env_fields={"funding_token_address"})

        executor = PipelineExecutor(EnvironmentResolver(gap_config.networks), store)
        summary = executor.run(registry.select(["x"]), make_context(live_chain, live_network, gap_config))

        assert summary.ok
        assert calls == ["funds"]

    def test_local_mock_addresses_resolved_at_step(self, executor, local_ctx):
        """Addresses produced by an earlier step in the same run are accepted."""
        calls = []
        registry = StepRegistry()
        registry.register("mocks", _recording_action(calls, "mocks", make_artifact("LinkToken")), tags={"x"})
        registry.register("funds", _recording_action(calls, "funds"), tags={"x"}, env_fields={"funding_token_address"})

        summary = executor.run(registry.select(["x"]), local_ctx)

        assert summary.ok
        assert calls == ["mocks", "funds"]


class TestFailureHandling:
    """Tests for how step failures stop a run."""

    def test_failure_stops_remaining_steps(self, executor, local_ctx, assert_step_status):
        """Steps after a failed step never run."""
        calls = []

        def failing(env, store, ctx):
            calls.append("b")
            raise MissingConfigFieldException("fund_amount", ctx.network.id)

        registry = StepRegistry()
        registry.register("a", _recording_action(calls, "a"), tags={"x"})
        registry.register("b", failing, tags={"x"})
        registry.register("c", _recording_action(calls, "c"), tags={"x"})

        summary = executor.run(registry.select(["x"]), local_ctx)

        assert calls == ["a", "b"]
        assert summary.executed == ["a"]
        assert summary.failed_step == "b"
        assert summary.error.code == ErrorCodes.MISSING_CONFIG_FIELD
        assert summary.record("c") is None
        assert_step_status(summary, "b", "failed")

    def test_unexpected_exception_is_wrapped(self, executor, local_ctx):
        """Non-pipeline exceptions become STEP_EXECUTION_ERROR."""
        def broken(env, store, ctx):
            raise KeyError("boom")

        registry = StepRegistry()
        registry.register("broken", broken, tags={"x"})
        summary = executor.run(registry.select(["x"]), local_ctx)

        assert summary.error.code == ErrorCodes.STEP_EXECUTION_ERROR
        assert summary.error.details["type"] == "KeyError"

    def test_partial_artifacts_reported(self, executor, store, local_ctx):
        """Artifacts saved before a failure within the step are reported."""
        def half_done(env, store, ctx):
            store.save(make_artifact("LinkToken"))
            raise MissingConfigFieldException("fee", ctx.network.id)

        registry = StepRegistry()
        registry.register("half", half_done, tags={"x"})
        summary = executor.run(registry.select(["x"]), local_ctx)

        assert not summary.ok
        assert [a.name for a in summary.artifacts_produced] == ["LinkToken"]
        assert summary.record("half").artifacts == ["LinkToken"]
        assert store.has("31337", "LinkToken")

    def test_returned_artifacts_are_saved(self, executor, store, local_ctx):
        """Artifacts returned by an action are persisted by the executor."""
        artifact = make_artifact("VRFCoordinatorMock")
        registry = StepRegistry()
        registry.register("ret", _recording_action([], "ret", artifact), tags={"x"})

        summary = executor.run(registry.select(["x"]), local_ctx)
        assert store.get("31337", "VRFCoordinatorMock") == artifact
        assert summary.artifacts_produced == [artifact]


class TestSkipping:
    """Tests for local-only steps and cancellation."""

    def test_local_only_skipped_on_live(self, executor, live_chain, live_network, runtime_config):
        calls = []
        registry = StepRegistry()
        registry.register("mocks", _recording_action(calls, "mocks"), tags={"x"}, local_only=True)
        registry.register("after", _recording_action(calls, "after"), tags={"x"})

        ctx = make_context(live_chain, live_network, runtime_config)
        summary = executor.run(registry.select(["x"]), ctx)

        assert summary.ok
        assert calls == ["after"]
        assert summary.skipped == ["mocks"]
        assert summary.record("mocks").reason == "local networks only"
        assert ctx.reporter.of_kind(ProgressKind.STEP_SKIPPED)[0].step == "mocks"

    def test_cancel_between_steps(self, executor, local_ctx):
        """Cancelling inside a step lets it finish and skips the rest."""
        calls = []

        def cancelling(env, store, ctx):
            calls.append("first")
            executor.cancel()

        registry = StepRegistry()
        registry.register("first", cancelling, tags={"x"})
        registry.register("second", _recording_action(calls, "second"), tags={"x"})
        registry.register("third", _recording_action(calls, "third"), tags={"x"})

        summary = executor.run(registry.select(["x"]), local_ctx)

        assert calls == ["first"]
        assert summary.cancelled
        assert not summary.ok
        assert summary.executed == ["first"]
        assert [r.reason for r in summary.records if r.status == StepStatus.SKIPPED] == ["cancelled", "cancelled"]
        assert summary.error.code == ErrorCodes.RUN_CANCELLED
        assert summary.error.details["remaining"] == ["second", "third"]
        assert summary.failed_step is None

    def test_cancel_is_reset_on_next_run(self, executor, local_ctx):
        registry = StepRegistry()
        registry.register("only", _recording_action([], "only"), tags={"x"})
        executor.cancel()
        assert executor.run(registry.select(["x"]), local_ctx).ok


class TestSummary:
    """Tests for RunSummary serialization and progress events."""

    def test_to_dict(self, executor, local_ctx):
        registry = StepRegistry()
        registry.register("ret", _recording_action([], "ret", make_artifact("LinkToken")), tags={"x"})
        data = executor.run(registry.select(["x"]), local_ctx).to_dict()

        assert data["ok"] is True
        assert data["network"]["id"] == "31337"
        assert data["steps"][0]["status"] == "done"
        assert data["artifacts"][0]["name"] == "LinkToken"

    def test_progress_events(self, executor, local_ctx):
        registry = StepRegistry()
        registry.register("one", _recording_action([], "one"), tags={"x"})
        executor.run(registry.select(["x"]), local_ctx)

        kinds = [e.kind for e in local_ctx.reporter.events]
        assert kinds == [ProgressKind.STEP_STARTED, ProgressKind.STEP_COMPLETED]
