"""
CLI Smoke Tests

Tests for the pixelpack command line:
1. networks lists the static table
2. config --init prints and writes a template
3. deploy runs the pipeline and reports a summary
4. Configuration errors exit with code 2
5. artifacts lists what a persisted deploy recorded
6. Ctrl-C cancels between steps and the partial summary is printed
"""

import json
import signal

import pytest

from core.schemas.progress import ProgressKind
from orchestrator import create_test_pipeline
from pixelpack_cli.commands.deploy import cancel_on_interrupt, print_summary_human
from pixelpack_cli.main import EXIT_CONFIG_ERROR, EXIT_RUNTIME_ERROR, EXIT_SUCCESS, main


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every command from an empty directory with no user config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("PIXELPACK_LOG_LEVEL", "PIXELPACK_OUTPUT_FORMAT", "PIXELPACK_DEPLOYMENTS_DIR"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


class TestInfoCommands:
    """Tests for networks and config."""

    def test_networks_json(self, capsys):
        assert main(["networks", "--json"]) == EXIT_SUCCESS
        rows = json.loads(capsys.readouterr().out)

        by_id = {row["id"]: row for row in rows}
        assert by_id["31337"]["local"] is True
        assert by_id["4"]["name"] == "rinkeby"
        assert by_id["4"]["fund_amount"] == str(10 ** 18)

    def test_networks_human(self, capsys):
        assert main(["networks"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "rinkeby" in out
        assert "fee: 100000000000000000" in out

    def test_config_init_stdout(self, capsys):
        assert main(["config", "--init"]) == EXIT_SUCCESS
        template = json.loads(capsys.readouterr().out)

        assert template["log_level"] == "INFO"
        assert template["oracle"]["fulfillment_timeout_s"] == 180.0
        assert template["deployments_dir"] == "deployments"

    def test_config_init_path(self, isolated_cwd):
        target = isolated_cwd / "pixelpack.json"
        assert main(["config", "--init", "--path", str(target)]) == EXIT_SUCCESS
        assert json.loads(target.read_text())["default_output_format"] == "human"

        # Refuses to overwrite
        assert main(["config", "--init", "--path", str(target)]) == EXIT_RUNTIME_ERROR

    def test_config_file_is_picked_up(self, isolated_cwd, capsys):
        """./pixelpack.yaml in the working directory configures the run."""
        (isolated_cwd / "pixelpack.yaml").write_text("oracle:\n  finalize_retries: 9\n")
        assert main(["config", "--show"]) == EXIT_SUCCESS
        assert json.loads(capsys.readouterr().out)["oracle"]["finalize_retries"] == 9

    def test_broken_config_file(self, isolated_cwd):
        broken = isolated_cwd / "broken.yaml"
        broken.write_text("oracle: [unclosed\n")
        assert main(["--config", str(broken), "networks"]) == EXIT_CONFIG_ERROR


class TestDeploy:
    """Tests for the deploy command."""

    def test_deploy_hardhat_json(self, isolated_cwd, capsys):
        """A hardhat run completes and writes nothing to disk."""
        assert main(["deploy", "--network", "hardhat", "--json"]) == EXIT_SUCCESS
        summary = json.loads(capsys.readouterr().out)

        assert summary["ok"] is True
        assert [s["name"] for s in summary["steps"]] == [
            "mocks", "pixel_pack_factory", "fund_with_link", "create_pixel_pack",
        ]
        assert not (isolated_cwd / "deployments").exists()

    def test_deploy_tags(self, capsys):
        assert main(["deploy", "--tags", "mocks", "--json"]) == EXIT_SUCCESS
        summary = json.loads(capsys.readouterr().out)
        assert [a["name"] for a in summary["artifacts"]] == ["LinkToken", "VRFCoordinatorMock"]

    def test_failed_step_exit_code(self, capsys):
        """A run that fails a step exits 1 and names the step."""
        assert main(["deploy", "--tags", "createonly"]) == EXIT_RUNTIME_ERROR
        out = capsys.readouterr().out
        assert "failed_step: create_pixel_pack" in out
        assert "UNSATISFIED_DEPENDENCY" in out

    def test_unknown_network(self, capsys):
        assert main(["deploy", "--network", "mainnet"]) == EXIT_CONFIG_ERROR
        assert "mainnet" in capsys.readouterr().err

    def test_localhost_persists_and_lists(self, isolated_cwd, capsys):
        """A localhost deploy is recorded and shown by artifacts."""
        out_dir = isolated_cwd / "out"
        assert main(["deploy", "--network", "localhost", "--deployments-dir", str(out_dir)]) == EXIT_SUCCESS
        assert (out_dir / "31337" / "PixelPackFactory.json").exists()
        capsys.readouterr()

        assert main(["artifacts", "--network", "localhost", "--deployments-dir", str(out_dir), "--json"]) == EXIT_SUCCESS
        listed = json.loads(capsys.readouterr().out)
        assert sorted(a["name"] for a in listed) == ["LinkToken", "PixelPackFactory", "VRFCoordinatorMock"]

    def test_artifacts_empty(self, capsys):
        assert main(["artifacts", "--network", "localhost"]) == EXIT_SUCCESS
        assert "No artifacts" in capsys.readouterr().out


class TestInterrupt:
    """Tests for Ctrl-C handling during deploy."""

    class RecordingPipeline:
        def __init__(self):
            self.cancels = 0

        def cancel(self):
            self.cancels += 1

    def test_first_interrupt_cancels(self, capsys):
        pipeline = self.RecordingPipeline()
        with cancel_on_interrupt(pipeline):
            signal.raise_signal(signal.SIGINT)

        assert pipeline.cancels == 1
        assert "Cancelling" in capsys.readouterr().err

    def test_second_interrupt_aborts(self):
        pipeline = self.RecordingPipeline()
        with pytest.raises(KeyboardInterrupt):
            with cancel_on_interrupt(pipeline):
                signal.raise_signal(signal.SIGINT)
                signal.raise_signal(signal.SIGINT)
        assert pipeline.cancels == 1

    def test_previous_handler_restored(self):
        previous = signal.getsignal(signal.SIGINT)
        with cancel_on_interrupt(self.RecordingPipeline()):
            assert signal.getsignal(signal.SIGINT) is not previous
        assert signal.getsignal(signal.SIGINT) is previous

    def test_cancelled_run_prints_partial_summary(self, capsys):
        """A run cancelled after mocks still reports what it deployed."""
        pipeline = create_test_pipeline()

        def cancel_after_mocks(event):
            if event.kind == ProgressKind.STEP_COMPLETED and event.step == "mocks":
                pipeline.cancel()

        pipeline.reporter.subscribe(cancel_after_mocks)
        summary = pipeline.run()
        print_summary_human(summary)
        out = capsys.readouterr().out

        assert "LinkToken:" in out
        assert "RUN_CANCELLED" in out
        assert "failed_step" not in out
        assert "cancelled: true" in out
        assert "ok: false" in out
