"""
Tests for the CLI entrypoint — flags, config merging, output, exit codes.
"""

import json
import signal
import threading
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from uca.core.models.options import RunOptions
from uca.core.models.result import UpdateResult
from uca.core.use_cases.update import UpdateRunReport
from uca.main import cancel_on_signals, cli, merge_options

pytestmark = pytest.mark.usefixtures("restore_logging")

RUN_UPDATE = "uca.core.use_cases.update.run_update"


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path, monkeypatch):
    """Keep the developer's own config file out of the tests."""
    monkeypatch.delenv("UCA_CONFIG", raising=False)
    monkeypatch.delenv("UCA_LOG_FILE", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


def _report(*results, **kw):
    return UpdateRunReport(results=list(results), **kw)


class TestCliBasics:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help(self):
        result = CliRunner().invoke(cli, ["-h"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "--only" in result.output

    def test_negative_timeout_rejected(self):
        result = CliRunner().invoke(cli, ["--timeout", "-1"])
        assert result.exit_code == 2


class TestCliRun:
    def test_flags_reach_use_case(self):
        with patch(RUN_UPDATE, return_value=_report()) as run:
            result = CliRunner().invoke(
                cli, ["--serial", "--timeout", "30", "--only", "Codex,claude", "-n", "--explain"],
            )
        assert result.exit_code == 0, result.output
        options = run.call_args.args[0]
        assert options.serial
        assert options.timeout == 30
        assert options.only == ["codex", "claude"]
        assert options.dry_run
        assert options.explain

    def test_plain_output(self):
        report = _report(UpdateResult(agent="codex", status="updated", before="1", after="2"))
        with patch(RUN_UPDATE, return_value=report):
            result = CliRunner().invoke(cli, [])
        assert result.exit_code == 0
        assert "codex: 1 -> 2" in result.output
        assert "updated: codex" in result.output

    def test_failure_exit_code(self):
        report = _report(UpdateResult(agent="amp", status="failed", reason="exit 1"))
        with patch(RUN_UPDATE, return_value=report):
            result = CliRunner().invoke(cli, ["-q"])
        assert result.exit_code == 1
        assert "failed: amp" in result.output
        assert "amp: failed" not in result.output

    def test_json_output(self):
        report = _report(UpdateResult(agent="codex", status="unchanged", before="1", after="1"), unknown=["zed"])
        with patch(RUN_UPDATE, return_value=report):
            result = CliRunner().invoke(cli, ["--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["results"][0]["agent"] == "codex"
        assert data["unknown"] == ["zed"]
        assert data["counts"] == {"unchanged": 1}


class TestCliConfig:
    def test_missing_explicit_config(self, tmp_path: Path):
        with patch(RUN_UPDATE) as run:
            result = CliRunner().invoke(cli, ["-c", str(tmp_path / "nope.yml")])
        assert result.exit_code == 2
        assert "error:" in result.output
        run.assert_not_called()

    def test_invalid_config(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("colour: true\n")
        result = CliRunner().invoke(cli, ["-c", str(path)])
        assert result.exit_code == 2
        assert "Unknown key" in result.output

    def test_flags_override_file(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("timeout: 600\nserial: true\nskip: cline\n")
        with patch(RUN_UPDATE, return_value=_report()) as run:
            result = CliRunner().invoke(cli, ["-c", str(path), "--timeout", "45", "--parallel"])
        assert result.exit_code == 0, result.output
        options = run.call_args.args[0]
        assert options.timeout == 45
        assert not options.serial
        assert options.skip == ["cline"]

    def test_env_config(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "env.yml"
        path.write_text("concurrency: 3\n")
        monkeypatch.setenv("UCA_CONFIG", str(path))
        with patch(RUN_UPDATE, return_value=_report()) as run:
            CliRunner().invoke(cli, [])
        assert run.call_args.args[0].concurrency == 3


class TestMergeOptions:
    def test_no_flags_keeps_base(self):
        base = RunOptions(timeout=10, serial=True)
        assert merge_options(base) == base

    def test_boolean_flags_only_switch_on(self):
        base = RunOptions(explain=True)
        merged = merge_options(base, explain=False, verbose=True)
        assert merged.explain
        assert merged.verbose

    def test_parallel_turns_serial_off(self):
        assert not merge_options(RunOptions(serial=True), parallel=True).serial

    def test_zero_values_applied(self):
        merged = merge_options(RunOptions(timeout=10, concurrency=4), timeout=0, concurrency=0)
        assert merged.timeout == 0
        assert merged.concurrency == 0


class TestCancelOnSignals:
    def test_handler_sets_cancel_and_restores(self):
        cancel = threading.Event()
        before = signal.getsignal(signal.SIGTERM)
        with cancel_on_signals(cancel):
            handler = signal.getsignal(signal.SIGTERM)
            handler(signal.SIGTERM, None)
            assert cancel.is_set()
        assert signal.getsignal(signal.SIGTERM) is before
