"""
Tests for update command execution — the npm ENOTEMPTY retry policy.
"""

from pathlib import Path

from tests.fakes import FakeRunner
from uca.core.services.agent_update.execution.subprocess_runner import CommandOutcome
from uca.core.services.agent_update.execution.update_command import (
    format_retry_output,
    run_update_command,
)

NPM = ["npm", "install", "-g", "@openai/codex@latest"]
NPM_KEY = " ".join(NPM)


class TestRunUpdateCommand:
    def test_success_runs_once(self):
        runner = FakeRunner({NPM_KEY: ("added 1 package", 0)})
        attempt = run_update_command(NPM, timeout=60, runner=runner)
        assert attempt.ok
        assert not attempt.retried
        assert attempt.output == "added 1 package"
        assert runner.count(NPM_KEY) == 1
        assert runner.timeouts == [60]

    def test_plain_failure_not_retried(self):
        runner = FakeRunner({NPM_KEY: ("npm error code E404", 1)})
        attempt = run_update_command(NPM, runner=runner)
        assert not attempt.ok
        assert attempt.exit_code == 1
        assert runner.count(NPM_KEY) == 1

    def test_enotempty_retried_once(self):
        runner = FakeRunner({NPM_KEY: [("npm error code ENOTEMPTY", 1), ("added 1 package", 0)]})
        attempt = run_update_command(NPM, runner=runner)
        assert attempt.ok
        assert attempt.retried
        assert runner.count(NPM_KEY) == 2
        assert "(uca) retrying npm after ENOTEMPTY" in attempt.output
        assert attempt.output.startswith("npm error code ENOTEMPTY")
        assert attempt.classify_output == "added 1 package"

    def test_enotempty_retry_only_once(self):
        runner = FakeRunner({NPM_KEY: ("npm error code ENOTEMPTY", 1)})
        attempt = run_update_command(NPM, runner=runner)
        assert not attempt.ok
        assert runner.count(NPM_KEY) == 2

    def test_classify_falls_back_to_first_output(self):
        runner = FakeRunner({NPM_KEY: [("npm error code ENOTEMPTY", 1), ("", 1)]})
        attempt = run_update_command(NPM, runner=runner)
        assert attempt.classify_output == "npm error code ENOTEMPTY"

    def test_durations_add_up(self):
        runner = FakeRunner({NPM_KEY: [
            CommandOutcome("ENOTEMPTY", 1, 2.0),
            CommandOutcome("ok", 0, 3.0),
        ]})
        assert run_update_command(NPM, runner=runner).duration_s == 5.0

    def test_timeout_not_retried(self):
        runner = FakeRunner({NPM_KEY: CommandOutcome("ENOTEMPTY", 124, 5.0, timed_out=True)})
        attempt = run_update_command(NPM, runner=runner)
        assert attempt.timed_out
        assert runner.count(NPM_KEY) == 1

    def test_canceled_not_retried(self):
        runner = FakeRunner({NPM_KEY: CommandOutcome("ENOTEMPTY", 130, 1.0, canceled=True)})
        attempt = run_update_command(NPM, runner=runner)
        assert attempt.canceled
        assert runner.count(NPM_KEY) == 1

    def test_other_managers_not_retried(self):
        cmd = ["pnpm", "add", "-g", "x@latest"]
        runner = FakeRunner({" ".join(cmd): ("ENOTEMPTY", 1)})
        run_update_command(cmd, runner=runner)
        assert runner.count(" ".join(cmd)) == 1

    def test_stale_dir_removed_before_retry(self, tmp_path: Path):
        dest = tmp_path / ".codex-Ab12"
        dest.mkdir()
        log = (
            "npm error code ENOTEMPTY\n"
            f"npm error path {tmp_path / 'codex'}\n"
            f"npm error dest {dest}\n"
        )
        seen_during_retry = []

        def second(args):
            seen_during_retry.append(dest.exists())
            return CommandOutcome("added 1 package", 0, 0.1)

        runner = FakeRunner({NPM_KEY: [(log, 1), second]})
        attempt = run_update_command(NPM, runner=runner)

        assert attempt.ok
        assert seen_during_retry == [False]
        assert f"(uca) removed stale npm temp dir {dest}" in attempt.output


class TestFormatRetryOutput:
    def test_full(self):
        out = format_retry_output("first\n", "removed x", "second\n")
        assert out == (
            "first\n"
            "\n"
            "(uca) removed x\n"
            "(uca) retrying npm after ENOTEMPTY\n"
            "second"
        )

    def test_without_cleanup(self):
        out = format_retry_output("first", "", "second")
        assert "(uca) removed" not in out
        assert out.endswith("(uca) retrying npm after ENOTEMPTY\nsecond")

    def test_blank_sides(self):
        assert format_retry_output("", "x", "second") == "second"
        assert format_retry_output("first\n", "x", "  ") == "first"
