"""
Tests for the plain-text run report.
"""

from uca.core.models.options import RunOptions
from uca.core.models.result import UpdateResult
from uca.core.use_cases.update import UpdateRunReport
from uca.ui.cli.report import (
    explain_lines,
    fmt_duration,
    format_log,
    format_result,
    log_groups,
    print_report,
    result_lines,
    summary_lines,
)


def _res(agent, status, **kw):
    return UpdateResult(agent=agent, status=status, **kw)


# ── Result lines ─────────────────────────────────────────────────────


class TestFormatResult:
    def test_updated(self):
        res = _res("codex", "updated", before="0.20.0", after="0.21.1", duration_s=12.4)
        assert format_result(res) == "codex: 0.20.0 -> 0.21.1 (12s)"

    def test_unchanged(self):
        res = _res("amp", "unchanged", before="1.0", after="1.0", duration_s=3)
        assert format_result(res) == "amp: unchanged 1.0 -> 1.0 (3s)"

    def test_unknown_versions(self):
        res = _res("amp", "updated")
        assert format_result(res) == "amp: unknown -> unknown (0s)"

    def test_skipped(self):
        assert format_result(_res("cline", "skipped", reason="missing vscode")) == "cline: skipped (missing vscode)"

    def test_failed_with_reason(self):
        res = _res("gemini", "failed", reason="network", before="0.1.0", after="0.1.0", duration_s=7)
        assert format_result(res) == "gemini: failed (network; 0.1.0 -> 0.1.0 (7s))"

    def test_failed_without_reason(self):
        res = _res("gemini", "failed", before="0.1.0", after="0.1.0", duration_s=7)
        assert format_result(res) == "gemini: failed (0.1.0 -> 0.1.0 (7s))"

    def test_dry_run_shows_command(self):
        res = _res("codex", "updated", reason="dry-run", update_cmd="npm install -g @openai/codex@latest")
        assert format_result(res, dry_run=True) == "codex: npm install -g @openai/codex@latest"

    def test_fmt_duration_rounds(self):
        assert fmt_duration(2.6) == "3s"


class TestResultLines:
    def test_quiet(self):
        assert result_lines([_res("a", "updated")], RunOptions(quiet=True)) == []

    def test_explain(self):
        results = [_res("a", "skipped", reason="missing", explain="nothing found"), _res("b", "skipped", reason="missing")]
        lines = result_lines(results, RunOptions(explain=True))
        assert lines == ["a: skipped (missing)", "  info: nothing found", "b: skipped (missing)"]

    def test_explain_lines(self):
        results = [_res("a", "updated", explain="via npm"), _res("b", "updated")]
        assert explain_lines(results) == ["a: via npm"]


# ── Logs ─────────────────────────────────────────────────────────────


class TestLogGroups:
    def test_failed_always_shown(self):
        results = [_res("a", "failed", log="boom", update_cmd="x"), _res("b", "updated", log="ok")]
        assert log_groups(results, RunOptions()) == [(["a"], "boom")]

    def test_verbose_adds_updated(self):
        results = [_res("a", "failed", log="boom", update_cmd="x"), _res("b", "updated", log="ok", update_cmd="y")]
        groups = log_groups(results, RunOptions(verbose=True))
        assert groups == [(["a"], "boom"), (["b"], "ok")]

    def test_identical_batch_logs_grouped(self):
        results = [
            _res("codex", "updated", log="added 2", update_cmd="npm install -g a b"),
            _res("amp", "updated", log="added 2", update_cmd="npm install -g a b"),
        ]
        assert log_groups(results, RunOptions(verbose=True)) == [(["codex", "amp"], "added 2")]

    def test_dry_run_has_no_logs(self):
        assert log_groups([_res("a", "failed", log="x")], RunOptions(dry_run=True)) == []

    def test_format_log(self):
        assert format_log(["a", "b"], "  output\n") == ["==> a, b", "output"]
        assert format_log(["a"], "") == ["==> a", "(no output)"]


# ── Summary ──────────────────────────────────────────────────────────


class TestSummaryLines:
    def test_order_and_labels(self):
        results = [
            _res("f1", "failed"),
            _res("u1", "updated"),
            _res("s1", "skipped", reason="missing"),
            _res("c1", "unchanged"),
            _res("m1", "skipped", reason="manual install"),
            _res("v1", "skipped", reason="missing vscode"),
            _res("b1", "skipped", reason="missing bun"),
            _res("u2", "updated"),
        ]
        assert summary_lines(results, ["zed"]) == [
            "updated: u1 u2",
            "unchanged: c1",
            "skipped (missing): s1",
            "skipped (missing bun): b1",
            "skipped (missing vscode): v1",
            "skipped (manual install): m1",
            "skipped (unknown): zed",
            "failed: f1",
        ]

    def test_empty_groups_omitted(self):
        assert summary_lines([_res("a", "updated")]) == ["updated: a"]
        assert summary_lines([]) == []


# ── Output ───────────────────────────────────────────────────────────


class TestPrintReport:
    def _report(self):
        return UpdateRunReport(results=[
            _res("codex", "updated", before="1", after="2", explain="via npm"),
            _res("amp", "failed", reason="exit 1", log="npm error", update_cmd="npm i"),
        ])

    def test_plain(self, capsys):
        print_report(self._report(), RunOptions())
        out = capsys.readouterr().out
        assert "codex: 1 -> 2 (0s)" in out
        assert "==> amp" in out
        assert "npm error" in out
        assert "failed: amp" in out

    def test_dashboard_mode_skips_result_lines(self, capsys):
        print_report(self._report(), RunOptions(explain=True), dashboard=True)
        out = capsys.readouterr().out
        assert "codex: 1 -> 2" not in out
        assert "codex: via npm" in out
        assert "updated: codex" in out
