"""
Plain-text run report — result lines, grouped logs, summary.

Every ``format_*`` / ``*_lines`` function is pure and returns strings;
``print_report`` is the only place that writes (via ``click.echo``).
"""

from __future__ import annotations

from typing import Iterable, Sequence

import click

from uca.core.models.options import RunOptions
from uca.core.models.result import (
    REASON_DRY_RUN,
    REASON_MANUAL_INSTALL,
    REASON_MISSING_VSCODE,
    STATUS_FAILED,
    STATUS_SKIPPED,
    STATUS_UNCHANGED,
    STATUS_UPDATED,
    UpdateResult,
)
from uca.core.services.agent_update.domain.versions import safe_version
from uca.core.use_cases.update import UpdateRunReport


def fmt_duration(seconds: float) -> str:
    return f"{round(seconds)}s"


# ── Per-agent lines ─────────────────────────────────────────────

def format_result(res: UpdateResult, *, dry_run: bool = False) -> str:
    """One line per agent, e.g. ``codex: 0.20.0 -> 0.21.1 (12s)``."""
    name = res.agent
    before = safe_version(res.before)
    after = safe_version(res.after)
    took = fmt_duration(res.duration_s)

    if res.status == STATUS_SKIPPED:
        return f"{name}: skipped ({res.reason})"
    if res.status == STATUS_FAILED:
        reason = res.reason.strip()
        if reason:
            return f"{name}: failed ({reason}; {before} -> {after} ({took}))"
        return f"{name}: failed ({before} -> {after} ({took}))"
    if res.status == STATUS_UPDATED:
        if dry_run or res.reason == REASON_DRY_RUN:
            return f"{name}: {res.update_cmd}"
        return f"{name}: {before} -> {after} ({took})"
    if res.status == STATUS_UNCHANGED:
        return f"{name}: unchanged {before} -> {after} ({took})"
    return f"{name}: unknown"


def format_explain(res: UpdateResult) -> str:
    if not res.explain.strip():
        return ""
    return f"  info: {res.explain}"


def result_lines(results: Iterable[UpdateResult], options: RunOptions) -> list[str]:
    """Plain-mode body: result lines, each optionally followed by its explanation."""
    if options.quiet:
        return []
    lines: list[str] = []
    for res in results:
        lines.append(format_result(res, dry_run=options.dry_run))
        if options.explain:
            explain = format_explain(res)
            if explain:
                lines.append(explain)
    return lines


def explain_lines(results: Iterable[UpdateResult]) -> list[str]:
    """``name: explanation`` lines printed under the dashboard."""
    return [f"{r.agent}: {r.explain}" for r in results if r.explain.strip()]


# ── Logs ────────────────────────────────────────────────────────

def log_groups(
    results: Iterable[UpdateResult],
    options: RunOptions,
) -> list[tuple[list[str], str]]:
    """Logs worth showing, grouped by identical command, status and output.

    Failed agents always; updated ones with ``--verbose``. A batch that
    failed as a whole therefore prints its log once, under all names.
    """
    if options.dry_run:
        return []
    groups: dict[tuple[str, str, str], tuple[list[str], str]] = {}
    for res in results:
        wanted = res.status == STATUS_FAILED or (options.verbose and res.status == STATUS_UPDATED)
        if not wanted:
            continue
        key = (res.update_cmd, res.status, res.log)
        if key not in groups:
            groups[key] = ([], res.log)
        groups[key][0].append(res.agent)
    return list(groups.values())


def format_log(names: Sequence[str], log: str) -> list[str]:
    body = log.strip()
    return [f"==> {', '.join(names)}", body or "(no output)"]


# ── Summary ─────────────────────────────────────────────────────

def summary_lines(results: Iterable[UpdateResult], unknown: Sequence[str] = ()) -> list[str]:
    """``label: a b c`` lines; empty groups are left out."""
    updated: list[str] = []
    unchanged: list[str] = []
    missing: list[str] = []
    missing_manager: dict[str, list[str]] = {}
    missing_vscode: list[str] = []
    manual: list[str] = []
    failed: list[str] = []

    for res in results:
        if res.status == STATUS_UPDATED:
            updated.append(res.agent)
        elif res.status == STATUS_UNCHANGED:
            unchanged.append(res.agent)
        elif res.status == STATUS_FAILED:
            failed.append(res.agent)
        elif res.status == STATUS_SKIPPED:
            if res.reason == REASON_MISSING_VSCODE:
                missing_vscode.append(res.agent)
            elif res.reason == REASON_MANUAL_INSTALL:
                manual.append(res.agent)
            elif res.reason.startswith("missing "):
                missing_manager.setdefault(res.reason, []).append(res.agent)
            else:
                missing.append(res.agent)

    sections: list[tuple[str, Sequence[str]]] = [
        ("updated", updated),
        ("unchanged", unchanged),
        ("skipped (missing)", missing),
        *((f"skipped ({reason})", names) for reason, names in missing_manager.items()),
        ("skipped (missing vscode)", missing_vscode),
        ("skipped (manual install)", manual),
        ("skipped (unknown)", unknown),
        ("failed", failed),
    ]
    return [f"{label}: {' '.join(names)}" for label, names in sections if names]


# ── Output ──────────────────────────────────────────────────────

def print_report(report: UpdateRunReport, options: RunOptions, *, dashboard: bool = False) -> None:
    """Write everything that follows the run to stdout.

    With a live dashboard the per-agent lines were already shown, so
    only explanations (if asked for) are repeated.
    """
    if dashboard:
        click.echo()
        if options.explain and not options.quiet:
            for line in explain_lines(report.results):
                click.echo(line)
    else:
        for line in result_lines(report.results, options):
            click.echo(line)

    for names, log in log_groups(report.results, options):
        header, body = format_log(names, log)
        click.secho(header, bold=True)
        click.echo(body)

    for line in summary_lines(report.results, report.unknown):
        color = "red" if line.startswith("failed:") else None
        click.secho(line, fg=color)
