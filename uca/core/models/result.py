"""
UpdateResult — the per-agent outcome of a run.

Like the adapter Receipt it replaces, a result NEVER carries an
exception: every failure is captured as ``status="failed"`` plus a
reason tag and an optional hint appended to ``explain``.

A result is written exactly once per agent per run, into the agent's
slot of an index-addressed list. Intermediate snapshots (``pending``,
``updating``) only ever travel inside events.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

STATUS_PENDING = "pending"
STATUS_UPDATING = "updating"
STATUS_UPDATED = "updated"
STATUS_UNCHANGED = "unchanged"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

FINAL_STATUSES = frozenset({STATUS_UPDATED, STATUS_UNCHANGED, STATUS_SKIPPED, STATUS_FAILED})

# ── Skip reasons (closed set) ───────────────────────────────────
REASON_MISSING = "missing"
REASON_MISSING_VSCODE = "missing vscode"
REASON_MANUAL_INSTALL = "manual install"

# ── Structural failure reasons ──────────────────────────────────
REASON_TIMEOUT = "timeout"
REASON_CANCELED = "canceled"

REASON_DRY_RUN = "dry-run"

UNKNOWN_VERSION = "unknown"

Status = Literal["pending", "updating", "updated", "unchanged", "skipped", "failed"]


def missing_manager_reason(manager: str) -> str:
    """Skip reason for an agent whose required manager is absent."""
    return f"missing {manager}"


def append_hint(detail: str, hint: str) -> str:
    """Append ``hint: ...`` to an explanation line."""
    hint = hint.strip()
    if not hint:
        return detail
    if not detail.strip():
        return f"hint: {hint}"
    return f"{detail}; hint: {hint}"


class UpdateResult(BaseModel):
    """Outcome (or in-flight snapshot) of updating one agent."""

    agent: str
    status: Status = "pending"
    reason: str = ""
    before: str = ""
    after: str = ""
    duration_s: float = 0.0
    log: str = ""
    update_cmd: str = ""
    method: str = ""
    explain: str = ""

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED

    @property
    def skipped(self) -> bool:
        return self.status == STATUS_SKIPPED

    @property
    def final(self) -> bool:
        """Whether the status is terminal."""
        return self.status in FINAL_STATUSES

    def with_hint(self, hint: str) -> UpdateResult:
        """Return a copy with *hint* appended to the explanation."""
        return self.model_copy(update={"explain": append_hint(self.explain, hint)})
