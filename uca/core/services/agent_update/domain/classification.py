"""
L1 Domain — Update failure classification (pure).

Maps a failed command and its captured output to a short reason tag
plus a remediation hint, walking ``FAILURE_RULES`` in order. First
match wins.

No I/O, no subprocess, no imports of L2+ modules.
"""

from __future__ import annotations

from typing import Sequence

from uca.core.models.result import REASON_CANCELED, REASON_TIMEOUT
from uca.core.services.agent_update.data.failure_markers import (
    CANCELED_HINT,
    CMD_BREW,
    CMD_NPM_GLOBAL_MUTATE,
    FAILURE_RULES,
    TIMEOUT_HINT,
)


# ── Command predicates ──────────────────────────────────────────

def is_npm_global_mutate(args: Sequence[str]) -> bool:
    """``npm install …`` / ``npm update …``: commands that rewrite the global prefix."""
    return len(args) >= 2 and args[0] == "npm" and args[1] in ("install", "update")


def _command_matches(predicate: str | None, args: Sequence[str]) -> bool:
    if not predicate:
        return True
    if predicate == CMD_NPM_GLOBAL_MUTATE:
        return is_npm_global_mutate(args)
    if predicate == CMD_BREW:
        return bool(args) and args[0] == "brew"
    return False


# ── Rule matching ───────────────────────────────────────────────

def _rule_matches(rule: dict, args: Sequence[str], output: str, lower: str) -> bool:
    if not _command_matches(rule.get("command"), args):
        return False
    if any(marker in output for marker in rule.get("markers", ())):
        return True
    if any(marker in lower for marker in rule.get("markers_ci", ())):
        return True
    return any(
        all(part in lower for part in group)
        for group in rule.get("all_of_ci", ())
    )


def classify_failure(args: Sequence[str], output: str) -> tuple[str, str]:
    """Classify a failed update by its output.

    Returns:
        ``(reason, hint)``; both empty when no rule matches, in which
        case the caller falls back to ``exit <code>``.
    """
    lower = output.lower()
    for rule in FAILURE_RULES:
        if _rule_matches(rule, args, output, lower):
            return rule["reason"], rule.get("hint", "")
    return "", ""


def should_retry_npm(args: Sequence[str], output: str) -> bool:
    """Whether a failed command is worth exactly one retry.

    True when any ``retry_once`` rule matches, even one that
    ``classify_failure`` would not reach because an earlier rule wins
    (an ENOTEMPTY next to a quota error is still retried).
    """
    lower = output.lower()
    return any(
        rule.get("retry_once") and _rule_matches(rule, args, output, lower)
        for rule in FAILURE_RULES
    )


def describe_failure(
    args: Sequence[str],
    output: str,
    exit_code: int,
    *,
    timed_out: bool = False,
    canceled: bool = False,
    timeout_s: float = 0.0,
) -> tuple[str, str]:
    """Full failure verdict: structural causes first, then output rules.

    *timed_out* and *canceled* come from the runner, not the exit code:
    an updater that exits 124 or 130 on its own is an ordinary failure.
    A timed-out or interrupted command is reported as such even when
    its partial output happens to contain a known marker.
    """
    if timed_out:
        hint = TIMEOUT_HINT.format(seconds=round(timeout_s)) if timeout_s > 0 else ""
        return REASON_TIMEOUT, hint
    if canceled:
        return REASON_CANCELED, CANCELED_HINT

    reason, hint = classify_failure(args, output)
    if not reason:
        reason = f"exit {exit_code}"
    return reason, hint

