"""
L4 Execution — Update command with retry policy.

Runs one update argv. A failing global npm install that died on the
ENOTEMPTY rename race is retried exactly once, after removing npm's
stale temp directory when that is provably safe. No other failure is
retried here.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from dataclasses import dataclass
from typing import Callable, Sequence

from uca.core.services.agent_update.data.constants import LOG_MARKER
from uca.core.services.agent_update.domain.classification import should_retry_npm
from uca.core.services.agent_update.domain.npm_rename import (
    extract_npm_rename_paths,
    is_safe_npm_rename_target,
)
from uca.core.services.agent_update.execution.subprocess_runner import (
    CommandOutcome,
    run_command,
)

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandOutcome]


@dataclass(frozen=True)
class UpdateAttempt:
    """Result of running an update command, retries included.

    ``output`` is the full log shown to the user; ``classify_output`` is
    the part failure classification should look at (the last attempt).
    """

    output: str
    classify_output: str
    exit_code: int
    duration_s: float
    timed_out: bool = False
    canceled: bool = False
    retried: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def cleanup_npm_enotempty(output: str) -> str:
    """Remove the stale rename destination named in *output*.

    Returns a one-line note for the log, or ``""`` when nothing was
    (or could safely be) removed.
    """
    path, dest = extract_npm_rename_paths(output)
    if not is_safe_npm_rename_target(path, dest):
        return ""
    if not os.path.lexists(dest):
        return ""
    try:
        if os.path.isdir(dest) and not os.path.islink(dest):
            shutil.rmtree(dest)
        else:
            os.remove(dest)
    except OSError as e:
        logger.warning("failed to remove stale npm temp dir %s: %s", dest, e)
        return f"failed to remove stale npm temp dir {dest}: {e}"
    logger.info("removed stale npm temp dir %s", dest)
    return f"removed stale npm temp dir {dest}"


def format_retry_output(first: str, cleanup_msg: str, second: str) -> str:
    """Join the two attempts' logs with ``(uca)`` marker lines."""
    first = first.rstrip("\n")
    cleanup_msg = cleanup_msg.strip()
    second = second.strip()
    if not first:
        return second
    if not second:
        return first
    parts = [first, ""]
    if cleanup_msg:
        parts.append(f"{LOG_MARKER} {cleanup_msg}")
    parts.append(f"{LOG_MARKER} retrying npm after ENOTEMPTY")
    parts.append(second)
    return "\n".join(parts)


def run_update_command(
    args: Sequence[str],
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    runner: Runner = run_command,
) -> UpdateAttempt:
    """Run *args* with the npm ENOTEMPTY retry policy."""
    first = runner(list(args), timeout=timeout, cancel=cancel, merge_stderr=True)
    if first.ok or first.timed_out or first.canceled or not should_retry_npm(args, first.output):
        return UpdateAttempt(
            output=first.output,
            classify_output=first.output,
            exit_code=first.exit_code,
            duration_s=first.duration_s,
            timed_out=first.timed_out,
            canceled=first.canceled,
        )

    cleanup_msg = cleanup_npm_enotempty(first.output)
    logger.info("retrying after npm ENOTEMPTY: %s", " ".join(args))
    second = runner(list(args), timeout=timeout, cancel=cancel, merge_stderr=True)
    classify = second.output if second.output.strip() else first.output
    return UpdateAttempt(
        output=format_retry_output(first.output, cleanup_msg, second.output),
        classify_output=classify,
        exit_code=second.exit_code,
        duration_s=first.duration_s + second.duration_s,
        timed_out=second.timed_out,
        canceled=second.canceled,
        retried=True,
    )
