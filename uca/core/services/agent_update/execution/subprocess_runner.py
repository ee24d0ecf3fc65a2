"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where child processes are spawned for probes, version
checks and updates. Timeouts, cancellation and process-group cleanup
are centralised here.

Never raises: every outcome (success, non-zero exit, launch error,
timeout, interrupt) comes back as a ``CommandOutcome``.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Mapping, Sequence

from uca.core.models.plan import cmd_string
from uca.core.services.agent_update.data.constants import EXIT_CANCELED, EXIT_TIMEOUT

logger = logging.getLogger(__name__)

# How often a waiting runner wakes up to check the deadline / cancel flag.
_POLL_INTERVAL = 0.1

# Time a terminated process group gets before SIGKILL.
_KILL_GRACE = 3.0

_POSIX = os.name == "posix"


@dataclass(frozen=True)
class CommandOutcome:
    """What a finished (or abandoned) child process left behind."""

    output: str
    exit_code: int
    duration_s: float
    timed_out: bool = False
    canceled: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _terminate(proc: subprocess.Popen) -> None:
    """Stop *proc* and everything it spawned. SIGTERM first, then SIGKILL."""
    if proc.poll() is not None:
        return
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGTERM)
        else:
            proc.terminate()
    except (ProcessLookupError, PermissionError):
        return
    try:
        proc.wait(timeout=_KILL_GRACE)
        return
    except subprocess.TimeoutExpired:
        pass
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        pass


def run_command(
    args: Sequence[str],
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    merge_stderr: bool = True,
    env: Mapping[str, str] | None = None,
) -> CommandOutcome:
    """Run *args* to completion, a deadline, or cancellation.

    Args:
        args: argv; ``args[0]`` is looked up on PATH.
        timeout: Seconds before the child is killed. ``None`` or ``0``
            means no deadline.
        cancel: Run-scoped cancellation flag; when set, the child is
            killed and the outcome is marked ``canceled``.
        merge_stderr: Interleave stderr into ``output`` (update
            commands). When False, stderr is discarded (probes that
            parse stdout).
        env: Full environment for the child; inherits ours when None.

    Returns:
        ``CommandOutcome``. Timeouts exit with 124, interrupts with
        130, launch errors with 1 and the error message as output.
    """
    args = list(args)
    start = time.monotonic()
    if not args:
        return CommandOutcome(output="empty command", exit_code=1, duration_s=0.0)
    if cancel is not None and cancel.is_set():
        return CommandOutcome(output="", exit_code=EXIT_CANCELED, duration_s=0.0, canceled=True)

    logger.debug("run: %s (timeout=%s)", cmd_string(args), timeout or "none")
    try:
        proc = subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.DEVNULL,
            text=True,
            errors="replace",
            env=dict(env) if env is not None else None,
            start_new_session=_POSIX,
        )
    except OSError as e:
        logger.debug("launch failed: %s: %s", args[0], e)
        return CommandOutcome(output=str(e), exit_code=1, duration_s=time.monotonic() - start)

    deadline = start + timeout if timeout else None
    chunks: list[str] = []
    timed_out = canceled = False

    while True:
        wait = _POLL_INTERVAL
        if deadline is not None:
            wait = max(0.0, min(wait, deadline - time.monotonic()))
        try:
            out, _ = proc.communicate(timeout=wait)
            chunks.append(out or "")
            break
        except subprocess.TimeoutExpired:
            pass
        if cancel is not None and cancel.is_set():
            canceled = True
        elif deadline is not None and time.monotonic() >= deadline:
            timed_out = True
        else:
            continue

        _terminate(proc)
        try:
            out, _ = proc.communicate(timeout=_KILL_GRACE)
            chunks.append(out or "")
        except subprocess.TimeoutExpired:
            # A grandchild outside the group still holds the pipe open.
            logger.debug("output pipe still open after kill: %s", args[0])
        break

    duration = time.monotonic() - start
    output = "".join(chunks)
    if timed_out:
        logger.debug("timed out after %.1fs: %s", duration, args[0])
        return CommandOutcome(output, EXIT_TIMEOUT, duration, timed_out=True)
    if canceled:
        logger.debug("canceled after %.1fs: %s", duration, args[0])
        return CommandOutcome(output, EXIT_CANCELED, duration, canceled=True)

    code = proc.returncode
    if code is None:
        code = 1
    elif code < 0:
        # Killed by a signal from outside.
        code = 128 - code
    logger.debug("exit %d after %.1fs: %s", code, duration, args[0])
    return CommandOutcome(output, code, duration)
