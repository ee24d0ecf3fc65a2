"""
L5 Orchestration — Concurrency scheduler.

Runs update tasks on a fixed pool of worker threads draining one shared
queue. Tasks of the same manager kind are serialized by a per-kind lock
(two ``npm install -g`` runs corrupt the global prefix); tasks of
different kinds run side by side.

Per task:

    lock kind → probe "before" versions → emit start → run command
      → [batch failed? re-run each agent alone] → probe "after"
      → write results → emit finish

Results go into an index-addressed list owned by the caller. Each slot
is written exactly once, by the one worker that owns the task.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Sequence

from uca.core.models.agent import is_node_kind, should_lock_kind
from uca.core.models.event import Phase, UpdateEvent
from uca.core.models.options import RunOptions
from uca.core.models.plan import AgentWork, UpdateTask, cmd_string
from uca.core.models.result import (
    REASON_CANCELED,
    STATUS_FAILED,
    STATUS_UNCHANGED,
    STATUS_UPDATED,
    STATUS_UPDATING,
    UNKNOWN_VERSION,
    UpdateResult,
)
from uca.core.reliability.kind_locks import KindLocks
from uca.core.services.agent_update.data.constants import LOG_MARKER
from uca.core.services.agent_update.data.failure_markers import (
    BATCH_FALLBACK_HINT,
    CANCELED_HINT,
)
from uca.core.services.agent_update.detection.environment import EnvironmentProbe
from uca.core.services.agent_update.domain.classification import describe_failure
from uca.core.services.agent_update.execution.subprocess_runner import (
    CommandOutcome,
    run_command,
)
from uca.core.services.agent_update.execution.update_command import (
    UpdateAttempt,
    run_update_command,
)
from uca.core.services.agent_update.execution.version_probe import get_version
from uca.core.services.event_bus import EventBus

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandOutcome]


def effective_concurrency(options: RunOptions, num_tasks: int) -> int:
    """Worker-pool size, clamped to ``[1, num_tasks]``."""
    if options.serial:
        workers = 1
    elif options.safe and options.concurrency == 0:
        workers = 1
    elif options.concurrency > 0:
        workers = options.concurrency
    else:
        workers = num_tasks
    return max(1, min(workers, num_tasks))


def base_result(work: AgentWork) -> UpdateResult:
    """Result skeleton every phase of *work* starts from."""
    return UpdateResult(
        agent=work.agent.name,
        method=work.method,
        explain=work.resolution.explanation,
        update_cmd=cmd_string(work.update_cmd),
    )


def settle_status(before: str, after: str) -> str:
    """``unchanged`` only when both versions are known and equal."""
    if before and after and before == after and before != UNKNOWN_VERSION:
        return STATUS_UNCHANGED
    return STATUS_UPDATED


class Scheduler:
    """Executes ``UpdateTask`` lists for one run.

    Args:
        probe: The run's environment probe (versions, binaries).
        options: Run options (pool size, timeout).
        bus: Where start/finish events are published.
        runner: Command runner, ``run_command`` compatible.
        cancel: Run-scoped cancellation flag.
    """

    def __init__(
        self,
        probe: EnvironmentProbe,
        options: RunOptions,
        bus: EventBus,
        *,
        runner: Runner = run_command,
        cancel: threading.Event | None = None,
        locks: KindLocks | None = None,
    ) -> None:
        self._probe = probe
        self._options = options
        self._bus = bus
        self._runner = runner
        self._cancel = cancel or threading.Event()
        self._locks = locks or KindLocks()

    @property
    def locks(self) -> KindLocks:
        return self._locks

    # ── Pool ────────────────────────────────────────────────────

    def run(self, tasks: Sequence[UpdateTask], results: list[UpdateResult | None]) -> None:
        """Run every task; returns when all of them have finished."""
        if not tasks:
            return
        pending: queue.Queue[UpdateTask] = queue.Queue()
        for task in tasks:
            pending.put(task)

        workers = effective_concurrency(self._options, len(tasks))
        logger.debug("scheduling %d task(s) on %d worker(s)", len(tasks), workers)
        threads = [
            threading.Thread(
                target=self._worker,
                args=(pending, results),
                name=f"uca-worker-{i}",
                daemon=True,
            )
            for i in range(workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def _worker(self, pending: queue.Queue, results: list[UpdateResult | None]) -> None:
        while True:
            try:
                task = pending.get_nowait()
            except queue.Empty:
                return
            try:
                self.run_task(task, results)
            except Exception as e:
                logger.exception("task %s crashed", cmd_string(task.command))
                self._fail_all(task, results, reason="internal error", log=str(e))

    # ── Task ────────────────────────────────────────────────────

    def run_task(self, task: UpdateTask, results: list[UpdateResult | None]) -> None:
        """Run one task under its kind lock and record every agent's result."""
        if not task.agents:
            return
        lock_kind = str(task.kind) if should_lock_kind(task.kind) else ""
        with self._locks.hold(lock_kind):
            if self._cancel.is_set():
                self._fail_all(task, results, reason=REASON_CANCELED, hint=CANCELED_HINT)
                return

            prepared = [
                base_result(work).model_copy(update={
                    "status": STATUS_UPDATING,
                    "before": self._version(work),
                })
                for work in task.agents
            ]
            started = time.monotonic()
            for work, res in zip(task.agents, prepared):
                self._emit(work, Phase.START, res, started)

            attempt = self._attempt(task.command)

            # An interrupted batch is not retried; each agent reports canceled.
            if not attempt.ok and not attempt.canceled and task.batched and is_node_kind(task.kind):
                logger.info("batch %s failed (exit %d); retrying individually",
                            task.kind, attempt.exit_code)
                for work, res in zip(task.agents, prepared):
                    self._run_single_after_batch(work, res, attempt, results)
                return

            for work, res in zip(task.agents, prepared):
                res = res.model_copy(update={
                    "duration_s": attempt.duration_s,
                    "log": attempt.output,
                    "after": self._version(work),
                })
                res = self._conclude(res, task.command, attempt)
                self._record(work, res, results)

    def _run_single_after_batch(
        self,
        work: AgentWork,
        res: UpdateResult,
        batch: UpdateAttempt,
        results: list[UpdateResult | None],
    ) -> None:
        res = res.with_hint(BATCH_FALLBACK_HINT)
        single = self._attempt(work.single_cmd)

        log = batch.output.rstrip("\n")
        if log.strip() and single.output.strip():
            log += f"\n\n{LOG_MARKER} retrying individually after batch failure\n"
        elif log.strip():
            log += "\n"
        log += single.output.strip()

        res = res.model_copy(update={
            "duration_s": single.duration_s,
            "log": log,
            "after": self._version(work),
        })
        self._record(work, self._conclude(res, work.single_cmd, single), results)

    # ── Helpers ─────────────────────────────────────────────────

    def _attempt(self, command: Sequence[str]) -> UpdateAttempt:
        timeout = self._options.timeout or None
        return run_update_command(
            command, timeout=timeout, cancel=self._cancel, runner=self._runner,
        )

    def _version(self, work: AgentWork) -> str:
        return get_version(
            work.agent, self._probe, work.method,
            runner=self._runner, cancel=self._cancel,
        )

    def _conclude(
        self,
        res: UpdateResult,
        command: Sequence[str],
        attempt: UpdateAttempt,
    ) -> UpdateResult:
        if attempt.ok:
            return res.model_copy(update={"status": settle_status(res.before, res.after)})
        reason, hint = describe_failure(
            command,
            attempt.classify_output,
            attempt.exit_code,
            timed_out=attempt.timed_out,
            canceled=attempt.canceled,
            timeout_s=self._options.timeout,
        )
        return res.model_copy(update={"status": STATUS_FAILED, "reason": reason}).with_hint(hint)

    def _fail_all(
        self,
        task: UpdateTask,
        results: list[UpdateResult | None],
        *,
        reason: str,
        hint: str = "",
        log: str = "",
    ) -> None:
        for work in task.agents:
            if results[work.index] is not None:
                continue
            res = base_result(work).model_copy(update={
                "status": STATUS_FAILED,
                "reason": reason,
                "log": log,
            }).with_hint(hint)
            self._record(work, res, results)

    def _record(
        self,
        work: AgentWork,
        res: UpdateResult,
        results: list[UpdateResult | None],
    ) -> None:
        results[work.index] = res
        self._emit(work, Phase.FINISH, res, time.monotonic())
        logger.info("%s: %s%s", res.agent, res.status, f" ({res.reason})" if res.reason else "")

    def _emit(self, work: AgentWork, phase: Phase, res: UpdateResult, ts: float) -> None:
        self._bus.publish(UpdateEvent(
            index=work.index,
            phase=phase,
            result=res.model_copy(),
            timestamp=ts,
            visible=work.visible,
        ))
