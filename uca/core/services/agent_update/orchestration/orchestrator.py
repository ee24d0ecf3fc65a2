"""
L5 Orchestration — Run pipeline.

Ties the layers together for one run:

    resolve every agent → bind to slots → batch → publish detect events
      → settle skips / dry-run previews → schedule the real updates

The returned list has exactly one final ``UpdateResult`` per agent, in
input order.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Sequence

from uca.core.models.agent import Agent, is_node_kind
from uca.core.models.event import Phase, UpdateEvent
from uca.core.models.options import RunOptions
from uca.core.models.plan import AgentWork, UpdateTask
from uca.core.models.result import (
    REASON_DRY_RUN,
    REASON_MANUAL_INSTALL,
    REASON_MISSING,
    STATUS_FAILED,
    STATUS_SKIPPED,
    STATUS_UPDATED,
    UpdateResult,
)
from uca.core.services.agent_update.detection.environment import EnvironmentProbe
from uca.core.services.agent_update.domain.batching import build_tasks
from uca.core.services.agent_update.domain.versions import format_version_with_token
from uca.core.services.agent_update.execution.subprocess_runner import (
    CommandOutcome,
    run_command,
)
from uca.core.services.agent_update.execution.version_probe import (
    get_version,
    node_latest_version,
)
from uca.core.services.agent_update.orchestration.scheduler import Scheduler, base_result
from uca.core.services.agent_update.resolver.strategy_resolution import resolve_update
from uca.core.services.event_bus import EventBus

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandOutcome]


def plan_work(agents: Sequence[Agent], probe: EnvironmentProbe) -> list[AgentWork]:
    """Resolve every agent and bind it to its result slot."""
    works: list[AgentWork] = []
    for index, agent in enumerate(agents):
        resolution = resolve_update(agent, probe)
        works.append(AgentWork(
            agent=agent,
            index=index,
            resolution=resolution,
            visible=resolution.resolved or resolution.reason == REASON_MANUAL_INSTALL,
            node_package=agent.node_package if is_node_kind(resolution.kind) else "",
        ))
    return works


def plan_tasks(works: Sequence[AgentWork]) -> tuple[list[UpdateTask], list[AgentWork]]:
    """Batch *works* into tasks; also return the works with final commands bound."""
    tasks = build_tasks(works)
    bound = {w.index: w for task in tasks for w in task.agents}
    return tasks, [bound.get(w.index, w) for w in works]


def _dry_run_result(
    work: AgentWork,
    probe: EnvironmentProbe,
    *,
    runner: Runner,
    cancel: threading.Event | None,
) -> UpdateResult:
    before = get_version(work.agent, probe, work.method, runner=runner, cancel=cancel)
    after = before
    if is_node_kind(work.resolution.kind):
        latest = node_latest_version(
            work.resolution.kind, work.node_package, runner=runner, cancel=cancel,
        )
        if latest:
            after = format_version_with_token(before, latest) or latest
    return base_result(work).model_copy(update={
        "status": STATUS_UPDATED,
        "reason": REASON_DRY_RUN,
        "before": before,
        "after": after,
    })


def run_all(
    agents: Sequence[Agent],
    probe: EnvironmentProbe,
    options: RunOptions,
    bus: EventBus,
    *,
    runner: Runner = run_command,
    cancel: threading.Event | None = None,
) -> list[UpdateResult]:
    """Update *agents* and return one final result per agent, in order.

    Args:
        agents: Selected catalog entries.
        probe: Fresh probe for this run.
        options: Run options.
        bus: Event stream; every agent gets detect and finish events.
        runner: Command runner, ``run_command`` compatible.
        cancel: Run-scoped cancellation flag.
    """
    cancel = cancel or threading.Event()
    results: list[UpdateResult | None] = [None] * len(agents)

    works = plan_work(agents, probe)
    tasks, works = plan_tasks(works)
    logger.debug("%d agent(s), %d task(s)", len(works), len(tasks))

    def emit(work: AgentWork, phase: Phase, res: UpdateResult) -> None:
        bus.publish(UpdateEvent(
            index=work.index,
            phase=phase,
            result=res.model_copy(),
            timestamp=time.monotonic(),
            visible=work.visible,
        ))

    # ── Detect, skips, dry-run ──
    for work in works:
        res = base_result(work)

        if not work.resolution.resolved:
            res = res.model_copy(update={
                "status": STATUS_SKIPPED,
                "reason": work.resolution.reason or REASON_MISSING,
            })
            results[work.index] = res
            emit(work, Phase.DETECT, res)
            emit(work, Phase.FINISH, res)
            continue

        emit(work, Phase.DETECT, res)

        if options.dry_run:
            res = _dry_run_result(work, probe, runner=runner, cancel=cancel)
            results[work.index] = res
            emit(work, Phase.FINISH, res)

    # ── Real updates ──
    if not options.dry_run:
        Scheduler(probe, options, bus, runner=runner, cancel=cancel).run(tasks, results)

    final: list[UpdateResult] = []
    for work, res in zip(works, results):
        if res is None:
            # Only reachable if a worker died before recording.
            logger.error("%s: no result recorded", work.agent.name)
            res = base_result(work).model_copy(update={"status": STATUS_FAILED, "reason": "internal error"})
        final.append(res)
    return final
