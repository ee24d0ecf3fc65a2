"""
Update use case — update every selected coding agent.

The full vertical slice from user intent to results: select agents,
probe the environment, resolve, batch, schedule, and report. The
presentation layer (plain lines, live dashboard, JSON) sits on top and
only ever sees the ``EventBus`` and the returned ``UpdateRunReport``.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from uca.core.models.agent import Agent
from uca.core.models.options import RunOptions
from uca.core.models.result import UpdateResult
from uca.core.services.agent_update.data.catalog import default_agents
from uca.core.services.agent_update.detection.environment import EnvironmentProbe
from uca.core.services.agent_update.execution.subprocess_runner import (
    CommandOutcome,
    run_command,
)
from uca.core.services.agent_update.orchestration.orchestrator import run_all
from uca.core.services.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class UpdateRunReport:
    """Result of one update run."""

    results: list[UpdateResult] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)
    duration_s: float = 0.0
    dry_run: bool = False
    canceled: bool = False

    @property
    def has_failures(self) -> bool:
        return any(r.failed for r in self.results)

    @property
    def exit_code(self) -> int:
        """1 iff any agent failed."""
        return 1 if self.has_failures else 0

    def counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for r in self.results:
            counts[r.status] = counts.get(r.status, 0) + 1
        return counts

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "canceled": self.canceled,
            "duration_s": round(self.duration_s, 3),
            "counts": self.counts(),
            "unknown": list(self.unknown),
            "results": [r.model_dump() for r in self.results],
        }


def filter_agents(
    agents: Sequence[Agent],
    only: Sequence[str] = (),
    skip: Sequence[str] = (),
) -> tuple[list[Agent], list[str]]:
    """Apply ``--only`` / ``--skip`` (case-insensitive).

    Returns:
        ``(selected, unknown)``: selected agents in catalog order, and
        the sorted names from either list that match no agent.
    """
    only_set = {n.strip().lower() for n in only if n.strip()}
    skip_set = {n.strip().lower() for n in skip if n.strip()}
    known = {a.name.lower() for a in agents}

    unknown = sorted((only_set | skip_set) - known)
    selected = [
        a for a in agents
        if (not only_set or a.name.lower() in only_set) and a.name.lower() not in skip_set
    ]
    return selected, unknown


def run_update(
    options: RunOptions,
    *,
    agents: Sequence[Agent] | None = None,
    bus: EventBus | None = None,
    probe: EnvironmentProbe | None = None,
    runner: Callable[..., CommandOutcome] = run_command,
    cancel: threading.Event | None = None,
) -> UpdateRunReport:
    """Run one update pass.

    Args:
        options: Merged config-file and CLI options.
        agents: Catalog to select from (default: built-in catalog).
        bus: Event stream; closed when the run ends.
        probe: Pre-built (possibly prefetched) probe; a fresh one by default.
        runner: Command runner, ``run_command`` compatible.
        cancel: Run-scoped cancellation flag (set by signal handlers).

    Returns:
        UpdateRunReport with one result per selected agent.
    """
    cancel = cancel or threading.Event()
    bus = bus or EventBus()
    catalog = list(agents) if agents is not None else default_agents()

    selected, unknown = filter_agents(catalog, options.only, options.skip)
    if unknown:
        logger.warning("unknown agent name(s): %s", ", ".join(unknown))

    probe = probe or EnvironmentProbe(runner=runner, cancel=cancel)

    start = time.monotonic()
    try:
        results = run_all(selected, probe, options, bus, runner=runner, cancel=cancel)
    finally:
        bus.close()

    report = UpdateRunReport(
        results=results,
        unknown=unknown,
        duration_s=time.monotonic() - start,
        dry_run=options.dry_run,
        canceled=cancel.is_set(),
    )
    logger.info("run finished in %.1fs: %s", report.duration_s, report.counts())
    return report
