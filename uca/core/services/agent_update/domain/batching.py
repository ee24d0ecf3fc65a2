"""
L1 Domain — Task batching (pure).

Turns resolved work items into schedulable tasks. Node-family updates
of the same manager are merged into ONE install command per manager,
because the managers serialize on their global prefix anyway and a
single ``npm install -g a@latest b@latest`` is much faster than two.

Ordering is deterministic: singleton tasks in slot order first, then
one batch per node manager in ``NODE_KINDS`` order.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from uca.core.models.agent import NODE_KINDS, ManagerKind, is_node_kind
from uca.core.models.plan import AgentWork, UpdateTask
from uca.core.services.agent_update.data.constants import NODE_INSTALL_COMMANDS

logger = logging.getLogger(__name__)


def node_batch_command(kind: ManagerKind | str, packages: Iterable[str]) -> tuple[str, ...]:
    """``<install> p1@latest p2@latest …`` for a node manager.

    Returns an empty tuple for non-node kinds. Blank package names are
    dropped; order is preserved.
    """
    prefix = NODE_INSTALL_COMMANDS.get(kind)  # type: ignore[call-overload]
    if prefix is None:
        return ()
    specs = [f"{pkg.strip()}@latest" for pkg in packages if pkg.strip()]
    return (*prefix, *specs)


def build_tasks(works: Iterable[AgentWork]) -> list[UpdateTask]:
    """Group resolved work into tasks.

    Unresolved (skipped) works produce no task. Every work inside a
    returned task carries its final ``update_cmd``.
    """
    singles: list[UpdateTask] = []
    groups: dict[ManagerKind, list[AgentWork]] = {}

    for work in sorted(works, key=lambda w: w.index):
        resolution = work.resolution
        if not resolution.resolved:
            continue
        kind = resolution.kind
        if is_node_kind(kind) and work.node_package.strip():
            groups.setdefault(kind, []).append(work)
            continue
        bound = dataclasses.replace(work, update_cmd=resolution.command)
        singles.append(UpdateTask(kind=kind, command=bound.update_cmd, agents=(bound,)))

    batches: list[UpdateTask] = []
    for kind in NODE_KINDS:
        members = groups.get(kind)
        if not members:
            continue
        packages = sorted({w.node_package.strip() for w in members})
        command = node_batch_command(kind, packages)
        bound = tuple(dataclasses.replace(w, update_cmd=command) for w in members)
        batches.append(UpdateTask(kind=kind, command=command, agents=bound))
        logger.debug("batched %d %s update(s): %s", len(bound), kind, ", ".join(packages))

    return singles + batches
