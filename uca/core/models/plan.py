"""
Planning models — what the resolver decided and what the scheduler runs.

    Agent ─resolve─▶ ResolvedUpdate ─bind─▶ AgentWork ─batch─▶ UpdateTask

All three are frozen. A stage that needs to change something (the
batcher assigning a combined command) builds a new instance.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field

from uca.core.models.agent import Agent, ManagerKind


def cmd_string(args: tuple[str, ...] | list[str]) -> str:
    """Render an argv for display."""
    return shlex.join(args)


@dataclass(frozen=True)
class ResolvedUpdate:
    """Resolver verdict for one agent: a command, or a skip reason."""

    command: tuple[str, ...] = ()
    kind: ManagerKind | None = None
    reason: str = ""
    explanation: str = ""

    @property
    def resolved(self) -> bool:
        return bool(self.command)

    @classmethod
    def matched(
        cls,
        command: tuple[str, ...],
        kind: ManagerKind,
        explanation: str,
    ) -> ResolvedUpdate:
        return cls(command=tuple(command), kind=kind, explanation=explanation)

    @classmethod
    def skip(cls, reason: str, explanation: str) -> ResolvedUpdate:
        return cls(reason=reason, explanation=explanation)


@dataclass(frozen=True)
class AgentWork:
    """A resolved agent bound to its result slot."""

    agent: Agent
    index: int
    resolution: ResolvedUpdate
    visible: bool = False
    node_package: str = ""
    # Final command to run (may be a batch command).
    update_cmd: tuple[str, ...] = ()

    @property
    def method(self) -> str:
        kind = self.resolution.kind
        return str(kind) if kind else ""

    @property
    def single_cmd(self) -> tuple[str, ...]:
        """Per-agent command, used when a batch has to be split."""
        return self.resolution.command


@dataclass(frozen=True)
class UpdateTask:
    """One schedulable unit: a manager kind, a command, the agents it updates."""

    kind: ManagerKind
    command: tuple[str, ...]
    agents: tuple[AgentWork, ...] = field(default_factory=tuple)

    @property
    def batched(self) -> bool:
        return len(self.agents) > 1
