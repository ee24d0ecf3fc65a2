"""
Agent and UpdateStrategy models — the static catalog contract.

An Agent is a third-party CLI the updater knows how to detect and
update. Its strategies are ordered: list position is priority, and the
resolver walks them front to back until one is usable on this machine.

Both models are frozen. The catalog is loaded once and never mutated
during a run.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ManagerKind(StrEnum):
    """Install mechanisms an agent can be updated through."""

    NATIVE = "native"
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"
    BREW = "brew"
    PIP = "pip"
    UV = "uv"
    VSCODE = "vscode"


# Node-style global package managers, in probe order.
NODE_KINDS: tuple[ManagerKind, ...] = (
    ManagerKind.NPM,
    ManagerKind.PNPM,
    ManagerKind.YARN,
    ManagerKind.BUN,
)

# Kinds that mutate shared global state and must never run concurrently
# with themselves.
LOCKED_KINDS: frozenset[ManagerKind] = frozenset({
    *NODE_KINDS,
    ManagerKind.BREW,
    ManagerKind.PIP,
    ManagerKind.UV,
    ManagerKind.VSCODE,
})


def is_node_kind(kind: ManagerKind | str | None) -> bool:
    """Whether *kind* is one of the node-family package managers."""
    return kind in NODE_KINDS


def should_lock_kind(kind: ManagerKind | str | None) -> bool:
    """Whether tasks of *kind* need the per-kind mutex."""
    return kind in LOCKED_KINDS


class UpdateStrategy(BaseModel):
    """One candidate way of updating an agent.

    ``command`` is used verbatim when set. Otherwise the command is
    derived from ``kind`` and ``package`` (or ``extension_id`` for the
    editor-extension manager).
    """

    model_config = ConfigDict(frozen=True)

    kind: ManagerKind
    command: tuple[str, ...] = ()
    package: str = ""
    extension_id: str = ""


class Agent(BaseModel):
    """A CLI tool known to the updater."""

    model_config = ConfigDict(frozen=True)

    name: str
    binary: str = ""                        # looked up on PATH; empty = no binary
    version_command: tuple[str, ...] = ()
    strategies: tuple[UpdateStrategy, ...] = ()
    extension_id: str = ""                  # editor extension, for version lookup
    requires: ManagerKind | None = None     # manager that must exist at all

    @property
    def node_package(self) -> str:
        """Package name of the first node-family strategy that declares one."""
        for strategy in self.strategies:
            if is_node_kind(strategy.kind) and strategy.package:
                return strategy.package
        return ""
