"""
L2 Resolver — Update strategy resolution.

Walks an agent's strategies in declared order and returns the first one
that is usable on this machine, together with the concrete argv to run
and a one-line explanation for ``--explain``. When nothing matches, the
result is a skip with one of the closed reasons:

    missing vscode      an editor-extension strategy was blocked by a missing editor CLI
    missing <manager>   the agent requires a manager that is absent
    manual install      the binary is on PATH but nothing manages it
    missing             nothing found at all

Resolution only reads the probe, so it is idempotent for a given probe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from uca.core.models.agent import Agent, ManagerKind, UpdateStrategy
from uca.core.models.plan import ResolvedUpdate
from uca.core.models.result import (
    REASON_MANUAL_INSTALL,
    REASON_MISSING,
    REASON_MISSING_VSCODE,
    missing_manager_reason,
)
from uca.core.services.agent_update.data.constants import (
    NODE_INSTALL_COMMANDS,
    UV_TOOL_PYTHON,
)
from uca.core.services.agent_update.detection.environment import EnvironmentProbe

logger = logging.getLogger(__name__)


# ── Command builders ────────────────────────────────────────────

def node_update_command(strategy: UpdateStrategy) -> tuple[str, ...]:
    """``<install> <pkg>@latest`` for a node strategy; explicit commands win.

    ``@latest`` is forced so 0.x CLIs do not get stuck on an old minor.
    """
    if strategy.command:
        return strategy.command
    prefix = NODE_INSTALL_COMMANDS.get(strategy.kind)
    if prefix is None:
        return strategy.command
    return (*prefix, f"{strategy.package}@latest")


def brew_update_command(formula: str) -> tuple[str, ...]:
    return ("brew", "upgrade", formula)


def pip_update_command(package: str) -> tuple[str, ...]:
    return (
        "python3", "-m", "pip", "install", "-U",
        "--upgrade-strategy", "only-if-needed", package,
    )


def uv_update_command(tool: str) -> tuple[str, ...]:
    return (
        "uv", "tool", "install", "--force",
        "--python", UV_TOOL_PYTHON, "--with", "pip", f"{tool}@latest",
    )


def vscode_update_command(editor: str, extension_id: str) -> tuple[str, ...]:
    return (editor, "--install-extension", extension_id, "--force")


# ── Per-resolution context ──────────────────────────────────────

@dataclass
class _Context:
    """Facts computed once per agent and shared by every evaluator."""

    agent: Agent
    probe: EnvironmentProbe
    # Node manager whose global bin dir holds the binary.
    bin_manager: ManagerKind | None = None
    # Sole node manager listing the package, if no bin-dir match.
    package_manager: ManagerKind | None = None
    editor_missing: bool = False


Evaluator = Callable[[UpdateStrategy, _Context], "ResolvedUpdate | None"]


# ── Evaluators ──────────────────────────────────────────────────

def _eval_native(strategy: UpdateStrategy, ctx: _Context) -> ResolvedUpdate | None:
    binary = ctx.agent.binary
    if binary and not ctx.probe.has_binary(binary):
        return None
    return ResolvedUpdate.matched(
        strategy.command,
        ManagerKind.NATIVE,
        f"binary {binary} found; using built-in update",
    )


def _eval_node(strategy: UpdateStrategy, ctx: _Context) -> ResolvedUpdate | None:
    kind = strategy.kind
    binary = ctx.agent.binary
    if not ctx.probe.has_manager(kind):
        return None
    if not binary or not strategy.package:
        return None

    by_bin = f"{kind} global bin has {binary}; matched by bin dir; updating via {kind}"
    if ctx.bin_manager is not None:
        if ctx.bin_manager != kind:
            return None
        return ResolvedUpdate.matched(node_update_command(strategy), kind, by_bin)

    if ctx.package_manager is not None:
        if ctx.package_manager != kind:
            return None
        return ResolvedUpdate.matched(
            node_update_command(strategy),
            kind,
            f"{kind} global package {strategy.package} installed; "
            f"matched by package list; updating via {kind}",
        )

    if not ctx.probe.node_bin_has_binary(kind, binary):
        return None
    return ResolvedUpdate.matched(node_update_command(strategy), kind, by_bin)


def _eval_brew(strategy: UpdateStrategy, ctx: _Context) -> ResolvedUpdate | None:
    if not ctx.probe.brew_has(strategy.package):
        return None
    return ResolvedUpdate.matched(
        brew_update_command(strategy.package),
        ManagerKind.BREW,
        f"brew formula {strategy.package} installed",
    )


def _eval_pip(strategy: UpdateStrategy, ctx: _Context) -> ResolvedUpdate | None:
    if not ctx.probe.pip_has(strategy.package):
        return None
    return ResolvedUpdate.matched(
        pip_update_command(strategy.package),
        ManagerKind.PIP,
        f"pip package {strategy.package} installed",
    )


def _eval_uv(strategy: UpdateStrategy, ctx: _Context) -> ResolvedUpdate | None:
    if not ctx.probe.uv_has(strategy.package):
        return None
    return ResolvedUpdate.matched(
        uv_update_command(strategy.package),
        ManagerKind.UV,
        f"uv tool {strategy.package} installed",
    )


def _eval_vscode(strategy: UpdateStrategy, ctx: _Context) -> ResolvedUpdate | None:
    editor = ctx.probe.editor_cli()
    if not editor:
        ctx.editor_missing = True
        return None
    extension_id = strategy.extension_id or ctx.agent.extension_id
    if not ctx.probe.vscode_has(extension_id):
        return None
    return ResolvedUpdate.matched(
        vscode_update_command(editor, extension_id),
        ManagerKind.VSCODE,
        f"VS Code extension {extension_id} installed (via {editor})",
    )


_EVALUATORS: dict[ManagerKind, Evaluator] = {
    ManagerKind.NATIVE: _eval_native,
    ManagerKind.NPM: _eval_node,
    ManagerKind.PNPM: _eval_node,
    ManagerKind.YARN: _eval_node,
    ManagerKind.BUN: _eval_node,
    ManagerKind.BREW: _eval_brew,
    ManagerKind.PIP: _eval_pip,
    ManagerKind.UV: _eval_uv,
    ManagerKind.VSCODE: _eval_vscode,
}


# ── Public API ──────────────────────────────────────────────────

def resolve_update(agent: Agent, probe: EnvironmentProbe) -> ResolvedUpdate:
    """Pick the update path for *agent* on this machine.

    Args:
        agent: Catalog entry.
        probe: The run's environment probe.

    Returns:
        ``ResolvedUpdate`` with a command and kind, or a skip reason.
        Always carries an explanation.
    """
    ctx = _Context(agent=agent, probe=probe)
    if agent.binary:
        ctx.bin_manager = probe.node_manager_for_binary(agent.binary)
    package = agent.node_package
    if ctx.bin_manager is None and package:
        ctx.package_manager = probe.node_manager_for_package(package)

    for strategy in agent.strategies:
        evaluator = _EVALUATORS.get(strategy.kind)
        if evaluator is None:
            continue
        resolution = evaluator(strategy, ctx)
        if resolution is not None:
            logger.debug("%s: %s (%s)", agent.name, resolution.kind, resolution.explanation)
            return resolution

    if ctx.editor_missing:
        return ResolvedUpdate.skip(
            REASON_MISSING_VSCODE,
            "VS Code CLI not found (code/codium/code-insiders)",
        )
    if agent.requires is not None and not probe.has_manager(agent.requires):
        return ResolvedUpdate.skip(
            missing_manager_reason(agent.requires),
            f"{agent.requires} not found; required to update {agent.name}",
        )
    if agent.binary and probe.has_binary(agent.binary):
        return ResolvedUpdate.skip(
            REASON_MANUAL_INSTALL,
            "binary found but no supported install method detected",
        )
    return ResolvedUpdate.skip(REASON_MISSING, "no supported binary or install method detected")
