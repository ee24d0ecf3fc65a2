"""
L0 Data — Built-in agent catalog.

Each entry lists its update strategies in priority order. Package-manager
strategies go first so an agent installed through npm/bun/brew/... is
updated the way it was installed; the native self-updater is the
fallback for standalone installs.

Pure data. No logic.
"""

from __future__ import annotations

from uca.core.models.agent import Agent, ManagerKind, UpdateStrategy


def _node(package: str) -> tuple[UpdateStrategy, ...]:
    """The four node-family strategies for one registry package."""
    return (
        UpdateStrategy(kind=ManagerKind.NPM, package=package),
        UpdateStrategy(kind=ManagerKind.PNPM, package=package),
        UpdateStrategy(kind=ManagerKind.YARN, package=package),
        UpdateStrategy(kind=ManagerKind.BUN, package=package),
    )


AGENT_CATALOG: tuple[Agent, ...] = (
    Agent(
        name="amp",
        binary="amp",
        version_command=("amp", "--version"),
        strategies=(
            *_node("@sourcegraph/amp"),
            UpdateStrategy(kind=ManagerKind.NATIVE, command=("amp", "update")),
        ),
    ),
    Agent(
        name="claude",
        binary="claude",
        version_command=("claude", "--version"),
        strategies=(
            *_node("@anthropic-ai/claude-code"),
            UpdateStrategy(kind=ManagerKind.BREW, package="claude-code"),
            UpdateStrategy(kind=ManagerKind.NATIVE, command=("claude", "update")),
        ),
    ),
    Agent(
        name="codex",
        binary="codex",
        version_command=("codex", "--version"),
        strategies=(
            *_node("@openai/codex"),
            UpdateStrategy(kind=ManagerKind.BREW, package="codex"),
        ),
    ),
    Agent(
        name="copilot",
        binary="copilot",
        version_command=("copilot", "--version"),
        strategies=_node("@github/copilot"),
    ),
    Agent(
        name="crush",
        binary="crush",
        version_command=("crush", "--version"),
        strategies=(
            *_node("@charmland/crush"),
            UpdateStrategy(kind=ManagerKind.BREW, package="crush"),
        ),
    ),
    Agent(
        name="cursor-agent",
        binary="cursor-agent",
        version_command=("cursor-agent", "--version"),
        strategies=(
            UpdateStrategy(kind=ManagerKind.NATIVE, command=("cursor-agent", "update")),
        ),
    ),
    Agent(
        name="gemini",
        binary="gemini",
        version_command=("gemini", "--version"),
        strategies=(
            *_node("@google/gemini-cli"),
            UpdateStrategy(kind=ManagerKind.BREW, package="gemini-cli"),
        ),
    ),
    Agent(
        name="opencode",
        binary="opencode",
        version_command=("opencode", "--version"),
        strategies=(
            *_node("opencode-ai"),
            UpdateStrategy(kind=ManagerKind.BREW, package="opencode"),
            UpdateStrategy(kind=ManagerKind.NATIVE, command=("opencode", "upgrade")),
        ),
    ),
    Agent(
        name="qwen",
        binary="qwen",
        version_command=("qwen", "--version"),
        strategies=_node("@qwen-code/qwen-code"),
    ),
    Agent(
        name="aider",
        binary="aider",
        version_command=("aider", "--version"),
        strategies=(
            UpdateStrategy(kind=ManagerKind.UV, package="aider-chat"),
            UpdateStrategy(kind=ManagerKind.PIP, package="aider-chat"),
            UpdateStrategy(kind=ManagerKind.BREW, package="aider"),
        ),
    ),
    Agent(
        name="cline",
        extension_id="saoudrizwan.claude-dev",
        strategies=(
            UpdateStrategy(kind=ManagerKind.VSCODE, extension_id="saoudrizwan.claude-dev"),
        ),
    ),
)


def default_agents() -> list[Agent]:
    """The built-in catalog, in display order."""
    return list(AGENT_CATALOG)
