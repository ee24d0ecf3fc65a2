"""
L0 Data — Module-level constants.

Pure data. No logic.
"""

from __future__ import annotations

from uca.core.models.agent import ManagerKind

# Timeouts (seconds).
DETECT_CMD_TIMEOUT = 30.0
VERSION_CMD_TIMEOUT = 10.0
LATEST_VERSION_CMD_TIMEOUT = 12.0

# Exit codes reported for structural failures (same as timeout(1) / SIGINT).
EXIT_TIMEOUT = 124
EXIT_CANCELED = 130

# Prefix for lines the updater adds to captured command logs.
LOG_MARKER = "(uca)"

# Binary whose presence on PATH means the manager is available.
# The editor-extension manager is special-cased: see EDITOR_CLI_CANDIDATES.
MANAGER_BINARIES: dict[ManagerKind, str] = {
    ManagerKind.NPM: "npm",
    ManagerKind.PNPM: "pnpm",
    ManagerKind.YARN: "yarn",
    ManagerKind.BUN: "bun",
    ManagerKind.BREW: "brew",
    ManagerKind.PIP: "python3",
    ManagerKind.UV: "uv",
}

# First one found on PATH wins.
EDITOR_CLI_CANDIDATES: tuple[str, ...] = ("code", "codium", "code-insiders")

# ── Node-family commands ────────────────────────────────────────

# Install prefix; packages are appended as ``<pkg>@latest``.
# npm uses ``install`` rather than ``update``: ``npm update -g`` does not
# accept ``pkg@latest`` specs and gets stuck on old 0.x minors.
NODE_INSTALL_COMMANDS: dict[ManagerKind, tuple[str, ...]] = {
    ManagerKind.NPM: ("npm", "install", "-g"),
    ManagerKind.PNPM: ("pnpm", "add", "-g"),
    ManagerKind.YARN: ("yarn", "global", "add"),
    ManagerKind.BUN: ("bun", "add", "-g"),
}

# Global bin directory probes.
NODE_BIN_COMMANDS: dict[ManagerKind, tuple[str, ...]] = {
    ManagerKind.NPM: ("npm", "bin", "-g"),
    ManagerKind.PNPM: ("pnpm", "bin", "-g"),
    ManagerKind.YARN: ("yarn", "global", "bin"),
    ManagerKind.BUN: ("bun", "pm", "bin", "-g"),
}

# npm v11 removed ``npm bin``; the prefix still works.
NPM_PREFIX_COMMAND: tuple[str, ...] = ("npm", "prefix", "-g")

# Global package listings.
NODE_LIST_COMMANDS: dict[ManagerKind, tuple[str, ...]] = {
    ManagerKind.NPM: ("npm", "list", "-g", "--depth=0", "--json"),
    ManagerKind.PNPM: ("pnpm", "list", "-g", "--depth=0", "--json"),
    ManagerKind.YARN: ("yarn", "global", "list", "--depth=0"),
    ManagerKind.BUN: ("bun", "pm", "ls", "-g"),
}

# Registry "latest" lookups for dry-run previews. ``{pkg}`` is substituted.
# ``bun info`` needs ``-g`` to work outside of a JS project.
NODE_LATEST_VERSION_COMMANDS: dict[ManagerKind, tuple[str, ...]] = {
    ManagerKind.NPM: ("npm", "view", "{pkg}", "dist-tags.latest"),
    ManagerKind.PNPM: ("pnpm", "view", "{pkg}", "dist-tags.latest", "--silent"),
    ManagerKind.YARN: ("yarn", "info", "{pkg}", "dist-tags.latest", "--silent"),
    ManagerKind.BUN: ("bun", "info", "-g", "{pkg}", "version", "--json"),
}

# ── Other managers ──────────────────────────────────────────────

UV_LIST_COMMAND: tuple[str, ...] = ("uv", "tool", "list")
UV_TOOL_PYTHON = "python3.12"
