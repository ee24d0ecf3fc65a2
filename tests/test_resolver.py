"""
Tests for update strategy resolution.

Each test builds a small simulated machine (PATH entries + canned
probe output) and checks which command the resolver picks, or which
skip reason it reports.
"""

import json
from pathlib import Path

import pytest

from uca.core.models.agent import Agent, ManagerKind, UpdateStrategy
from uca.core.services.agent_update.data.catalog import AGENT_CATALOG, default_agents
from uca.core.services.agent_update.resolver.strategy_resolution import (
    brew_update_command,
    node_update_command,
    pip_update_command,
    resolve_update,
    uv_update_command,
    vscode_update_command,
)

NPM_LIST = "npm list -g --depth=0 --json"


def _catalog(name: str) -> Agent:
    return next(a for a in AGENT_CATALOG if a.name == name)


# ── Catalog ──────────────────────────────────────────────────────────


class TestCatalog:
    def test_names_unique(self):
        names = [a.name for a in AGENT_CATALOG]
        assert len(names) == len(set(names))

    def test_every_agent_has_strategies(self):
        assert all(a.strategies for a in AGENT_CATALOG)

    def test_default_agents_is_a_copy(self):
        agents = default_agents()
        agents.clear()
        assert default_agents()

    def test_native_is_last_resort(self):
        claude = _catalog("claude")
        assert claude.strategies[-1].kind == ManagerKind.NATIVE
        assert claude.node_package == "@anthropic-ai/claude-code"

    def test_extension_agent_has_no_binary(self):
        cline = _catalog("cline")
        assert cline.binary == ""
        assert cline.extension_id == "saoudrizwan.claude-dev"


# ── Command builders ─────────────────────────────────────────────────


class TestCommandBuilders:
    def test_node_forces_latest(self):
        s = UpdateStrategy(kind=ManagerKind.PNPM, package="@google/gemini-cli")
        assert node_update_command(s) == ("pnpm", "add", "-g", "@google/gemini-cli@latest")

    def test_node_explicit_command_wins(self):
        s = UpdateStrategy(kind=ManagerKind.NPM, package="x", command=("npm", "i", "-g", "x@beta"))
        assert node_update_command(s) == ("npm", "i", "-g", "x@beta")

    def test_brew(self):
        assert brew_update_command("codex") == ("brew", "upgrade", "codex")

    def test_pip(self):
        cmd = pip_update_command("aider-chat")
        assert cmd[:5] == ("python3", "-m", "pip", "install", "-U")
        assert cmd[-1] == "aider-chat"

    def test_uv(self):
        cmd = uv_update_command("aider-chat")
        assert cmd[:4] == ("uv", "tool", "install", "--force")
        assert cmd[-1] == "aider-chat@latest"

    def test_vscode(self):
        assert vscode_update_command("codium", "a.b") == ("codium", "--install-extension", "a.b", "--force")


# ── Node family ──────────────────────────────────────────────────────


class TestResolveNode:
    def test_match_by_bin_dir(self, make_probe):
        probe, _ = make_probe(
            {"codex": "/g/npm/bin/codex", "npm": "/usr/bin/npm"},
            {"npm bin -g": ("/g/npm/bin\n", 0)},
        )
        res = resolve_update(_catalog("codex"), probe)
        assert res.resolved
        assert res.kind == ManagerKind.NPM
        assert res.command == ("npm", "install", "-g", "@openai/codex@latest")
        assert "matched by bin dir" in res.explanation

    def test_owner_manager_beats_declared_order(self, make_probe):
        # npm is declared first, but the binary lives in bun's bin dir.
        probe, _ = make_probe(
            {"claude": "/home/me/.bun/bin/claude", "npm": "/usr/bin/npm", "bun": "/usr/bin/bun"},
            {"npm bin -g": ("/g/npm/bin\n", 0), "bun pm bin -g": ("/home/me/.bun/bin\n", 0)},
        )
        res = resolve_update(_catalog("claude"), probe)
        assert res.kind == ManagerKind.BUN
        assert res.command == ("bun", "add", "-g", "@anthropic-ai/claude-code@latest")

    def test_match_by_package_list(self, make_probe):
        probe, _ = make_probe(
            {"gemini": "/usr/local/bin/gemini", "npm": "/usr/bin/npm"},
            {
                "npm bin -g": ("/g/npm/bin\n", 0),
                NPM_LIST: (json.dumps({"dependencies": {"@google/gemini-cli": {}}}), 0),
            },
        )
        res = resolve_update(_catalog("gemini"), probe)
        assert res.kind == ManagerKind.NPM
        assert "matched by package list" in res.explanation

    def test_bin_dir_contains_binary_not_on_path(self, tmp_path: Path, make_probe):
        (tmp_path / "qwen").write_text("#!/bin/sh\n")
        probe, _ = make_probe({"npm": "/usr/bin/npm"}, {"npm bin -g": (f"{tmp_path}\n", 0)})
        res = resolve_update(_catalog("qwen"), probe)
        assert res.kind == ManagerKind.NPM
        assert "matched by bin dir" in res.explanation

    def test_node_package_without_owner_falls_through(self, make_probe):
        # Installed in two managers at once: no unique owner, no bin match.
        both = (json.dumps({"dependencies": {"@openai/codex": {}}}), 0)
        probe, _ = make_probe(
            {"codex": "/usr/local/bin/codex", "npm": "/usr/bin/npm", "pnpm": "/usr/bin/pnpm"},
            {NPM_LIST: both, "pnpm list -g --depth=0 --json": both},
        )
        res = resolve_update(_catalog("codex"), probe)
        assert not res.resolved
        assert res.reason == "manual install"


# ── Other managers ───────────────────────────────────────────────────


class TestResolveOtherManagers:
    def test_brew(self, make_probe):
        probe, _ = make_probe(
            {"codex": "/opt/homebrew/bin/codex", "brew": "/opt/homebrew/bin/brew"},
            {"brew list --formula --versions codex": ("codex 0.20.0\n", 0)},
        )
        res = resolve_update(_catalog("codex"), probe)
        assert res.kind == ManagerKind.BREW
        assert res.command == ("brew", "upgrade", "codex")
        assert res.explanation == "brew formula codex installed"

    def test_uv_before_pip(self, make_probe):
        probe, _ = make_probe(
            {"aider": "/home/me/.local/bin/aider", "uv": "/usr/bin/uv", "python3": "/usr/bin/python3"},
            {"uv tool list": ("aider-chat v0.86.1\n", 0), "python3 -m pip show aider-chat": ("Name: aider-chat", 0)},
        )
        res = resolve_update(_catalog("aider"), probe)
        assert res.kind == ManagerKind.UV
        assert res.explanation == "uv tool aider-chat installed"

    def test_pip(self, make_probe):
        probe, _ = make_probe(
            {"aider": "/usr/bin/aider", "python3": "/usr/bin/python3"},
            {"python3 -m pip show aider-chat": ("Name: aider-chat", 0)},
        )
        res = resolve_update(_catalog("aider"), probe)
        assert res.kind == ManagerKind.PIP

    def test_native(self, make_probe):
        probe, _ = make_probe({"cursor-agent": "/home/me/.local/bin/cursor-agent"})
        res = resolve_update(_catalog("cursor-agent"), probe)
        assert res.kind == ManagerKind.NATIVE
        assert res.command == ("cursor-agent", "update")
        assert res.explanation == "binary cursor-agent found; using built-in update"

    def test_native_fallback_after_managers(self, make_probe):
        probe, _ = make_probe({"claude": "/home/me/.claude/local/claude", "npm": "/usr/bin/npm"})
        res = resolve_update(_catalog("claude"), probe)
        assert res.kind == ManagerKind.NATIVE
        assert res.command == ("claude", "update")

    def test_vscode_extension(self, make_probe):
        probe, _ = make_probe(
            {"code": "/usr/bin/code"},
            {"code --list-extensions --show-versions": ("saoudrizwan.claude-dev@3.26.6\n", 0)},
        )
        res = resolve_update(_catalog("cline"), probe)
        assert res.kind == ManagerKind.VSCODE
        assert res.command == ("code", "--install-extension", "saoudrizwan.claude-dev", "--force")
        assert "(via code)" in res.explanation


# ── Skips ────────────────────────────────────────────────────────────


class TestResolveSkips:
    def test_missing(self, make_probe):
        probe, _ = make_probe()
        res = resolve_update(_catalog("codex"), probe)
        assert not res.resolved
        assert res.reason == "missing"
        assert res.command == ()

    def test_native_without_binary_is_missing(self, make_probe):
        probe, _ = make_probe()
        assert resolve_update(_catalog("cursor-agent"), probe).reason == "missing"

    def test_manual_install(self, make_probe):
        probe, _ = make_probe({"copilot": "/usr/local/bin/copilot"})
        res = resolve_update(_catalog("copilot"), probe)
        assert res.reason == "manual install"
        assert res.explanation == "binary found but no supported install method detected"

    def test_missing_vscode(self, make_probe):
        probe, _ = make_probe()
        res = resolve_update(_catalog("cline"), probe)
        assert res.reason == "missing vscode"
        assert "code/codium/code-insiders" in res.explanation

    def test_extension_not_installed(self, make_probe):
        probe, _ = make_probe({"code": "/usr/bin/code"}, {"code --list-extensions --show-versions": ("", 0)})
        assert resolve_update(_catalog("cline"), probe).reason == "missing"

    def test_required_manager_absent(self, make_probe):
        agent = Agent(
            name="bunny",
            binary="bunny",
            strategies=(UpdateStrategy(kind=ManagerKind.BUN, package="bunny-cli"),),
            requires=ManagerKind.BUN,
        )
        probe, _ = make_probe({"bunny": "/usr/local/bin/bunny"})
        res = resolve_update(agent, probe)
        assert res.reason == "missing bun"
        assert res.explanation == "bun not found; required to update bunny"

    @pytest.mark.parametrize("name", [a.name for a in AGENT_CATALOG])
    def test_every_catalog_agent_resolves_on_empty_machine(self, make_probe, name):
        probe, _ = make_probe()
        res = resolve_update(_catalog(name), probe)
        assert res.reason in ("missing", "missing vscode")
        assert res.explanation

    def test_idempotent(self, make_probe):
        probe, runner = make_probe(
            {"codex": "/g/npm/bin/codex", "npm": "/usr/bin/npm"},
            {"npm bin -g": ("/g/npm/bin\n", 0)},
        )
        first = resolve_update(_catalog("codex"), probe)
        calls = len(runner.calls)
        assert resolve_update(_catalog("codex"), probe) == first
        assert len(runner.calls) == calls
