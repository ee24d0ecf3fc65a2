"""
L3 Detection — Environment probe.

Read-only answers to the questions the resolver asks:

    is binary X on PATH?            is manager M present?
    does M manage package P?        which node manager's global bin holds X?

One ``EnvironmentProbe`` lives for exactly one run. Every external
query goes through a ``SingleFlight`` table, so each distinct probe
command runs at most once per run no matter how many agents or threads
ask, and a thread that asks while the first query is in flight simply
waits for its answer.

Every failure degrades to "absent" / empty. A probe never aborts a run.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Sequence

from uca.core.models.agent import NODE_KINDS, ManagerKind, is_node_kind
from uca.core.reliability.single_flight import SingleFlight
from uca.core.services.agent_update.data.constants import (
    DETECT_CMD_TIMEOUT,
    EDITOR_CLI_CANDIDATES,
    MANAGER_BINARIES,
    NODE_BIN_COMMANDS,
    NODE_LIST_COMMANDS,
    NPM_PREFIX_COMMAND,
    UV_LIST_COMMAND,
)
from uca.core.services.agent_update.detection.package_lists import (
    parse_extension_list,
    parse_npm_list_json,
    parse_package_list_output,
    parse_pnpm_list_json,
    parse_uv_tool_list,
)
from uca.core.services.agent_update.execution.subprocess_runner import (
    CommandOutcome,
    run_command,
)

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandOutcome]
Which = Callable[[str], "str | None"]

_WINDOWS = os.name == "nt"


# ── Path helpers ────────────────────────────────────────────────

def resolve_symlink_path(path: str) -> str:
    """Fully resolved form of *path*, or ``""`` if it does not exist."""
    if not path:
        return ""
    try:
        return os.path.normpath(os.path.realpath(path, strict=True))
    except OSError:
        return ""


def same_path(a: str, b: str) -> bool:
    """Whether *a* and *b* name the same directory (symlinks resolved)."""
    if not a or not b:
        return False
    a = os.path.normpath(a)
    b = os.path.normpath(b)
    if _WINDOWS:
        return a.casefold() == b.casefold()
    if a == b:
        return True
    ra = resolve_symlink_path(a)
    rb = resolve_symlink_path(b)
    if ra and rb:
        return ra == rb
    return (bool(ra) and ra == b) or (bool(rb) and rb == a)


def bin_dir_has_binary(bin_dir: str, name: str) -> bool:
    """Whether *bin_dir* contains an executable file called *name*."""
    if not bin_dir or not name:
        return False
    candidates = [name]
    if _WINDOWS:
        candidates += [f"{name}.exe", f"{name}.cmd", f"{name}.bat"]
    return any(Path(bin_dir, c).is_file() for c in candidates)


# ── Probe ───────────────────────────────────────────────────────

class EnvironmentProbe:
    """Lazily-memoized view of the machine's installed tooling.

    Args:
        runner: Command runner, ``run_command`` compatible.
        which: PATH lookup, ``shutil.which`` compatible.
        cancel: Run-scoped cancellation flag passed to every probe
            command.
    """

    def __init__(
        self,
        *,
        runner: Runner = run_command,
        which: Which = shutil.which,
        cancel: threading.Event | None = None,
    ) -> None:
        self._runner = runner
        self._which = which
        self._cancel = cancel
        self._flight = SingleFlight()

    # ── Plumbing ──

    def _run(self, args: Sequence[str]) -> CommandOutcome:
        return self._runner(
            list(args),
            timeout=DETECT_CMD_TIMEOUT,
            cancel=self._cancel,
            merge_stderr=False,
        )

    def _memo(self, key: str, loader: Callable):
        return self._flight.do(key, loader)

    # ── Binaries ──

    def binary_path(self, name: str) -> str:
        """Absolute path of *name* on PATH, or ``""``."""
        if not name:
            return ""

        def load() -> str:
            found = self._which(name)
            return os.path.normpath(found) if found else ""

        return self._memo(f"which:{name}", load)

    def has_binary(self, name: str) -> bool:
        return bool(self.binary_path(name))

    def editor_cli(self) -> str:
        """First editor CLI on PATH (``code``, ``codium``, ``code-insiders``)."""

        def load() -> str:
            for candidate in EDITOR_CLI_CANDIDATES:
                if self.has_binary(candidate):
                    return candidate
            return ""

        return self._memo("editor-cli", load)

    def has_manager(self, kind: ManagerKind | str) -> bool:
        """Whether the manager for *kind* is available at all."""
        if kind == ManagerKind.NATIVE:
            return True
        if kind == ManagerKind.VSCODE:
            return bool(self.editor_cli())
        binary = MANAGER_BINARIES.get(kind)  # type: ignore[call-overload]
        return bool(binary) and self.has_binary(binary)

    # ── Node family ──

    def node_bin_dir(self, kind: ManagerKind | str) -> str:
        """Global bin directory of a node manager, ``""`` if unknown."""
        if not is_node_kind(kind) or not self.has_manager(kind):
            return ""
        kind = ManagerKind(kind)
        return self._memo(f"{kind}:bin", lambda: self._load_node_bin(kind))

    def _load_node_bin(self, kind: ManagerKind) -> str:
        outcome = self._run(NODE_BIN_COMMANDS[kind])
        if outcome.ok:
            lines = outcome.output.strip().splitlines()
            if lines and lines[0].strip():
                return lines[0].strip()
        if kind != ManagerKind.NPM:
            return ""

        # npm >= 11 dropped ``npm bin``.
        outcome = self._run(NPM_PREFIX_COMMAND)
        prefix = outcome.output.strip() if outcome.ok else ""
        if not prefix:
            return ""
        bin_dir = os.path.join(prefix, "bin")
        if _WINDOWS and not os.path.isdir(bin_dir):
            return prefix
        return bin_dir

    def node_packages(self, kind: ManagerKind | str) -> frozenset[str]:
        """Globally installed packages of a node manager."""
        if not is_node_kind(kind) or not self.has_manager(kind):
            return frozenset()
        kind = ManagerKind(kind)
        return self._memo(f"{kind}:packages", lambda: self._load_node_packages(kind))

    def _load_node_packages(self, kind: ManagerKind) -> frozenset[str]:
        outcome = self._run(NODE_LIST_COMMANDS[kind])
        # npm/pnpm exit non-zero on peer-dependency problems but still
        # print a usable listing.
        if kind == ManagerKind.NPM:
            names = parse_npm_list_json(outcome.output)
        elif kind == ManagerKind.PNPM:
            names = parse_pnpm_list_json(outcome.output)
        elif outcome.ok:
            names = parse_package_list_output(outcome.output)
        else:
            names = set()
        logger.debug("%s global packages: %d", kind, len(names))
        return frozenset(names)

    def node_manager_has_package(self, kind: ManagerKind | str, package: str) -> bool:
        return bool(package) and package in self.node_packages(kind)

    def node_bin_has_binary(self, kind: ManagerKind | str, name: str) -> bool:
        return bin_dir_has_binary(self.node_bin_dir(kind), name)

    def node_manager_for_binary(self, name: str) -> ManagerKind | None:
        """The node manager whose global bin dir holds *name*.

        Matches the binary's own directory or its symlink-resolved
        directory. When several managers match (nested prefixes), the
        longest bin dir wins; an exact-length tie is ambiguous and
        yields None.
        """
        bin_path = self.binary_path(name)
        if not bin_path:
            return None
        bin_dir = os.path.dirname(bin_path)
        resolved = resolve_symlink_path(bin_path)
        resolved_dir = os.path.dirname(resolved) if resolved else ""

        matches: list[tuple[ManagerKind, str]] = []
        for kind in NODE_KINDS:
            directory = self.node_bin_dir(kind)
            if not directory:
                continue
            if same_path(directory, bin_dir) or (resolved_dir and same_path(directory, resolved_dir)):
                matches.append((kind, directory))

        if not matches:
            return None
        if len(matches) == 1:
            return matches[0][0]
        longest = max(len(d) for _, d in matches)
        best = [k for k, d in matches if len(d) == longest]
        if len(best) > 1:
            logger.debug("ambiguous node manager for %s: %s", name, ", ".join(best))
            return None
        return best[0]

    def node_manager_for_package(self, package: str) -> ManagerKind | None:
        """The single node manager listing *package*; None if zero or several."""
        if not package:
            return None
        matches = [k for k in NODE_KINDS if self.node_manager_has_package(k, package)]
        return matches[0] if len(matches) == 1 else None

    # ── Other managers ──

    def brew_has(self, formula: str) -> bool:
        if not formula or not self.has_manager(ManagerKind.BREW):
            return False

        def load() -> bool:
            outcome = self._run(["brew", "list", "--formula", "--versions", formula])
            return outcome.ok and bool(outcome.output.strip())

        return self._memo(f"brew:{formula}", load)

    def pip_has(self, package: str) -> bool:
        if not package or not self.has_manager(ManagerKind.PIP):
            return False
        return self._memo(
            f"pip:{package}",
            lambda: self._run(["python3", "-m", "pip", "show", package]).ok,
        )

    def uv_tools(self) -> frozenset[str]:
        if not self.has_manager(ManagerKind.UV):
            return frozenset()
        return self._memo(
            "uv:tools",
            lambda: frozenset(parse_uv_tool_list(self._run(UV_LIST_COMMAND).output)),
        )

    def uv_has(self, tool: str) -> bool:
        return bool(tool) and tool in self.uv_tools()

    def extensions(self) -> dict[str, str]:
        """Installed editor extensions, ``{id: version}``."""
        editor = self.editor_cli()
        if not editor:
            return {}
        return self._memo(
            "vscode:extensions",
            lambda: parse_extension_list(
                self._run([editor, "--list-extensions", "--show-versions"]).output
            ),
        )

    def vscode_has(self, extension_id: str) -> bool:
        return bool(extension_id) and extension_id in self.extensions()

    def vscode_version(self, extension_id: str) -> str:
        return self.extensions().get(extension_id, "")

    # ── Warm-up ──

    def prefetch(self, *, max_workers: int = 8) -> None:
        """Warm every lazily-computed value on background threads.

        Called while the dashboard boots so the first resolutions do
        not pay for probes serially. Blocks until all are done.
        """
        jobs: list[Callable[[], object]] = [self.editor_cli, self.uv_tools, self.extensions]
        for kind in NODE_KINDS:
            jobs.append(lambda k=kind: self.node_bin_dir(k))
            jobs.append(lambda k=kind: self.node_packages(k))
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="uca-probe") as pool:
            for future in [pool.submit(job) for job in jobs]:
                future.result()
