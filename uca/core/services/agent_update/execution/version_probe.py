"""
L4 Execution — Installed and latest version lookups.

``get_version`` is called before and after each update; equality of
the two decides ``unchanged`` vs ``updated``. ``node_latest_version``
asks the registry for ``dist-tags.latest`` and is only used for
dry-run previews.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable

from uca.core.models.agent import Agent, ManagerKind
from uca.core.models.result import UNKNOWN_VERSION
from uca.core.services.agent_update.data.constants import (
    LATEST_VERSION_CMD_TIMEOUT,
    NODE_LATEST_VERSION_COMMANDS,
    VERSION_CMD_TIMEOUT,
)
from uca.core.services.agent_update.domain.versions import parse_version_output
from uca.core.services.agent_update.execution.subprocess_runner import (
    CommandOutcome,
    run_command,
)

if TYPE_CHECKING:
    from uca.core.services.agent_update.detection.environment import EnvironmentProbe

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandOutcome]


def get_version(
    agent: Agent,
    probe: EnvironmentProbe,
    method: str = "",
    *,
    runner: Runner = run_command,
    cancel: threading.Event | None = None,
) -> str:
    """Currently installed version of *agent*, or ``unknown``.

    Extension-managed agents report the editor's recorded version;
    everything else runs ``version_command`` (if its binary is present).
    """
    if method == ManagerKind.VSCODE and agent.extension_id:
        version = probe.vscode_version(agent.extension_id)
        if version:
            return version

    if agent.version_command and (not agent.binary or probe.has_binary(agent.binary)):
        outcome = runner(
            list(agent.version_command),
            timeout=VERSION_CMD_TIMEOUT,
            cancel=cancel,
            merge_stderr=True,
        )
        if not outcome.ok:
            logger.debug("%s: version command exited %d", agent.name, outcome.exit_code)
            return UNKNOWN_VERSION
        return parse_version_output(outcome.output)

    if agent.extension_id:
        version = probe.vscode_version(agent.extension_id)
        if version:
            return version
    return UNKNOWN_VERSION


def node_latest_version(
    kind: ManagerKind | str,
    package: str,
    *,
    runner: Runner = run_command,
    cancel: threading.Event | None = None,
) -> str:
    """Registry ``latest`` version of *package* via a node manager, or ``""``."""
    package = package.strip()
    template = NODE_LATEST_VERSION_COMMANDS.get(kind)  # type: ignore[call-overload]
    if not package or template is None:
        return ""
    args = [package if part == "{pkg}" else part for part in template]
    outcome = runner(args, timeout=LATEST_VERSION_CMD_TIMEOUT, cancel=cancel, merge_stderr=False)
    if not outcome.ok:
        logger.debug("latest version lookup failed for %s via %s", package, kind)
        return ""
    return outcome.output.strip().strip("\"'").strip()
