"""
L4 Execution — ``__init__.py`` re-exports the process-spawning primitives.

Higher-level execution modules (``update_command``, ``version_probe``)
are imported from their own modules.
"""

from uca.core.services.agent_update.execution.subprocess_runner import (  # noqa: F401
    CommandOutcome,
    run_command,
)
