"""
L0 Data — ``__init__.py`` re-exports the static tables.
"""

from uca.core.services.agent_update.data.catalog import (  # noqa: F401
    AGENT_CATALOG,
    default_agents,
)
from uca.core.services.agent_update.data.constants import (  # noqa: F401
    DETECT_CMD_TIMEOUT,
    EDITOR_CLI_CANDIDATES,
    EXIT_CANCELED,
    EXIT_TIMEOUT,
    LOG_MARKER,
    MANAGER_BINARIES,
    VERSION_CMD_TIMEOUT,
)
from uca.core.services.agent_update.data.failure_markers import (  # noqa: F401
    FAILURE_RULES,
)
