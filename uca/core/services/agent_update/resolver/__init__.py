"""
L2 Resolver — ``__init__.py`` re-exports the strategy resolver.
"""

from uca.core.services.agent_update.resolver.strategy_resolution import (  # noqa: F401
    node_update_command,
    resolve_update,
)
