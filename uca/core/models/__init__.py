"""
Domain models for the updater.

All models are re-exported here for convenient access:

    from uca.core.models import Agent, UpdateResult, UpdateEvent, RunOptions
"""

from uca.core.models.agent import (
    LOCKED_KINDS,
    NODE_KINDS,
    Agent,
    ManagerKind,
    UpdateStrategy,
    is_node_kind,
    should_lock_kind,
)
from uca.core.models.event import Phase, UpdateEvent
from uca.core.models.options import RunOptions, parse_name_list
from uca.core.models.plan import AgentWork, ResolvedUpdate, UpdateTask, cmd_string
from uca.core.models.result import UpdateResult, append_hint

__all__ = [
    # agent.py
    "Agent",
    "LOCKED_KINDS",
    "ManagerKind",
    "NODE_KINDS",
    "UpdateStrategy",
    "is_node_kind",
    "should_lock_kind",
    # event.py
    "Phase",
    "UpdateEvent",
    # options.py
    "RunOptions",
    "parse_name_list",
    # plan.py
    "AgentWork",
    "ResolvedUpdate",
    "UpdateTask",
    "cmd_string",
    # result.py
    "UpdateResult",
    "append_hint",
]
