"""
L5 Orchestration — ``__init__.py`` re-exports the run pipeline.
"""

from uca.core.services.agent_update.orchestration.orchestrator import (  # noqa: F401
    plan_tasks,
    plan_work,
    run_all,
)
from uca.core.services.agent_update.orchestration.scheduler import (  # noqa: F401
    Scheduler,
    effective_concurrency,
)
