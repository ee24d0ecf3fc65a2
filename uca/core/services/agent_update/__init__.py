"""
Agent update service — detect, resolve and update third-party coding CLIs.

Layered like the rest of ``core/services``::

    data/           L0  static tables (catalog, commands, failure rules)
    domain/         L1  pure functions (classification, batching, versions)
    resolver/       L2  strategy resolution
    detection/      L3  environment probe
    execution/      L4  child processes, retry policy, version probes
    orchestration/  L5  scheduler and run pipeline

Public entry point::

    from uca.core.services.agent_update import run_all
"""

from uca.core.services.agent_update.orchestration.orchestrator import run_all  # noqa: F401
