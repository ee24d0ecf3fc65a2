"""
CLI presentation — live dashboard and plain-text report.

Thin consumers of the engine's ``EventBus`` and ``UpdateRunReport``.
"""
