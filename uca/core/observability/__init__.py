"""Observability — logging setup."""

from uca.core.observability.logging_config import resolve_level, setup_logging  # noqa: F401
