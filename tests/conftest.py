"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import logging
import threading

import pytest

from tests.fakes import FakeRunner, fake_which
from uca.core.services.agent_update.detection.environment import EnvironmentProbe


@pytest.fixture
def make_probe():
    """Build an ``EnvironmentProbe`` over a fake PATH and fake runner.

    Usage::

        probe, runner = make_probe({"npm": "/usr/bin/npm"}, {"npm bin -g": ("/g/bin\\n", 0)})
    """

    def build(
        binaries: dict[str, str] | None = None,
        responses: dict | None = None,
        cancel: threading.Event | None = None,
    ) -> tuple[EnvironmentProbe, FakeRunner]:
        fake = FakeRunner(responses)
        probe = EnvironmentProbe(runner=fake, which=fake_which(binaries or {}), cancel=cancel)
        return probe, fake

    return build


@pytest.fixture
def restore_logging():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    raise_exceptions = logging.raiseExceptions
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.raiseExceptions = raise_exceptions
