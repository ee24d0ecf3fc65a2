"""
UpdateEvent — the contract between the engine and any presentation layer.

Per agent, phases always arrive in order::

    detect → [start] → finish

``start`` is published only when a real child process is about to run,
never for a skip or a dry-run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from uca.core.models.result import UpdateResult


class Phase(StrEnum):
    DETECT = "detect"
    START = "start"
    FINISH = "finish"


@dataclass(frozen=True)
class UpdateEvent:
    index: int              # agent slot
    phase: Phase
    result: UpdateResult    # snapshot, never shared with the engine
    timestamp: float        # time.monotonic()
    visible: bool           # whether the agent gets a dashboard row
