"""Concurrency primitives shared by the update engine."""

from uca.core.reliability.kind_locks import KindLocks
from uca.core.reliability.single_flight import SingleFlight

__all__ = ["KindLocks", "SingleFlight"]
