"""
Single-flight memoization — compute each keyed value at most once.

The first caller for a key runs the loader; every concurrent caller for
the same key blocks until that run finishes and then observes the same
value (or the same exception). Finished values are kept for the
lifetime of the instance, so a probe object that owns one of these is
a per-run memo table.

Thread safety model
───────────────────
- ``_lock`` only guards the ``key → _Call`` map (create-if-absent).
- The loader itself runs OUTSIDE the lock, so unrelated keys never
  wait on each other.
- Waiters park on the call's ``threading.Event``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Call:
    done: threading.Event = field(default_factory=threading.Event)
    value: Any = None
    error: BaseException | None = None


class SingleFlight:
    """Keyed at-most-once computation shared by concurrent callers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, _Call] = {}
        self._executions: dict[str, int] = {}

    def do(self, key: str, loader: Callable[[], T]) -> T:
        """Return the value for *key*, running *loader* only if nobody has."""
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._calls[key] = call
                self._executions[key] = self._executions.get(key, 0) + 1

        if leader:
            try:
                call.value = loader()
            except BaseException as e:
                call.error = e
                logger.debug("single-flight %s failed: %s", key, e)
            finally:
                call.done.set()
        else:
            call.done.wait()

        if call.error is not None:
            raise call.error
        return call.value

    def is_done(self, key: str) -> bool:
        """Whether the value for *key* has been computed."""
        with self._lock:
            call = self._calls.get(key)
        return call is not None and call.done.is_set()

    def executions(self, key: str) -> int:
        """How many times the loader for *key* actually ran."""
        with self._lock:
            return self._executions.get(key, 0)
