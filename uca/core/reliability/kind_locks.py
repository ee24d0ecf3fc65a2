"""
Per-kind mutexes — serialize access to one package manager at a time.

Two ``npm install -g`` runs racing on the same global prefix corrupt
it; an npm run next to a brew run is fine. One lock per manager kind,
created lazily the first time a kind is seen.

These locks protect the EXTERNAL resource (the manager's global state),
not any in-process data.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class KindLocks:
    """Lazily-created mutex per manager kind."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, kind: str) -> threading.Lock:
        """Get or create the lock for *kind*."""
        with self._guard:
            lock = self._locks.get(kind)
            if lock is None:
                lock = threading.Lock()
                self._locks[kind] = lock
            return lock

    @contextmanager
    def hold(self, kind: str) -> Iterator[None]:
        """Hold the lock for *kind*. An empty kind is a no-op."""
        if not kind:
            yield
            return
        lock = self.get(kind)
        if not lock.acquire(blocking=False):
            logger.debug("waiting for %s lock", kind)
            lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def kinds(self) -> list[str]:
        with self._guard:
            return sorted(self._locks)
