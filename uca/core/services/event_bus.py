"""
EventBus — thread-safe, in-process pub/sub for update progress.

The engine publishes one ``UpdateEvent`` per agent phase; the live
dashboard (or any other consumer) subscribes and renders at its own
pace. Publishing never blocks a worker: subscriber queues are unbounded
and ``publish()`` only does ``put_nowait``.

Thread safety model
───────────────────
- ``_lock`` protects ``_events``, ``_subscribers`` and ``_closed``.
- Each subscriber gets its own ``queue.Queue``; the publisher pushes
  into all queues under the lock, each consumer drains its own queue
  independently.
- Every event is also kept in an append-only history, so a late
  subscriber can replay everything from the start of the run.

Stream shape
────────────
Per agent index the phases arrive in order ``detect → [start] → finish``.
After ``close()`` every subscriber receives ``END_OF_STREAM`` once.
"""

from __future__ import annotations

import logging
import queue
import threading

from uca.core.models.event import UpdateEvent

logger = logging.getLogger(__name__)

END_OF_STREAM = None


class EventBus:
    """Append-only event stream with fan-out to subscriber queues."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[UpdateEvent] = []
        self._subscribers: list[queue.Queue[UpdateEvent | None]] = []
        self._closed = False

    # ── Properties ──────────────────────────────────────────────

    @property
    def events(self) -> list[UpdateEvent]:
        """Snapshot of every event published so far, in publish order."""
        with self._lock:
            return list(self._events)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def events_for(self, index: int) -> list[UpdateEvent]:
        """Events of one agent slot, in publish order."""
        with self._lock:
            return [e for e in self._events if e.index == index]

    # ── Publishing ──────────────────────────────────────────────

    def publish(self, event: UpdateEvent) -> None:
        """Record *event* and hand it to every subscriber. Never blocks."""
        with self._lock:
            if self._closed:
                logger.debug("event after close dropped: %s #%d", event.phase, event.index)
                return
            self._events.append(event)
            for q in self._subscribers:
                q.put_nowait(event)

        logger.debug(
            "event %s #%d %s status=%s",
            event.phase, event.index, event.result.agent, event.result.status,
        )

    def close(self) -> None:
        """End the stream. Subscribers get ``END_OF_STREAM``."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for q in self._subscribers:
                q.put_nowait(END_OF_STREAM)

    # ── Subscribing ─────────────────────────────────────────────

    def subscribe(self, *, replay: bool = True) -> queue.Queue[UpdateEvent | None]:
        """Return a queue that receives every future event.

        With ``replay`` the queue is pre-filled with the history, so
        subscribing late loses nothing. A subscription taken after
        ``close()`` receives the history and then ``END_OF_STREAM``.
        """
        q: queue.Queue[UpdateEvent | None] = queue.Queue()
        with self._lock:
            if replay:
                for event in self._events:
                    q.put_nowait(event)
            if self._closed:
                q.put_nowait(END_OF_STREAM)
            else:
                self._subscribers.append(q)
        logger.debug("subscriber added (replay=%s)", replay)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)
