"""Event log — bounded, thread-safe store of sync events.

Backs ``GET /__padsync/stats`` and the test suite's assertions about what
the engine decided.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Safe for
    concurrent reads and writes from the event loop and worker threads.

"""

import threading
from collections import Counter, deque
from typing import Any

from padsync.observability.events import PersistEvent, ReconcileEvent, SyncEvent


class EventLog:
    """Ring buffer of the most recent ``max_events`` sync events.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[SyncEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: SyncEvent) -> None:
        """Record an event, evicting the oldest when full."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[SyncEvent]:
        """Return matching events, most recent first.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events at or after this timestamp.
            limit: Maximum number of events to return.

        """
        with self._lock:
            results: list[SyncEvent] = []
            for event in reversed(self._events):
                if len(results) >= limit:
                    break
                if event_type is not None and not isinstance(event, event_type):
                    continue
                if since_ns and event.timestamp_ns < since_ns:
                    continue
                results.append(event)
            return results

    def stats(self) -> dict[str, Any]:
        """Summarize retained events for the stats endpoint.

        Besides per-type counts, reports how reconciliation passes ended and
        how many backing-file writes failed.
        """
        with self._lock:
            events = list(self._events)

        by_type = Counter(type(event).__name__ for event in events)
        outcomes = Counter(e.outcome for e in events if isinstance(e, ReconcileEvent))
        failed_saves = sum(
            1 for e in events
            if isinstance(e, PersistEvent) and e.operation == "save" and not e.ok
        )

        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(by_type),
            "reconcile_outcomes": dict(outcomes),
            "failed_saves": failed_saves,
        }
