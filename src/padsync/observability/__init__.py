"""Engine observability — structured events for every sync decision.

Records events from:
- **Reconciler**: writer saves, reconciliation outcomes
- **Persistence**: backing-file loads and saves
- **Watcher**: detection-channel lifecycle and signals
- **Broadcaster**: subscriber connect, disconnect, drop

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from the event loop and I/O worker threads.

Quick Start:
    >>> from padsync.observability import SyncCollector, EventLog
    >>> log = EventLog()
    >>> collector = SyncCollector(log)
    >>> collector.record_write(changed=True, length=5, clients_notified=2)

"""

from padsync.observability.collector import SyncCollector
from padsync.observability.events import (
    PersistEvent,
    ReconcileEvent,
    SubscriberEvent,
    SyncEvent,
    WatchEvent,
    WriteEvent,
    now_ns,
)
from padsync.observability.log import EventLog

__all__ = [
    "EventLog",
    "PersistEvent",
    "ReconcileEvent",
    "SubscriberEvent",
    "SyncCollector",
    "SyncEvent",
    "WatchEvent",
    "WriteEvent",
    "now_ns",
]
