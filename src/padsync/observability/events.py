"""Structured event model for the sync engine.

Every interesting decision the engine makes (accept a write, suppress a
self-write echo, adopt an external edit, persist, degrade a watch channel,
connect or drop a reader) is recorded as one of these events.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Document events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WriteEvent:
    """A writer submitted content through the save path.

    Attributes:
        changed: False when the submission matched the current content.
        length: Length of the submitted content in characters.
        clients_notified: Subscribers that received the broadcast.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    changed: bool
    length: int
    clients_notified: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReconcileEvent:
    """A debounced reconciliation pass finished.

    Attributes:
        outcome: What the reconciler decided.
        reasons: Change reasons coalesced into this pass.
        length: Length of the content read from disk.
        clients_notified: Subscribers notified (non-zero only when adopted).
        duration_ms: Time spent reading and deciding.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    outcome: Literal["suppressed", "adopted", "unchanged", "deferred"]
    reasons: tuple[str, ...]
    length: int
    clients_notified: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class PersistEvent:
    """The backing file was read or written.

    Attributes:
        operation: ``"load"`` or ``"save"``.
        ok: Whether the I/O succeeded.
        path: Backing file path.
        length: Characters read or written.
        duration_ms: Time spent in I/O.
        error: Failure description (empty on success).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    operation: Literal["load", "save"]
    ok: bool
    path: str
    length: int
    duration_ms: float
    error: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Runtime events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A detection channel changed state or produced a signal.

    Attributes:
        channel: ``"poll"``, ``"file"`` or ``"directory"``.
        kind: Lifecycle step or ``"signal"`` for a detected change.
        detail: Change reason or failure description.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    channel: str
    kind: Literal["started", "stopped", "degraded", "signal"]
    detail: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SubscriberEvent:
    """A live reader connected, disconnected, or was dropped.

    Attributes:
        client_id: Subscriber identifier.
        kind: What happened to the subscriber.
        subscribers: Registry size after the change.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    client_id: str
    kind: Literal["subscribed", "unsubscribed", "dropped"]
    subscribers: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type SyncEvent = (
    WriteEvent
    | ReconcileEvent
    | PersistEvent
    | WatchEvent
    | SubscriberEvent
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
