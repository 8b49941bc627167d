"""Sync collector — one recording surface for every engine component.

Components receive an optional ``SyncCollector`` and call its ``record_*``
methods; the collector builds the frozen event and stores it in the
``EventLog``.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Safe to call from the event loop and from ``asyncio.to_thread`` workers.

"""

from __future__ import annotations

from padsync.observability.events import (
    PersistEvent,
    ReconcileEvent,
    SubscriberEvent,
    WatchEvent,
    WriteEvent,
    now_ns,
)
from padsync.observability.log import EventLog


class SyncCollector:
    """Unified event collector for the sync engine.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Document events -----

    def record_write(
        self,
        *,
        changed: bool,
        length: int,
        clients_notified: int = 0,
    ) -> None:
        """Record a writer submission."""
        self._log.append(
            WriteEvent(
                changed=changed,
                length=length,
                clients_notified=clients_notified,
                timestamp_ns=now_ns(),
            )
        )

    def record_reconcile(
        self,
        outcome: str,
        *,
        reasons: tuple[str, ...] = (),
        length: int = 0,
        clients_notified: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record the outcome of a reconciliation pass."""
        self._log.append(
            ReconcileEvent(
                outcome=outcome,  # type: ignore[arg-type]
                reasons=reasons,
                length=length,
                clients_notified=clients_notified,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_persist(
        self,
        operation: str,
        path: str,
        *,
        ok: bool,
        length: int = 0,
        duration_ms: float = 0.0,
        error: str = "",
    ) -> None:
        """Record a backing-file read or write."""
        self._log.append(
            PersistEvent(
                operation=operation,  # type: ignore[arg-type]
                ok=ok,
                path=path,
                length=length,
                duration_ms=duration_ms,
                error=error,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Runtime events -----

    def record_watch(self, channel: str, kind: str, detail: str = "") -> None:
        """Record a detection-channel lifecycle step or signal."""
        self._log.append(
            WatchEvent(
                channel=channel,
                kind=kind,  # type: ignore[arg-type]
                detail=detail,
                timestamp_ns=now_ns(),
            )
        )

    def record_subscriber(self, client_id: str, kind: str, *, subscribers: int) -> None:
        """Record a subscriber registry change."""
        self._log.append(
            SubscriberEvent(
                client_id=client_id,
                kind=kind,  # type: ignore[arg-type]
                subscribers=subscribers,
                timestamp_ns=now_ns(),
            )
        )
