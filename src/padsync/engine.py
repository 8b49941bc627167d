"""Sync engine — wires store, persistence, watcher, reconciler, and broadcaster.

The engine is the framework-independent core.  The HTTP layer
(``padsync.routes``) only ever calls ``engine.reconciler.save()``,
``engine.reconciler.get()``, and ``engine.broadcaster.subscribe()``.

Flow:
    start()      -> ensure data dir, load file into store, start watcher
    file change  -> watcher channels -> Debouncer -> reconciler.reconcile()
    deferred     -> re-signal the watcher so the pass runs again later
    stop()       -> stop watcher, drain pending persists
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from padsync.document.persistence import FilePersistence
from padsync.document.store import ContentStore
from padsync.document.watcher import DocumentWatcher
from padsync.observability.collector import SyncCollector
from padsync.reactive.broadcaster import Broadcaster
from padsync.reactive.reconciler import ReconcileOutcome, Reconciler

if TYPE_CHECKING:
    from padsync.config import PadSyncConfig


class SyncEngine:
    """The running synchronization core for one document.

    Args:
        config: Resolved configuration.
        collector: Event collector; a fresh one is created when omitted.

    """

    def __init__(self, config: PadSyncConfig, collector: SyncCollector | None = None) -> None:
        self.config = config
        self.collector = collector if collector is not None else SyncCollector()
        self.store = ContentStore()
        self.persistence = FilePersistence(
            config.data_path,
            timeout=config.persist_timeout,
            collector=self.collector,
        )
        self.broadcaster = Broadcaster(
            self.store.get,
            queue_size=config.subscriber_queue_size,
            collector=self.collector,
        )
        self.reconciler = Reconciler(
            self.store,
            self.persistence,
            self.broadcaster,
            collector=self.collector,
        )
        self.watcher = DocumentWatcher(
            config.data_path,
            self._on_change,
            poll_interval=config.poll_interval,
            debounce=config.debounce,
            native_watch=config.native_watch,
            directory_watch=config.directory_watch,
            collector=self.collector,
        )
        self._started = False

    @property
    def started(self) -> bool:
        """Whether ``start()`` has completed and ``stop()`` has not."""
        return self._started

    async def start(self) -> None:
        """Load the document and begin watching the backing file."""
        if self._started:
            return
        self.persistence.ensure_parent()
        await self.reconciler.initialize()
        self.watcher.start()
        self._started = True

    async def stop(self) -> None:
        """Stop watching and wait for pending writes to reach disk."""
        if not self._started:
            return
        await self.watcher.stop()
        await self.reconciler.drain()
        self._started = False

    async def _on_change(self, reasons: tuple[str, ...]) -> ReconcileOutcome:
        outcome = await self.reconciler.reconcile(reasons)
        if outcome is ReconcileOutcome.DEFERRED:
            self.watcher.signal("deferred", channel="reconciler")
        return outcome

    def stats(self) -> dict[str, Any]:
        """Engine counters for the stats endpoint."""
        return {
            "data_file": str(self.config.data_path),
            "content_length": len(self.store.get()),
            "subscribers": self.broadcaster.subscriber_count,
            "persist_pending": self.reconciler.persist_pending,
            "reconcile_passes": self.watcher.debouncer.passes,
            "channels": self.watcher.channels,
        }
