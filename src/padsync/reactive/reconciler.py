"""Reconciler — the single owner of document mutation.

Two paths reach the document:

- **save** (writer submits content): accept into memory, mark it as the
  persisted snapshot, broadcast, then persist in the background.
- **reconcile** (watcher saw the file move): re-read the file and decide
  whether it is this process's own write coming back (suppress) or an
  edit made by someone else (adopt and broadcast).

Both paths take the same ``asyncio.Lock`` for their decision step; the lock
is never held across file I/O.  Persists are serialized and always write the
newest snapshot, so rapid saves cannot land on disk out of order.

The snapshot is set *before* the persist starts.  However early the watcher
fires for that write, the read-back already matches it.
"""

from __future__ import annotations

import asyncio
import sys
import time
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from padsync._types import ChangeReason, Content
    from padsync.document.persistence import FilePersistence
    from padsync.document.store import ContentStore
    from padsync.observability.collector import SyncCollector
    from padsync.reactive.broadcaster import Broadcaster


class ReconcileOutcome(StrEnum):
    """What a reconciliation pass decided."""

    SUPPRESSED = "suppressed"
    """The file holds what this process last wrote: a self-write echo."""

    ADOPTED = "adopted"
    """The file was edited externally; the new value was adopted and broadcast."""

    UNCHANGED = "unchanged"
    """The file matches the current content already."""

    DEFERRED = "deferred"
    """A persist was in flight or a save raced the read; try again later."""


class Reconciler:
    """Serialized entry points for every document mutation.

    Args:
        store: The document cell.
        persistence: Backing-file adapter.
        broadcaster: Reader fan-out.
        collector: Optional event collector.
        max_deferrals: Consecutive passes that may be deferred because a
            persist is in flight; the next one waits for the persist instead,
            so a steady stream of saves cannot starve external-edit detection.

    """

    def __init__(
        self,
        store: ContentStore,
        persistence: FilePersistence,
        broadcaster: Broadcaster,
        collector: SyncCollector | None = None,
        *,
        max_deferrals: int = 8,
    ) -> None:
        self._store = store
        self._persistence = persistence
        self._broadcaster = broadcaster
        self._collector = collector
        self._lock = asyncio.Lock()
        self._persist_lock = asyncio.Lock()
        self._persist_tasks: set[asyncio.Task[None]] = set()
        self._last_written = store.snapshot
        self._max_deferrals = max_deferrals
        self._deferrals = 0

    def get(self) -> str:
        """Return the current document content."""
        return self._store.get()

    @property
    def persist_pending(self) -> bool:
        """Whether a persist is queued or its write thread is still running."""
        return bool(self._persist_tasks) or self._persistence.writing

    async def initialize(self) -> str:
        """Load the backing file into the store (empty if unreadable)."""
        content = await self._persistence.load()
        async with self._lock:
            self._store.adopt(content)
            self._last_written = content
        return content

    # ----- writer path -----

    async def save(self, content: Content) -> bool:
        """Accept *content* from a writer.

        Returns:
            False when *content* equals the current document (nothing is
            persisted or broadcast), True otherwise.  The return value never
            depends on whether the persist succeeds.

        """
        async with self._lock:
            if not self._store.set(content):
                self._record_write(changed=False, length=len(content))
                return False
            self._store.mark_persisted(content)
            notified = self._broadcaster.publish(content)
            self._schedule_persist()

        self._record_write(changed=True, length=len(content), notified=notified)
        return True

    def _schedule_persist(self) -> None:
        task = asyncio.get_running_loop().create_task(self._persist_latest())
        self._persist_tasks.add(task)
        task.add_done_callback(self._persist_tasks.discard)

    async def _persist_latest(self) -> None:
        async with self._persist_lock:
            # A timed-out write may still be running; it must land first.
            await self._persistence.settle()
            snapshot = self._store.snapshot
            # The file may have been edited since our last write; only skip
            # when it still holds what we wrote.
            if snapshot == self._last_written and not await self._persistence.disk_changed():
                return
            if await self._persistence.save(snapshot):
                self._last_written = snapshot

    async def drain(self) -> None:
        """Wait for every background persist issued so far."""
        while self._persist_tasks:
            await asyncio.gather(*tuple(self._persist_tasks))
        await self._persistence.settle()

    async def _settle_current(self) -> None:
        """Wait for the persists issued so far, ignoring ones issued meanwhile."""
        await asyncio.gather(*tuple(self._persist_tasks))
        await self._persistence.settle()

    # ----- watcher path -----

    async def reconcile(self, reasons: tuple[ChangeReason, ...] = ("manual",)) -> ReconcileOutcome:
        """Re-read the backing file and fold any external edit into the document."""
        t0 = time.perf_counter()

        if self.persist_pending:
            if self._deferrals < self._max_deferrals:
                self._deferrals += 1
                self._record_reconcile(ReconcileOutcome.DEFERRED, reasons, t0=t0)
                return ReconcileOutcome.DEFERRED
            await self._settle_current()

        generation = self._store.generation
        disk = await self._persistence.load()
        notified = 0

        async with self._lock:
            if self._store.generation != generation:
                # A save landed while we were reading; the read may predate it.
                outcome = ReconcileOutcome.DEFERRED
            elif disk == self._store.snapshot:
                outcome = ReconcileOutcome.SUPPRESSED
            elif disk != self._store.get():
                self._store.adopt(disk)
                self._last_written = disk
                notified = self._broadcaster.publish(disk)
                outcome = ReconcileOutcome.ADOPTED
            else:
                outcome = ReconcileOutcome.UNCHANGED

        if outcome is not ReconcileOutcome.DEFERRED:
            self._deferrals = 0
        if outcome is ReconcileOutcome.ADOPTED:
            print(
                f"  External change adopted ({', '.join(reasons)}), "
                f"{len(disk)} chars -> {notified} client(s)",
                file=sys.stderr,
            )
        self._record_reconcile(outcome, reasons, length=len(disk), notified=notified, t0=t0)
        return outcome

    # ----- observability -----

    def _record_write(self, *, changed: bool, length: int, notified: int = 0) -> None:
        if self._collector is not None:
            self._collector.record_write(
                changed=changed, length=length, clients_notified=notified,
            )

    def _record_reconcile(
        self,
        outcome: ReconcileOutcome,
        reasons: tuple[str, ...],
        *,
        length: int = 0,
        notified: int = 0,
        t0: float,
    ) -> None:
        if self._collector is not None:
            self._collector.record_reconcile(
                outcome.value,
                reasons=reasons,
                length=length,
                clients_notified=notified,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )
