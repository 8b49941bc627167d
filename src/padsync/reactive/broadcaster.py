"""SSE broadcaster — pushes document content to connected readers.

Every connected reader owns a ``Subscription`` with its own bounded queue.
``publish`` fans a ``ContentMessage`` out to a snapshot of the registry, so
a reader disconnecting mid-broadcast never disturbs iteration, and a reader
whose queue is full is dropped instead of slowing everyone else down.
"""

from __future__ import annotations

import asyncio
import json
import threading
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from padsync._types import ClientID, Content
    from padsync.observability.collector import SyncCollector

# SSE event name carried by every content push
CONTENT_EVENT = "content"


@dataclass(frozen=True, slots=True)
class ContentMessage:
    """One push to a reader: the full document at the time of the event.

    Attributes:
        content: Document text.
        event: SSE event name.

    """

    content: str
    event: str = CONTENT_EVENT

    def payload(self) -> dict[str, str]:
        """The JSON-ready message body."""
        return {"content": self.content}

    def to_json(self) -> str:
        """The message body serialized as JSON."""
        return json.dumps(self.payload())


@dataclass(frozen=True, slots=True, eq=False)
class Subscription:
    """A connected SSE reader.

    Compared and hashed by identity: two connections that share a
    ``client_id`` are still two subscriptions.

    Attributes:
        client_id: Unique identifier for this connection.
        queue: asyncio.Queue of pending messages for the reader's generator.

    """

    client_id: ClientID
    queue: asyncio.Queue[ContentMessage] = field(default_factory=asyncio.Queue)


class Broadcaster:
    """Registry of live readers plus content fan-out.

    Thread-safe: the subscriber set is protected by a lock and iterated as
    a frozen snapshot.

    Args:
        current: Returns the document content at call time; used for the
            first message of every new subscription.
        queue_size: Per-reader queue bound.
        collector: Optional event collector.

    """

    def __init__(
        self,
        current: Callable[[], str],
        *,
        queue_size: int = 256,
        collector: SyncCollector | None = None,
    ) -> None:
        self._current = current
        self._queue_size = queue_size
        self._collector = collector
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        """Number of live readers."""
        with self._lock:
            return len(self._subscribers)

    def get_subscribers(self) -> frozenset[Subscription]:
        """Snapshot of all subscribers (no lock held on return)."""
        with self._lock:
            return frozenset(self._subscribers)

    def subscribe(self, client_id: ClientID | None = None) -> Subscription:
        """Register a reader and queue the current content as its first message.

        Registration and the initial message happen under the registry lock,
        so no publish can slip in between them.

        """
        sub = Subscription(
            client_id=client_id or str(uuid.uuid4()),
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        with self._lock:
            sub.queue.put_nowait(ContentMessage(self._current()))
            self._subscribers.add(sub)
            count = len(self._subscribers)
        self._record(sub.client_id, "subscribed", count)
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        """Remove a reader.  Returns False when it was not registered."""
        with self._lock:
            if sub not in self._subscribers:
                return False
            self._subscribers.discard(sub)
            count = len(self._subscribers)
        self._record(sub.client_id, "unsubscribed", count)
        return True

    def publish(self, content: Content) -> int:
        """Queue *content* for every registered reader.

        Returns:
            Number of readers the message was delivered to.  Readers whose
            queue is full are dropped from the registry.

        """
        message = ContentMessage(content)
        delivered = 0
        dropped: list[Subscription] = []
        for sub in self.get_subscribers():
            try:
                sub.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                dropped.append(sub)

        for sub in dropped:
            with self._lock:
                self._subscribers.discard(sub)
                count = len(self._subscribers)
            self._record(sub.client_id, "dropped", count)

        return delivered

    async def client_generator(self, sub: Subscription) -> AsyncIterator[ContentMessage]:
        """Async generator that yields messages from a subscription's queue.

        Ends once the queue is empty and the subscription is no longer
        registered, which is how a dropped slow reader gets disconnected.

        Catches ``CancelledError`` (client disconnect / task cancellation)
        and ``GeneratorExit`` (generator cleanup) so shutdown does not leak
        ``StopAsyncIteration`` noise into the event loop.

        """
        try:
            while True:
                if sub.queue.empty() and not self._is_registered(sub):
                    return  # dropped; the reader reconnects
                message = await sub.queue.get()
                yield message
        except (asyncio.CancelledError, GeneratorExit):
            return

    def _is_registered(self, sub: Subscription) -> bool:
        with self._lock:
            return sub in self._subscribers

    def _record(self, client_id: str, kind: str, count: int) -> None:
        if self._collector is not None:
            self._collector.record_subscriber(client_id, kind, subscribers=count)
