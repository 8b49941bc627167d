"""Debouncer — coalesces bursts of change signals into one callback.

Every ``trigger()`` cancels the pending timer and re-arms it, so the
callback runs once, ``delay`` seconds after the *last* signal of a burst.
Reasons seen during the window are handed to the callback together.

A pass that has already started is never cancelled by a new signal; the
new signal arms a fresh timer for a follow-up pass instead.

Thread Safety:
    Not thread-safe.  ``trigger()`` must be called from the event loop
    thread (watchfiles' ``awatch`` and the poll task both run there).

"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class Debouncer:
    """Cancellable, re-armable timer in front of an async callback.

    Args:
        callback: Coroutine function receiving the coalesced reasons.
        delay: Quiescence window in seconds.

    """

    def __init__(
        self,
        callback: Callable[[tuple[str, ...]], Awaitable[object]],
        delay: float,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._reasons: list[str] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False
        self._passes = 0

    @property
    def pending(self) -> bool:
        """Whether a timer is armed and has not fired yet."""
        return self._handle is not None

    @property
    def closed(self) -> bool:
        """Whether ``close()`` has been called; triggers are ignored after it."""
        return self._closed

    @property
    def passes(self) -> int:
        """Number of callback passes started so far."""
        return self._passes

    def trigger(self, reason: str) -> None:
        """Record *reason* and (re)arm the timer."""
        if self._closed:
            return
        if reason not in self._reasons:
            self._reasons.append(reason)
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        reasons = tuple(self._reasons)
        self._reasons.clear()
        task = asyncio.get_running_loop().create_task(self._run(reasons))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, reasons: tuple[str, ...]) -> None:
        self._passes += 1
        try:
            await self._callback(reasons)
        except Exception as exc:
            print(f"  Reconcile error ({', '.join(reasons)}): {exc}", file=sys.stderr)

    async def flush(self) -> None:
        """Wait until no timer is armed and every started pass has finished."""
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*tuple(self._tasks))
            else:
                await asyncio.sleep(self._delay / 2 or 0.001)

    async def close(self) -> None:
        """Drop any armed timer and wait for running passes to finish."""
        self._closed = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._reasons.clear()
        if self._tasks:
            await asyncio.gather(*tuple(self._tasks))
