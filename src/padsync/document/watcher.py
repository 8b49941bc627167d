"""Document watcher — detects edits to the backing file by other processes.

Three independent producers feed one ``Debouncer``:

- **poll**: stat the file every ``poll_interval`` seconds and compare
  ``(mtime_ns, size)``.  Works everywhere; correctness never depends on
  anything else.
- **file**: a native watch (watchfiles) on the file itself for low latency.
  Re-armed after the file is deleted or replaced.
- **directory**: a native watch on the containing directory filtered to the
  file name, catching create/delete/rename patterns (atomic save-by-rename)
  that a watch on the old inode misses.

Producers never touch document state; they only call ``signal()``.  A native
channel that fails to start is reported as degraded and the others carry on.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change, awatch

from padsync._errors import WatchError
from padsync.document.debounce import Debouncer
from padsync.document.persistence import stat_key

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine
    from typing import Any

    from padsync._types import ChangeReason, Channel
    from padsync.observability.collector import SyncCollector

type ChannelState = Literal["disabled", "active", "degraded", "stopped"]

# Mapping from watchfiles Change enum to reason suffixes.
_CHANGE_NAMES: dict[Change, str] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

# watchfiles' own batching; kept short because Debouncer does the real work.
_NATIVE_DEBOUNCE_MS = 50
_NATIVE_STEP_MS = 20


class DocumentWatcher:
    """Watches the backing file and schedules debounced reconciliations.

    Args:
        path: Absolute path of the backing file.
        on_change: Coroutine function run once per debounced burst with the
            coalesced reasons.
        poll_interval: Seconds between stat polls.
        debounce: Quiescence window in seconds.
        native_watch: Enable the native file channel.
        directory_watch: Enable the directory channel.
        collector: Optional event collector.

    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[tuple[ChangeReason, ...]], Awaitable[object]],
        *,
        poll_interval: float = 0.3,
        debounce: float = 0.12,
        native_watch: bool = True,
        directory_watch: bool = True,
        collector: SyncCollector | None = None,
    ) -> None:
        self._path = path
        self._poll_interval = poll_interval
        self._collector = collector
        self._on_change = on_change
        self._debounce = debounce
        self._debouncer = Debouncer(on_change, debounce)
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._last_stat: tuple[int, int] | None = None
        self._channels: dict[Channel, ChannelState] = {
            "poll": "stopped",
            "file": "disabled" if not native_watch else "stopped",
            "directory": "disabled" if not directory_watch else "stopped",
        }

    @property
    def is_running(self) -> bool:
        """Whether any channel task is still alive."""
        return any(not t.done() for t in self._tasks)

    @property
    def channels(self) -> dict[Channel, ChannelState]:
        """State of each detection channel (copy)."""
        return dict(self._channels)

    @property
    def debouncer(self) -> Debouncer:
        """The coalescing queue in front of ``on_change``."""
        return self._debouncer

    def signal(self, reason: ChangeReason, *, channel: str = "manual") -> None:
        """Report that the backing file may have changed."""
        if self._collector is not None:
            self._collector.record_watch(channel, "signal", reason)
        self._debouncer.trigger(reason)

    def start(self) -> None:
        """Start every enabled channel as a task on the running loop."""
        if self.is_running:
            return

        if self._debouncer.closed:
            self._debouncer = Debouncer(self._on_change, self._debounce)
        self._stop_event.clear()
        self._last_stat = stat_key(self._path)
        self._spawn("poll", self._poll_loop())
        if self._channels["file"] != "disabled":
            self._spawn("file", self._watch_file())
        if self._channels["directory"] != "disabled":
            self._spawn("directory", self._watch_directory())

    async def stop(self) -> None:
        """Stop all channels and drop any pending reconciliation."""
        self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        for channel, state in self._channels.items():
            if state == "active":
                self._channels[channel] = "stopped"
                self._record(channel, "stopped")
        await self._debouncer.close()

    # ----- channels -----

    def _spawn(self, channel: Channel, coro: Coroutine[Any, Any, None]) -> None:
        self._channels[channel] = "active"
        self._record(channel, "started")
        task = asyncio.get_running_loop().create_task(coro, name=f"padsync-{channel}")
        self._tasks.append(task)

    async def _poll_loop(self) -> None:
        """Stat the file on a fixed interval; any difference is a change."""
        while not self._stop_event.is_set():
            await asyncio.sleep(self._poll_interval)
            current = await asyncio.to_thread(stat_key, self._path)
            if current != self._last_stat:
                self._last_stat = current
                self.signal("stat-change", channel="poll")

    async def _watch_file(self) -> None:
        """Native watch on the file; re-armed after delete/replace."""
        try:
            while not self._stop_event.is_set():
                if not self._path.exists():
                    await self._wait_stopped(self._poll_interval)
                    continue
                async with contextlib.aclosing(
                    awatch(
                        self._path,
                        watch_filter=None,
                        stop_event=self._stop_event,
                        debounce=_NATIVE_DEBOUNCE_MS,
                        step=_NATIVE_STEP_MS,
                        recursive=False,
                    )
                ) as stream:
                    async for changes in stream:
                        kinds = {change for change, _ in changes}
                        for kind in kinds:
                            self.signal(f"file-{_CHANGE_NAMES.get(kind, 'modified')}", channel="file")
                        if Change.deleted in kinds:
                            break  # watch is bound to the old inode
        except (OSError, RuntimeError) as exc:
            self._degrade("file", exc)

    async def _watch_directory(self) -> None:
        """Native watch on the containing directory, filtered to our file."""
        name = self._path.name

        def _only_our_file(_change: Change, path: str) -> bool:
            return Path(path).name == name

        try:
            if not self._path.parent.is_dir():
                msg = f"directory {self._path.parent} does not exist"
                raise WatchError(msg)
            async for changes in awatch(
                self._path.parent,
                watch_filter=_only_our_file,
                stop_event=self._stop_event,
                debounce=_NATIVE_DEBOUNCE_MS,
                step=_NATIVE_STEP_MS,
                recursive=False,
            ):
                for change, _ in changes:
                    self.signal(f"dir-{_CHANGE_NAMES.get(change, 'modified')}", channel="directory")
        except (OSError, RuntimeError, WatchError) as exc:
            self._degrade("directory", exc)

    async def _wait_stopped(self, timeout: float) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)

    def _degrade(self, channel: Channel, exc: BaseException) -> None:
        self._channels[channel] = "degraded"
        print(f"  {channel} watch unavailable, relying on polling: {exc}", file=sys.stderr)
        self._record(channel, "degraded", str(exc))

    def _record(self, channel: str, kind: str, detail: str = "") -> None:
        if self._collector is not None:
            self._collector.record_watch(channel, kind, detail)
