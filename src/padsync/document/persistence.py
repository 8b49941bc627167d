"""Persistence adapter — best-effort reads and writes of the backing file.

Memory is authoritative; the file is a convenience copy.  Neither ``load``
nor ``save`` ever raises to its caller:

- ``load`` returns ``""`` when the file is missing, unreadable, not UTF-8,
  or the read does not finish within ``persist_timeout``.
- ``save`` returns ``False`` on any failure after logging it.

Blocking file I/O runs on a worker thread via ``asyncio.to_thread`` so the
event loop (and the reconciler's mutation path) never blocks on disk.

Writes go to a temporary file in the same directory which then replaces
the backing file, so a reader sees either the old or the new content and
never a truncated one.  A write that outlives ``persist_timeout`` is
reported as failed but keeps running on its thread; ``writing`` stays True
until that thread has returned.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

from padsync._errors import PersistenceError

if TYPE_CHECKING:
    from padsync.observability.collector import SyncCollector


def stat_key(path: Path) -> tuple[int, int] | None:
    """Return ``(mtime_ns, size)`` for *path*, or None when it is missing."""
    try:
        st = path.stat()
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


def read_text_file(path: Path) -> str:
    """Read *path* as UTF-8, raising PersistenceError on any failure."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"cannot read {path}: {exc}"
        raise PersistenceError(msg) from exc


def write_text_file(path: Path, content: str) -> None:
    """Atomically replace *path* with *content*, raising PersistenceError on failure."""
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        msg = f"cannot write {path}: {exc}"
        raise PersistenceError(msg) from exc

    tmp = Path(tmp_name)
    try:
        # newline="" keeps the document byte-exact; no \n -> os.linesep rewrite
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        if path.is_file():
            shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        msg = f"cannot write {path}: {exc}"
        raise PersistenceError(msg) from exc


class FilePersistence:
    """Reads and writes one plain-text file holding the whole document.

    Args:
        path: Absolute path of the backing file.
        timeout: Upper bound in seconds the caller waits for a read or write.
        collector: Optional event collector.

    """

    def __init__(
        self,
        path: Path,
        *,
        timeout: float = 5.0,
        collector: SyncCollector | None = None,
    ) -> None:
        self._path = path
        self._timeout = timeout
        self._collector = collector
        self._writes: set[asyncio.Task[None]] = set()
        self._synced_stat: tuple[int, int] | None = None

    @property
    def path(self) -> Path:
        """The backing file."""
        return self._path

    @property
    def writing(self) -> bool:
        """Whether a write thread is still running, timed out or not."""
        return bool(self._writes)

    def ensure_parent(self) -> None:
        """Create the directory holding the backing file if it is missing."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            print(f"  Cannot create {self._path.parent}: {exc}", file=sys.stderr)

    async def load(self) -> str:
        """Read the backing file; any failure yields empty content."""
        t0 = time.perf_counter()
        try:
            content = await asyncio.wait_for(
                asyncio.to_thread(read_text_file, self._path),
                timeout=self._timeout,
            )
        except PersistenceError as exc:
            self._synced_stat = None
            self._record("load", ok=False, error=str(exc), t0=t0)
            return ""
        except TimeoutError:
            self._record("load", ok=False, error="timed out", t0=t0)
            print(f"  Read timed out: {self._path}", file=sys.stderr)
            return ""

        self._synced_stat = await asyncio.to_thread(stat_key, self._path)
        self._record("load", ok=True, length=len(content), t0=t0)
        return content

    async def save(self, content: str) -> bool:
        """Write *content* to the backing file.

        Returns:
            True on success.  Failures are logged and recorded, never raised.

        """
        t0 = time.perf_counter()
        task = asyncio.get_running_loop().create_task(self._write(content))
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self._timeout)
        except PersistenceError as exc:
            print(f"  Write failed: {exc}", file=sys.stderr)
            self._record("save", ok=False, length=len(content), error=str(exc), t0=t0)
            return False
        except TimeoutError:
            task.add_done_callback(self._report_late_write)
            print(f"  Write timed out: {self._path}", file=sys.stderr)
            self._record("save", ok=False, length=len(content), error="timed out", t0=t0)
            return False

        self._record("save", ok=True, length=len(content), t0=t0)
        return True

    async def _write(self, content: str) -> None:
        await asyncio.to_thread(write_text_file, self._path, content)
        self._synced_stat = await asyncio.to_thread(stat_key, self._path)

    def _report_late_write(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            print(f"  Late write failed: {exc}", file=sys.stderr)

    async def settle(self) -> None:
        """Wait until every write thread, including timed-out ones, has returned."""
        while self._writes:
            await asyncio.gather(*tuple(self._writes), return_exceptions=True)

    async def disk_changed(self) -> bool:
        """Whether the file moved since this process last read or wrote it."""
        return await asyncio.to_thread(stat_key, self._path) != self._synced_stat

    def _record(
        self,
        operation: str,
        *,
        ok: bool,
        length: int = 0,
        error: str = "",
        t0: float | None = None,
    ) -> None:
        if self._collector is None:
            return
        duration_ms = (time.perf_counter() - t0) * 1000 if t0 is not None else 0.0
        self._collector.record_persist(
            operation,
            str(self._path),
            ok=ok,
            length=length,
            duration_ms=duration_ms,
            error=error,
        )
