"""Content store — the single owned cell holding the document.

Holds the current in-memory value and the snapshot most recently written
to (or adopted from) the backing file.  Only the reconciler mutates it;
readers call ``get()``.

Thread Safety:
    Field access is protected by a ``threading.Lock``.  The lock covers a
    few attribute reads/writes only and is never held across I/O.

"""

from __future__ import annotations

import threading


class ContentStore:
    """Current document content plus the last persisted snapshot.

    ``generation`` increments every time ``current`` changes, so callers
    can detect that the document moved while they were doing I/O.

    Args:
        initial: Starting content (both current and persisted snapshot).

    """

    __slots__ = ("_content", "_generation", "_lock", "_snapshot")

    def __init__(self, initial: str = "") -> None:
        self._content = initial
        self._snapshot = initial
        self._generation = 0
        self._lock = threading.Lock()

    def get(self) -> str:
        """Return the current content."""
        with self._lock:
            return self._content

    @property
    def snapshot(self) -> str:
        """The content value this process most recently persisted."""
        with self._lock:
            return self._snapshot

    @property
    def generation(self) -> int:
        """Monotonic counter of accepted content changes."""
        with self._lock:
            return self._generation

    def set(self, content: str) -> bool:
        """Replace the current content.

        Returns:
            True when the value actually changed.  An identical value is a
            no-op and leaves ``generation`` untouched.

        """
        with self._lock:
            if content == self._content:
                return False
            self._content = content
            self._generation += 1
            return True

    def mark_persisted(self, snapshot: str) -> None:
        """Record *snapshot* as the value this process wrote to disk."""
        with self._lock:
            self._snapshot = snapshot

    def adopt(self, content: str) -> bool:
        """Take *content* as both current and persisted (it is on disk already).

        Returns:
            True when the current value changed.

        """
        with self._lock:
            self._snapshot = content
            if content == self._content:
                return False
            self._content = content
            self._generation += 1
            return True
