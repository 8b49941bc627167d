"""Document layer — the content cell, its backing file, and change detection.

Holds the in-memory document, reads and writes the backing file, and
watches that file for edits made by other processes.
"""

from padsync.document.debounce import Debouncer
from padsync.document.persistence import FilePersistence, stat_key
from padsync.document.store import ContentStore
from padsync.document.watcher import DocumentWatcher

__all__ = [
    "ContentStore",
    "Debouncer",
    "DocumentWatcher",
    "FilePersistence",
    "stat_key",
]
