"""Shared test fixtures for padsync."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from padsync.config import PadSyncConfig
from padsync.document.persistence import FilePersistence
from padsync.document.store import ContentStore
from padsync.observability.collector import SyncCollector
from padsync.reactive.broadcaster import Broadcaster, Subscription
from padsync.reactive.reconciler import Reconciler


@pytest.fixture
def config(tmp_path: Path) -> PadSyncConfig:
    """A fast, polling-only config rooted at a temp directory.

    Native channels are off so tests do not depend on the platform's
    notification backend; polling alone must be enough.
    """
    return PadSyncConfig(
        root=tmp_path,
        poll_interval=0.05,
        debounce=0.05,
        persist_timeout=2.0,
        native_watch=False,
        directory_watch=False,
    )


@pytest.fixture
def data_path(config: PadSyncConfig) -> Path:
    """Backing file path with its directory created."""
    config.data_dir.mkdir(parents=True, exist_ok=True)
    return config.data_path


@pytest.fixture
def collector() -> SyncCollector:
    return SyncCollector()


@pytest.fixture
def store() -> ContentStore:
    return ContentStore()


@pytest.fixture
def persistence(data_path: Path, collector: SyncCollector) -> FilePersistence:
    return FilePersistence(data_path, timeout=2.0, collector=collector)


@pytest.fixture
def broadcaster(store: ContentStore, collector: SyncCollector) -> Broadcaster:
    return Broadcaster(store.get, collector=collector)


@pytest.fixture
def reconciler(
    store: ContentStore,
    persistence: FilePersistence,
    broadcaster: Broadcaster,
    collector: SyncCollector,
) -> Reconciler:
    return Reconciler(store, persistence, broadcaster, collector=collector)


def drain_messages(sub: Subscription) -> list[str]:
    """Pop every queued message from *sub* and return the contents."""
    contents: list[str] = []
    while not sub.queue.empty():
        contents.append(sub.queue.get_nowait().content)
    return contents


async def wait_for(predicate, timeout: float = 3.0, interval: float = 0.01) -> None:
    """Poll *predicate* until it is true or fail after *timeout* seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail(f"condition not met within {timeout}s")
        await asyncio.sleep(interval)
