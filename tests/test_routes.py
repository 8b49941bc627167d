"""Tests for padsync.routes — endpoint registration on a Chirp app."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from padsync.config import PadSyncConfig
from padsync.engine import SyncEngine
from padsync.reactive.broadcaster import Broadcaster
from padsync.routes import (
    CONTENT_ENDPOINT,
    EVENTS_ENDPOINT,
    SAVE_ENDPOINT,
    STATS_ENDPOINT,
    SyncRouter,
    _bundled_page_path,
    content_events,
)

from .conftest import drain_messages

pytest.importorskip("chirp")


def _body_text(response: object) -> str:
    body = response.body  # type: ignore[attr-defined]
    return body.decode() if isinstance(body, bytes) else body


class TestEndpointConstants:

    def test_paths(self) -> None:
        assert CONTENT_ENDPOINT == "/content"
        assert SAVE_ENDPOINT == "/save"
        assert EVENTS_ENDPOINT == "/events"
        assert STATS_ENDPOINT == "/__padsync/stats"

    def test_bundled_page_exists(self) -> None:
        page = _bundled_page_path()
        assert page.is_file()
        assert "EventSource" in page.read_text(encoding="utf-8")


class TestRegistration:

    def test_all_routes_registered(self, config: PadSyncConfig) -> None:
        from padsync.app import create_app

        app, _engine = create_app(config)

        route_names = [r.name for r in app._pending_routes if hasattr(r, "name")]
        assert {
            "padsync:index",
            "padsync:content",
            "padsync:save",
            "padsync:events",
            "padsync:stats",
        } <= set(route_names)

    def test_engine_not_started_by_create_app(self, config: PadSyncConfig) -> None:
        from padsync.app import create_app

        _app, engine = create_app(config)
        assert not engine.started


class TestServedThroughChirp:

    @pytest.mark.asyncio
    async def test_content_endpoint(self, config: PadSyncConfig) -> None:
        from chirp.testing.client import TestClient

        from padsync.app import create_app

        config.data_dir.mkdir(parents=True)
        config.data_path.write_text("hi", encoding="utf-8")
        app, engine = create_app(config)
        engine.store.adopt("hi")

        async with TestClient(app) as client:
            response = await client.get(CONTENT_ENDPOINT)
            assert response.status == 200
            assert json.loads(_body_text(response)) == {"content": "hi"}

        await engine.stop()

    @pytest.mark.asyncio
    async def test_index_page(self, config: PadSyncConfig) -> None:
        from chirp.testing.client import TestClient

        from padsync.app import create_app

        app, engine = create_app(config)

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert "padsync" in _body_text(response)

        await engine.stop()

    @pytest.mark.asyncio
    async def test_stats_endpoint(self, config: PadSyncConfig) -> None:
        from chirp.testing.client import TestClient

        from padsync.app import create_app

        app, engine = create_app(config)

        async with TestClient(app) as client:
            response = await client.get(STATS_ENDPOINT)
            assert response.status == 200
            stats = json.loads(_body_text(response))
            assert stats["engine"]["data_file"] == str(config.data_path)
            assert "total" in stats["event_log"]

        await engine.stop()


# ---------------------------------------------------------------------------
# Handlers called directly, as Chirp would call them
# ---------------------------------------------------------------------------


class _RecordingApp:
    """Stands in for a Chirp app; keeps each registered handler by route name."""

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}

    def route(self, path: str, *, methods: list[str] | None = None, name: str | None = None):
        def register(handler: Any) -> Any:
            self.handlers[name or path] = handler
            return handler

        return register


@dataclass
class _FakeRequest:
    payload: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    method: str = "POST"

    async def body(self) -> bytes:
        return self.payload


def _router_handlers(engine: SyncEngine) -> dict[str, Any]:
    app = _RecordingApp()
    SyncRouter(engine, app).register_all()  # type: ignore[arg-type]
    return app.handlers


class TestSaveHandler:

    @pytest.mark.asyncio
    async def test_json_body_saved(self, config: PadSyncConfig, data_path: Path) -> None:
        engine = SyncEngine(config)
        save = _router_handlers(engine)["padsync:save"]
        reader = engine.broadcaster.subscribe()
        drain_messages(reader)

        response = await save(
            _FakeRequest(b'{"content": "via http"}', {"content-type": "application/json"})
        )
        await engine.reconciler.drain()

        assert response.status == 204
        assert engine.reconciler.get() == "via http"
        assert drain_messages(reader) == ["via http"]
        assert data_path.read_text(encoding="utf-8") == "via http"

    @pytest.mark.asyncio
    async def test_plain_text_body_saved(self, config: PadSyncConfig, data_path: Path) -> None:
        engine = SyncEngine(config)
        save = _router_handlers(engine)["padsync:save"]

        response = await save(_FakeRequest(b"raw words", {"content-type": "text/plain"}))
        await engine.reconciler.drain()

        assert response.status == 204
        assert engine.reconciler.get() == "raw words"

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(
        self, config: PadSyncConfig, data_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        engine = SyncEngine(config)
        save = _router_handlers(engine)["padsync:save"]

        response = await save(_FakeRequest(b"{broken", {"content-type": "application/json"}))

        assert response.status == 400
        assert engine.reconciler.get() == ""
        assert not engine.reconciler.persist_pending
        assert "Rejected save" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_body_over_configured_limit_is_400(self, tmp_path: Path) -> None:
        config = PadSyncConfig(
            root=tmp_path, max_body_bytes=8, native_watch=False, directory_watch=False,
        )
        engine = SyncEngine(config)
        save = _router_handlers(engine)["padsync:save"]

        response = await save(_FakeRequest(b"123456789", {"content-type": "text/plain"}))

        assert response.status == 400
        assert engine.reconciler.get() == ""


class TestEventsStream:

    @pytest.mark.asyncio
    async def test_request_subscribes(self, config: PadSyncConfig) -> None:
        engine = SyncEngine(config)
        events = _router_handlers(engine)["padsync:events"]

        await events(_FakeRequest(method="GET"))
        assert engine.broadcaster.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_first_event_is_current_content(self) -> None:
        broadcaster = Broadcaster(lambda: "already here")
        stream = content_events(broadcaster, broadcaster.subscribe())

        first = await stream.__anext__()
        assert first.event == "content"
        assert json.loads(first.data) == {"content": "already here"}
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_published_content_follows(self) -> None:
        broadcaster = Broadcaster(lambda: "")
        stream = content_events(broadcaster, broadcaster.subscribe())
        await stream.__anext__()

        broadcaster.publish("update")
        event = await asyncio.wait_for(stream.__anext__(), timeout=1.0)
        assert json.loads(event.data) == {"content": "update"}
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_disconnect_unsubscribes(self) -> None:
        broadcaster = Broadcaster(lambda: "")
        stream = content_events(broadcaster, broadcaster.subscribe())
        await stream.__anext__()
        assert broadcaster.subscriber_count == 1

        await stream.aclose()
        assert broadcaster.subscriber_count == 0
