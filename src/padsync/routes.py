"""HTTP routes — the request layer in front of the sync engine.

Registers on a Chirp app:

- ``GET /``                 bundled editor page
- ``GET /content``          ``{"content": ...}`` JSON
- ``POST /save``            writer entry point (204, or 400 on a bad body)
- ``GET /events``           SSE stream of ``content`` events
- ``GET /__padsync/stats``  engine counters and event log summary

Only ``/save`` reaches mutation logic, through ``Reconciler.save()``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from padsync._errors import PayloadError
from padsync.payload import parse_save_payload

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from chirp import App, Request

    from padsync.engine import SyncEngine
    from padsync.reactive.broadcaster import Broadcaster, Subscription

INDEX_ENDPOINT = "/"
CONTENT_ENDPOINT = "/content"
SAVE_ENDPOINT = "/save"
EVENTS_ENDPOINT = "/events"
STATS_ENDPOINT = "/__padsync/stats"


def _bundled_page_path() -> Path:
    """Return the absolute path to the bundled editor page."""
    return Path(__file__).parent / "static" / "index.html"


async def content_events(broadcaster: Broadcaster, sub: Subscription) -> AsyncIterator[Any]:
    """Yield one ``content`` SSE event per queued message for *sub*.

    The subscription is removed when the stream ends or the client goes away.
    """
    from chirp import SSEEvent

    try:
        async for message in broadcaster.client_generator(sub):
            yield SSEEvent(data=message.to_json(), event=message.event)
    finally:
        broadcaster.unsubscribe(sub)


class SyncRouter:
    """Registers the padsync endpoints on a Chirp app.

    Args:
        engine: The running sync engine.
        app: Chirp application to register routes on.

    """

    def __init__(self, engine: SyncEngine, app: App) -> None:
        self._engine = engine
        self._app = app

    def register_all(self) -> None:
        """Register every endpoint."""
        self.register_index()
        self.register_content_endpoint()
        self.register_save_endpoint()
        self.register_events_endpoint()
        self.register_stats_endpoint()

    def register_index(self) -> None:
        """Register ``GET /`` serving the bundled editor page."""
        page_path = _bundled_page_path()

        async def index_handler(request: Request) -> Any:
            from chirp.http.response import Response

            try:
                body = page_path.read_text(encoding="utf-8")
            except OSError as exc:
                print(f"  Cannot read {page_path}: {exc}", file=sys.stderr)
                return Response(body="Server error", status=500, content_type="text/plain")
            return Response(body=body, status=200, content_type="text/html; charset=utf-8")

        self._app.route(INDEX_ENDPOINT, name="padsync:index")(index_handler)

    def register_content_endpoint(self) -> None:
        """Register ``GET /content`` returning the current document."""
        reconciler = self._engine.reconciler

        async def content_handler(request: Request) -> Any:
            from chirp.http.response import Response

            return Response(
                body=json.dumps({"content": reconciler.get()}),
                status=200,
                content_type="application/json",
            )

        self._app.route(CONTENT_ENDPOINT, name="padsync:content")(content_handler)

    def register_save_endpoint(self) -> None:
        """Register ``POST /save``, the only route that mutates the document."""
        reconciler = self._engine.reconciler
        max_bytes = self._engine.config.max_body_bytes

        async def save_handler(request: Request) -> Any:
            from chirp.http.response import Response

            try:
                text = parse_save_payload(
                    await request.body(),
                    request.headers.get("content-type", ""),
                    max_bytes=max_bytes,
                )
            except PayloadError as exc:
                print(f"  Rejected save: {exc}", file=sys.stderr)
                return Response(body="Bad Request", status=400, content_type="text/plain")

            await reconciler.save(text)
            return Response(body="", status=204)

        self._app.route(SAVE_ENDPOINT, methods=["POST"], name="padsync:save")(save_handler)

    def register_events_endpoint(self) -> None:
        """Register ``GET /events``, the live-update SSE stream.

        The subscription is created when the request arrives, so the first
        event is the content current at connection time.  The generator's
        ``finally`` unsubscribes on disconnect.

        """
        from chirp import EventStream

        broadcaster = self._engine.broadcaster

        async def events_handler(request: Request) -> Any:
            return EventStream(content_events(broadcaster, broadcaster.subscribe()))

        self._app.route(EVENTS_ENDPOINT, name="padsync:events")(events_handler)

    def register_stats_endpoint(self) -> None:
        """Register ``GET /__padsync/stats`` with engine and event log stats."""
        engine = self._engine

        async def stats_handler(request: Request) -> Any:
            from chirp.http.response import Response

            payload = json.dumps(
                {"engine": engine.stats(), "event_log": engine.collector.log.stats()},
                indent=2,
            )
            return Response(body=payload, status=200, content_type="application/json")

        self._app.route(STATS_ENDPOINT, name="padsync:stats")(stats_handler)
