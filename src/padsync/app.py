"""padsync application — the sync engine served through Chirp.

``create_app`` builds the Chirp app and engine; ``serve`` is the entry
point used by ``padsync serve``.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

from padsync.config import PadSyncConfig
from padsync.config_loader import load_config
from padsync.engine import SyncEngine

if TYPE_CHECKING:
    from chirp import App


def _create_chirp_app(config: PadSyncConfig, *, debug: bool = False) -> App:
    """Create a Chirp App bound to the configured host and port."""
    from chirp import App, AppConfig

    app_config = AppConfig(
        debug=debug,
        host=config.host,
        port=config.port,
    )
    return App(config=app_config)


def _wire_engine_lifecycle(app: App, engine: SyncEngine) -> None:
    """Start and stop the engine with the app's event loop.

    Flow:
        on_startup   -> engine.start() (load file, spawn watcher tasks)
        on_shutdown  -> engine.stop() (stop watcher, drain persists)

    """

    @app.on_startup
    async def _start_engine() -> None:
        await engine.start()

    @app.on_shutdown
    async def _stop_engine() -> None:
        await engine.stop()


def create_app(config: PadSyncConfig, *, debug: bool = False) -> tuple[App, SyncEngine]:
    """Build the Chirp app and its sync engine.

    The engine is not started here; the app's startup hook starts it.

    """
    from padsync.cors import cors_middleware
    from padsync.routes import SyncRouter

    engine = SyncEngine(config)
    app = _create_chirp_app(config, debug=debug)
    SyncRouter(engine, app).register_all()
    app.add_middleware(cors_middleware)
    _wire_engine_lifecycle(app, engine)
    return app, engine


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Run the padsync server.

    Args:
        root: Directory the data file is resolved against (and where
            ``padsync.yaml`` / ``padsync.toml`` are looked up).
        **kwargs: Override PadSyncConfig fields.

    """
    from padsync.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()

    app, _engine = create_app(config)

    load_ms = (time.perf_counter() - t0) * 1000
    print_banner(config, load_ms=load_ms)

    app.run(host=config.host, port=config.port)
