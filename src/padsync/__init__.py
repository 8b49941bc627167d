"""padsync — one shared text document, kept in sync everywhere.

Keeps an in-memory document, a file on disk that other programs may edit,
and any number of live browser readers consistent with each other.
Writers POST new content; readers get every change pushed over SSE; edits
made to the file by other tools are detected and pushed too.

Quick start::

    import padsync

    padsync.serve("notes/")

Embedding the engine without HTTP::

    from padsync import PadSyncConfig, SyncEngine

    engine = SyncEngine(PadSyncConfig(root=Path("notes")))
    await engine.start()
    await engine.reconciler.save("hello")

"""

__version__ = "0.1.0"
__all__ = [
    "PadSyncConfig",
    "SyncEngine",
    "__version__",
    "create_app",
    "load_config",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import padsync`` fast and free of the HTTP stack until needed.
    """
    if name == "PadSyncConfig":
        from padsync.config import PadSyncConfig

        return PadSyncConfig

    if name == "SyncEngine":
        from padsync.engine import SyncEngine

        return SyncEngine

    if name == "load_config":
        from padsync.config_loader import load_config

        return load_config

    if name == "create_app":
        from padsync.app import create_app

        return create_app

    if name == "serve":
        from padsync.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
