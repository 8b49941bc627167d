"""padsync CLI — padsync serve.

Entry point for the ``padsync`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the padsync CLI."""
    parser = argparse.ArgumentParser(
        prog="padsync",
        description="Shared notepad kept in sync with a file on disk.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the shared document and watch its backing file",
    )
    serve_parser.add_argument("root", nargs="?", default=".", help="Root directory")
    serve_parser.add_argument(
        "--file", dest="data_file", default=None,
        help="Backing file (default: data/notepad.txt under root)",
    )
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--poll-interval", type=float, default=None,
        help="Seconds between stat polls of the backing file",
    )
    serve_parser.add_argument(
        "--no-native-watch", dest="native_watch", action="store_false", default=None,
        help="Disable OS change notifications (polling only)",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from padsync import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from padsync.app import serve

    if args.command == "serve":
        overrides: dict[str, object] = {
            "data_file": args.data_file,
            "host": args.host,
            "port": args.port,
            "poll_interval": args.poll_interval,
        }
        if args.native_watch is False:
            overrides["native_watch"] = False
            overrides["directory_watch"] = False
        serve(root=args.root, **overrides)


if __name__ == "__main__":
    main()
