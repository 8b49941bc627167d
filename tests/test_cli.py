"""Tests for padsync._cli — argument parsing and command dispatch."""

from __future__ import annotations

import pytest

from padsync._cli import _build_parser, main


class TestBuildParser:
    """_build_parser — CLI argument parsing."""

    def test_serve_default_args(self) -> None:
        args = _build_parser().parse_args(["serve"])
        assert args.command == "serve"
        assert args.root == "."
        assert args.data_file is None
        assert args.host is None
        assert args.port is None
        assert args.poll_interval is None
        assert args.native_watch is None

    def test_serve_all_flags(self) -> None:
        args = _build_parser().parse_args([
            "serve", "notes/",
            "--file", "shared.txt",
            "--host", "0.0.0.0",
            "--port", "8080",
            "--poll-interval", "1.5",
            "--no-native-watch",
        ])
        assert args.root == "notes/"
        assert args.data_file == "shared.txt"
        assert args.host == "0.0.0.0"
        assert args.port == 8080
        assert args.poll_interval == 1.5
        assert args.native_watch is False

    def test_no_command(self) -> None:
        args = _build_parser().parse_args([])
        assert args.command is None

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "padsync 0.1.0" in capsys.readouterr().out


class TestMain:
    """main — command dispatch."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "serve" in capsys.readouterr().out

    def test_serve_passes_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, object]] = []

        def fake_serve(root: str = ".", **kwargs: object) -> None:
            calls.append({"root": root, **kwargs})

        monkeypatch.setattr("padsync.app.serve", fake_serve)
        main(["serve", "notes", "--port", "7000", "--no-native-watch"])

        assert len(calls) == 1
        call = calls[0]
        assert call["root"] == "notes"
        assert call["port"] == 7000
        assert call["host"] is None
        assert call["native_watch"] is False
        assert call["directory_watch"] is False

    def test_serve_keeps_watch_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, object]] = []
        monkeypatch.setattr("padsync.app.serve", lambda root=".", **kw: calls.append(kw))
        main(["serve"])
        assert "native_watch" not in calls[0]
