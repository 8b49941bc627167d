"""Tests for padsync.config and padsync.config_loader."""

from pathlib import Path

import pytest

from padsync._errors import ConfigError
from padsync.config import PadSyncConfig
from padsync.config_loader import load_config


class TestPadSyncConfig:
    """PadSyncConfig — frozen dataclass with sensible defaults."""

    def test_defaults(self) -> None:
        config = PadSyncConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 6969
        assert config.poll_interval == 0.3
        assert config.debounce == 0.12
        assert config.max_body_bytes == 5 * 1024 * 1024
        assert config.native_watch is True
        assert config.directory_watch is True

    def test_frozen(self) -> None:
        config = PadSyncConfig()
        with pytest.raises(AttributeError):
            config.port = 8000  # type: ignore[misc]

    def test_data_path_resolves_from_root(self, tmp_path: Path) -> None:
        config = PadSyncConfig(root=tmp_path)
        assert config.data_path == tmp_path / "data" / "notepad.txt"
        assert config.data_dir == tmp_path / "data"

    def test_absolute_data_file_preserved(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "pad.txt"
        config = PadSyncConfig(root=Path("/srv"), data_file=target)
        assert config.data_path == target

    def test_string_data_file_coerced(self, tmp_path: Path) -> None:
        config = PadSyncConfig(root=tmp_path, data_file="notes.txt")  # type: ignore[arg-type]
        assert config.data_path == tmp_path / "notes.txt"

    def test_relative_root_resolved_to_absolute(self) -> None:
        config = PadSyncConfig(root=Path("site"))
        assert config.root.is_absolute()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"poll_interval": 0},
            {"debounce": -1},
            {"persist_timeout": 0},
            {"port": 70000},
            {"subscriber_queue_size": 0},
        ],
    )
    def test_invalid_values_rejected(self, tmp_path: Path, overrides: dict) -> None:
        with pytest.raises(ConfigError):
            PadSyncConfig(root=tmp_path, **overrides)


class TestLoadConfig:
    """load_config — file config merged with overrides."""

    def test_no_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.root == tmp_path
        assert config.port == 6969

    def test_yaml_section(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yaml").write_text(
            "padsync:\n  port: 7000\n  data_file: notes/pad.txt\n  debounce: 0.2\n"
        )
        config = load_config(tmp_path)
        assert config.port == 7000
        assert config.debounce == 0.2
        assert config.data_path == tmp_path / "notes" / "pad.txt"

    def test_yaml_top_level_keys(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yml").write_text("host: 0.0.0.0\nnative_watch: false\n")
        config = load_config(tmp_path)
        assert config.host == "0.0.0.0"
        assert config.native_watch is False

    def test_toml_section(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.toml").write_text("[padsync]\nport = 7100\npoll_interval = 1.5\n")
        config = load_config(tmp_path)
        assert config.port == 7100
        assert config.poll_interval == 1.5

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yaml").write_text("padsync:\n  colour: blue\n  port: 7001\n")
        config = load_config(tmp_path)
        assert config.port == 7001

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yaml").write_text("padsync:\n  port: 7000\n")
        config = load_config(tmp_path, port=7200)
        assert config.port == 7200

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yaml").write_text("padsync:\n  port: 7000\n")
        config = load_config(tmp_path, port=None, host=None)
        assert config.port == 7000
        assert config.host == "127.0.0.1"

    def test_broken_yaml_treated_as_empty(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yaml").write_text("padsync: [unclosed\n")
        config = load_config(tmp_path)
        assert config.port == 6969

    def test_non_mapping_yaml_treated_as_empty(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.yaml").write_text("- just\n- a list\n")
        config = load_config(tmp_path)
        assert config.port == 6969

    def test_broken_toml_treated_as_empty(self, tmp_path: Path) -> None:
        (tmp_path / "padsync.toml").write_text("[padsync\nport = \n")
        config = load_config(tmp_path)
        assert config.port == 6969
