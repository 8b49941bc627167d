"""Load PadSyncConfig from padsync.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from padsync.config import PadSyncConfig

_KNOWN_KEYS = frozenset({
    "data_file", "host", "port", "poll_interval", "debounce",
    "persist_timeout", "max_body_bytes", "subscriber_queue_size",
    "native_watch", "directory_watch",
})


def load_config(root: Path, **overrides: object) -> PadSyncConfig:
    """Load PadSyncConfig from root, optionally merging padsync.yaml.

    Looks for padsync.yaml, padsync.yml, or padsync.toml in root. If found,
    loads and merges with overrides. Overrides take precedence; ``None``
    overrides (unset CLI flags) are ignored.
    """
    file_config = _read_padsync_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    if "data_file" in merged and not isinstance(merged["data_file"], Path):
        merged["data_file"] = Path(str(merged["data_file"]))
    return PadSyncConfig(root=root, **merged)


def _read_padsync_config(root: Path) -> dict[str, object]:
    """Read padsync config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("padsync.yaml", "padsync.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "padsync.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_padsync_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return _flatten_padsync_section(data)


def _flatten_padsync_section(data: dict[str, object]) -> dict[str, object]:
    """Extract padsync.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("padsync")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    for k, v in data.items():
        if k != "padsync" and k in _KNOWN_KEYS:
            result[k] = v
    return result
