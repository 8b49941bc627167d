"""padsync configuration.

PadSyncConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from padsync._errors import ConfigError


@dataclass(frozen=True, slots=True)
class PadSyncConfig:
    """Configuration for a padsync server.

    Attributes:
        root: Directory the data file is resolved against.
              Always resolved to an absolute path on construction.
        data_file: Backing file holding the document, relative to ``root``
            unless absolute.
        host: Bind address.
        port: Bind port.
        poll_interval: Seconds between stat polls of the backing file.
        debounce: Quiescence window in seconds before a reconciliation runs.
        persist_timeout: Upper bound in seconds for a single file read or write.
        max_body_bytes: Largest accepted ``/save`` request body.
        subscriber_queue_size: Pending messages a slow reader may accumulate
            before it is dropped.
        native_watch: Watch the backing file with OS change notifications.
        directory_watch: Watch the containing directory for create, delete,
            and rename patterns.

    """

    root: Path = field(default_factory=Path.cwd)
    data_file: Path = field(default_factory=lambda: Path("data") / "notepad.txt")
    host: str = "127.0.0.1"
    port: int = 6969
    poll_interval: float = 0.3
    debounce: float = 0.12
    persist_timeout: float = 5.0
    max_body_bytes: int = 5 * 1024 * 1024
    subscriber_queue_size: int = 256
    native_watch: bool = True
    directory_watch: bool = True

    def __post_init__(self) -> None:
        # Resolve root to absolute so watchfiles paths (always absolute)
        # compare equal to data_path.
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if not isinstance(self.data_file, Path):
            object.__setattr__(self, "data_file", Path(str(self.data_file)))

        if self.poll_interval <= 0:
            msg = f"poll_interval must be positive, got {self.poll_interval}"
            raise ConfigError(msg)
        if self.debounce < 0:
            msg = f"debounce must not be negative, got {self.debounce}"
            raise ConfigError(msg)
        if self.persist_timeout <= 0:
            msg = f"persist_timeout must be positive, got {self.persist_timeout}"
            raise ConfigError(msg)
        if not 0 <= self.port <= 65535:
            msg = f"port out of range: {self.port}"
            raise ConfigError(msg)
        if self.subscriber_queue_size < 1:
            msg = "subscriber_queue_size must be at least 1"
            raise ConfigError(msg)

    @property
    def data_path(self) -> Path:
        """Absolute path to the backing file."""
        if self.data_file.is_absolute():
            return self.data_file
        return self.root / self.data_file

    @property
    def data_dir(self) -> Path:
        """Directory containing the backing file."""
        return self.data_path.parent
