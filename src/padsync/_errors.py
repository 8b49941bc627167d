"""padsync error hierarchy.

All padsync-specific errors inherit from PadSyncError for easy catching.
"""


class PadSyncError(Exception):
    """Base error for all padsync operations."""


class ConfigError(PadSyncError):
    """Invalid or missing configuration."""


class PayloadError(PadSyncError):
    """A writer submitted a body that cannot be turned into document text."""


class PersistenceError(PadSyncError):
    """Reading or writing the backing file failed."""


class WatchError(PadSyncError):
    """A change-detection channel could not be started."""
