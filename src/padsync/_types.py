"""Shared type definitions for padsync."""

from typing import Literal

# The document value
type Content = str

# SSE client identifier
type ClientID = str

# Best-effort tag describing why a reconciliation was requested
type ChangeReason = str

# Detection channel names
type Channel = Literal["poll", "file", "directory"]
