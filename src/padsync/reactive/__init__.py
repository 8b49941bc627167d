"""Reactive layer — reconciliation and fan-out.

Decides which document changes are real and pushes them to readers.
"""

from padsync.reactive.broadcaster import (
    CONTENT_EVENT,
    Broadcaster,
    ContentMessage,
    Subscription,
)
from padsync.reactive.reconciler import ReconcileOutcome, Reconciler

__all__ = [
    "CONTENT_EVENT",
    "Broadcaster",
    "ContentMessage",
    "ReconcileOutcome",
    "Reconciler",
    "Subscription",
]
