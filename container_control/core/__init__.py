"""Core primitives shared across services."""

from .events import ChangeEmitter, SnapshotChanged, Subscription

__all__ = ["ChangeEmitter", "SnapshotChanged", "Subscription"]
