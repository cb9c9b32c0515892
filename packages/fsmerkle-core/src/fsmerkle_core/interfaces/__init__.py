"""Pluggable interfaces for fsmerkle backends."""

from fsmerkle_core.interfaces.storage import SnapshotStore

__all__ = [
    "SnapshotStore",
]
