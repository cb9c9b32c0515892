"""Snapshot storage interface."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from fsmerkle_core.merkle.models import Snapshot


@runtime_checkable
class SnapshotStore(Protocol):
    """Persists snapshots grouped by subject (the snapshotted folder's name)."""

    def save(self, snapshot: Snapshot, subject: str) -> Path: ...

    def load(self, path: str | Path) -> Snapshot: ...

    def find_latest(self, subject: str) -> Path: ...

    def load_latest(self, subject: str) -> Snapshot: ...

    def list_snapshots(self, subject: str) -> list[Path]: ...
