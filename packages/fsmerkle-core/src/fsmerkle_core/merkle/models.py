"""Data models for the Merkle tree subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Union

if TYPE_CHECKING:
    from fsmerkle_core.merkle.tree import MerkleTree

# Raw digest bytes; hex-encoded only when stored or displayed
Digest = bytes


# ── Errors ───────────────────────────────────────────────────────────


class MerkleError(Exception):
    """Base class for everything the merkle subsystem raises."""


class TraversalError(MerkleError):
    """Raised when a directory cannot be walked or a file cannot be read."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        super().__init__(f"{path}: {reason}")


class EmptyTreeError(MerkleError):
    """Raised when a tree is built from zero files."""

    def __init__(self, source: str | None = None) -> None:
        self.source = source
        msg = "empty tree: no files found"
        if source:
            msg += f" in {source}"
        super().__init__(msg)


class DuplicatePathError(MerkleError, ValueError):
    """Raised when two leaf entries share a path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"duplicate path in leaf entries: {path}")


class SnapshotError(MerkleError):
    """Base class for snapshot persistence failures."""


class SnapshotNotFoundError(SnapshotError):
    """No prior snapshot exists. Expected on a first run."""

    def __init__(self, subject: str) -> None:
        self.subject = subject
        super().__init__(f"no previous snapshot found for: {subject}")


class SnapshotReadError(SnapshotError):
    """A stored snapshot exists but could not be parsed."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot read snapshot {path}: {reason}")


class SnapshotWriteError(SnapshotError):
    """A snapshot could not be written. No partial file is left behind."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot write snapshot {path}: {reason}")


# ── Tree ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LeafEntry:
    """One file's content fingerprint, keyed by its relative POSIX path."""

    path: str
    digest: Digest


@dataclass(frozen=True)
class Leaf:
    digest: Digest
    path: str


@dataclass(frozen=True)
class Internal:
    """Parent of two nodes, addressed by their index in the tree's arena.

    ``left == right`` when an unpaired node was combined with itself.
    """

    digest: Digest
    left: int
    right: int


TreeNode = Union[Leaf, Internal]


# ── Snapshot ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time flattened fingerprint of a directory.

    The root hash cannot be recomputed from ``file_hashes`` alone, so it is
    captured when the tree is built and carried alongside the map.
    """

    timestamp: datetime
    root_hash: Digest
    file_hashes: Mapping[str, Digest] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so callers can't mutate it through their dict
        object.__setattr__(
            self, "file_hashes", MappingProxyType(dict(self.file_hashes))
        )

    @classmethod
    def from_tree(cls, tree: MerkleTree, timestamp: datetime | None = None) -> Snapshot:
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            root_hash=tree.root_hash,
            file_hashes=tree.flatten(),
        )

    @property
    def file_count(self) -> int:
        return len(self.file_hashes)

    def same_content(self, other: Snapshot) -> bool:
        """Cheap equality check: equal roots mean identical file sets."""
        return self.root_hash == other.root_hash


# ── Diff ─────────────────────────────────────────────────────────────


class ChangeKind(str, Enum):
    """How a single path differs between two snapshots."""

    modified = "modified"
    added = "added"
    deleted = "deleted"


@dataclass(frozen=True)
class ChangeRecord:
    path: str
    kind: ChangeKind
    old_hash: Digest | None = None
    new_hash: Digest | None = None


@dataclass(frozen=True)
class ChangeReport:
    """Result of comparing an old snapshot against a new one."""

    old_timestamp: datetime
    new_timestamp: datetime
    old_root_hash: Digest
    new_root_hash: Digest
    changes: tuple[ChangeRecord, ...] = ()

    @property
    def root_changed(self) -> bool:
        return self.old_root_hash != self.new_root_hash

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def _of_kind(self, kind: ChangeKind) -> list[ChangeRecord]:
        return [c for c in self.changes if c.kind is kind]

    @property
    def modified(self) -> list[ChangeRecord]:
        return self._of_kind(ChangeKind.modified)

    @property
    def added(self) -> list[ChangeRecord]:
        return self._of_kind(ChangeKind.added)

    @property
    def deleted(self) -> list[ChangeRecord]:
        return self._of_kind(ChangeKind.deleted)

    def counts(self) -> dict[ChangeKind, int]:
        """Number of records per kind, every kind present."""
        result = {kind: 0 for kind in ChangeKind}
        for change in self.changes:
            result[change.kind] += 1
        return result
