"""Merkle tree subsystem for directory change detection."""

from fsmerkle_core.merkle.builder import (
    MerkleTreeBuilder,
    entries_from_contents,
    iter_files,
    iter_leaf_entries,
)
from fsmerkle_core.merkle.differ import MerkleTreeDiffer, compare_snapshots
from fsmerkle_core.merkle.models import (
    ChangeKind,
    ChangeRecord,
    ChangeReport,
    Digest,
    DuplicatePathError,
    EmptyTreeError,
    Internal,
    Leaf,
    LeafEntry,
    MerkleError,
    Snapshot,
    SnapshotError,
    SnapshotNotFoundError,
    SnapshotReadError,
    SnapshotWriteError,
    TraversalError,
    TreeNode,
)
from fsmerkle_core.merkle.tree import (
    MerkleTree,
    combine,
    compute_file_hash,
    compute_hash,
)


def build_tree(*args, **kwargs) -> MerkleTree:
    """Convenience wrapper around MerkleTreeBuilder.build()."""
    return MerkleTreeBuilder.build(*args, **kwargs)


def take_snapshot(*args, **kwargs) -> Snapshot:
    """Convenience wrapper around MerkleTreeBuilder.snapshot()."""
    return MerkleTreeBuilder.snapshot(*args, **kwargs)


__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "ChangeReport",
    "Digest",
    "DuplicatePathError",
    "EmptyTreeError",
    "Internal",
    "Leaf",
    "LeafEntry",
    "MerkleError",
    "MerkleTree",
    "MerkleTreeBuilder",
    "MerkleTreeDiffer",
    "Snapshot",
    "SnapshotError",
    "SnapshotNotFoundError",
    "SnapshotReadError",
    "SnapshotWriteError",
    "TraversalError",
    "TreeNode",
    "build_tree",
    "combine",
    "compare_snapshots",
    "compute_file_hash",
    "compute_hash",
    "entries_from_contents",
    "iter_files",
    "iter_leaf_entries",
    "take_snapshot",
]
