"""fsmerkle Core - Merkle tree fingerprints and change reports for directory trees."""

from fsmerkle_core.client import MerkleClient
from fsmerkle_core.config import FsMerkleConfig, load_config
from fsmerkle_core.merkle import (
    ChangeKind,
    ChangeRecord,
    ChangeReport,
    MerkleTree,
    Snapshot,
    compare_snapshots,
    take_snapshot,
)
from fsmerkle_core.storage import CsvSnapshotStore

__version__ = "0.1.0"

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "ChangeReport",
    "CsvSnapshotStore",
    "FsMerkleConfig",
    "MerkleClient",
    "MerkleTree",
    "Snapshot",
    "compare_snapshots",
    "load_config",
    "take_snapshot",
]
