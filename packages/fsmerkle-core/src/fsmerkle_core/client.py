"""High-level client: snapshot a folder, persist it, compare against history."""

from __future__ import annotations

import logging
from pathlib import Path

from fsmerkle_core.config.models import FsMerkleConfig
from fsmerkle_core.interfaces.storage import SnapshotStore
from fsmerkle_core.merkle.builder import MerkleTreeBuilder
from fsmerkle_core.merkle.differ import MerkleTreeDiffer
from fsmerkle_core.merkle.models import ChangeReport, Snapshot, SnapshotNotFoundError
from fsmerkle_core.merkle.tree import MerkleTree
from fsmerkle_core.storage.csv_store import CsvSnapshotStore

logger = logging.getLogger(__name__)


def subject_for(folder: str | Path) -> str:
    """Name under which snapshots of *folder* are grouped."""
    return Path(folder).resolve().name


class MerkleClient:
    """Ties traversal, tree building, storage and diffing together.

    The store defaults to a CsvSnapshotStore rooted at
    ``config.storage.directory``.
    """

    def __init__(
        self,
        config: FsMerkleConfig | None = None,
        store: SnapshotStore | None = None,
    ) -> None:
        self.config = config or FsMerkleConfig()
        self.store = store or CsvSnapshotStore(self.config.storage.directory)

    def _exclude_dirs(self) -> list[Path]:
        # Snapshots stored inside the folder must not fingerprint themselves
        storage_dir = getattr(self.store, "storage_dir", None)
        return [Path(storage_dir)] if storage_dir is not None else []

    def get_tree(self, folder: str | Path) -> MerkleTree:
        """Build the Merkle tree for *folder*."""
        folder = Path(folder)
        tree = MerkleTreeBuilder.build(
            folder,
            ignore_patterns=self.config.merkle.ignore_patterns,
            algorithm=self.config.merkle.algorithm,
            exclude_dirs=self._exclude_dirs(),
        )
        logger.debug("tree for %s: %r", folder, tree)
        return tree

    def create_snapshot(self, folder: str | Path) -> Snapshot:
        """Build a fresh snapshot of *folder*'s current state."""
        snapshot = Snapshot.from_tree(self.get_tree(folder))
        logger.debug(
            "snapshot of %s: %d files, root %s",
            folder, snapshot.file_count, snapshot.root_hash.hex()[:16],
        )
        return snapshot

    def save_snapshot(self, snapshot: Snapshot, folder: str | Path) -> Path:
        return self.store.save(snapshot, subject_for(folder))

    def load_snapshot(self, path: str | Path) -> Snapshot:
        return self.store.load(path)

    def find_latest_snapshot(self, folder: str | Path) -> Path:
        """Raises SnapshotNotFoundError when *folder* has no stored snapshot."""
        return self.store.find_latest(subject_for(folder))

    def load_latest_snapshot(self, folder: str | Path) -> Snapshot | None:
        """Most recent stored snapshot of *folder*, or None on a first run."""
        try:
            return self.store.load_latest(subject_for(folder))
        except SnapshotNotFoundError:
            logger.debug("no previous snapshot for %s", subject_for(folder))
            return None

    def list_snapshots(self, folder: str | Path) -> list[Path]:
        return self.store.list_snapshots(subject_for(folder))

    def compare_snapshots(self, old: Snapshot, new: Snapshot) -> ChangeReport:
        return MerkleTreeDiffer.diff(old, new)
