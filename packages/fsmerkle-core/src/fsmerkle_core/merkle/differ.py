"""Snapshot differ: classify per-file changes between two snapshots."""

from __future__ import annotations

import logging

from fsmerkle_core.merkle.models import (
    ChangeKind,
    ChangeRecord,
    ChangeReport,
    Snapshot,
)

logger = logging.getLogger(__name__)


class MerkleTreeDiffer:
    """Compares the flattened file maps of two snapshots."""

    @staticmethod
    def diff(old: Snapshot, new: Snapshot) -> ChangeReport:
        """Compare *old* against *new* and return a classified change report.

        This is a full map comparison over every leaf; it does not descend
        the tree. Records are grouped modified, added, deleted and sorted by
        path within each group.
        """
        old_files = old.file_hashes
        new_files = new.file_hashes
        old_keys = set(old_files)
        new_keys = set(new_files)

        changes: list[ChangeRecord] = []

        for p in sorted(old_keys & new_keys):
            if old_files[p] != new_files[p]:
                changes.append(ChangeRecord(
                    path=p,
                    kind=ChangeKind.modified,
                    old_hash=old_files[p],
                    new_hash=new_files[p],
                ))

        for p in sorted(new_keys - old_keys):
            changes.append(ChangeRecord(path=p, kind=ChangeKind.added, new_hash=new_files[p]))

        for p in sorted(old_keys - new_keys):
            changes.append(ChangeRecord(path=p, kind=ChangeKind.deleted, old_hash=old_files[p]))

        report = ChangeReport(
            old_timestamp=old.timestamp,
            new_timestamp=new.timestamp,
            old_root_hash=old.root_hash,
            new_root_hash=new.root_hash,
            changes=tuple(changes),
        )
        logger.debug(
            "diff: %d modified, %d added, %d deleted",
            *report.counts().values(),
        )
        return report


def compare_snapshots(old: Snapshot, new: Snapshot) -> ChangeReport:
    """Convenience wrapper around MerkleTreeDiffer.diff()."""
    return MerkleTreeDiffer.diff(old, new)
