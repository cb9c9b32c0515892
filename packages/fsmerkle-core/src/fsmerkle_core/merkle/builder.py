"""Builder for constructing Merkle trees and snapshots from a directory on disk."""

from __future__ import annotations

import fnmatch
import logging
import os
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path, PurePosixPath

from fsmerkle_core.merkle.models import (
    EmptyTreeError,
    LeafEntry,
    Snapshot,
    TraversalError,
)
from fsmerkle_core.merkle.tree import (
    DEFAULT_ALGORITHM,
    MerkleTree,
    compute_file_hash,
    compute_hash,
)

logger = logging.getLogger(__name__)

def _matches_any(rel: PurePosixPath, patterns: Iterable[str]) -> bool:
    """Check whether any component of *rel* matches one of *patterns*."""
    return any(
        fnmatch.fnmatchcase(part, pattern)
        for part in rel.parts
        for pattern in patterns
    )


def iter_paths(
    root_path: Path,
    ignore_patterns: Iterable[str] | None = None,
    exclude_dirs: Iterable[Path] | None = None,
) -> Iterator[tuple[str, Path]]:
    """Yield ``(relative POSIX path, absolute path)`` for every regular file.

    A path is skipped when any of its components matches one of
    *ignore_patterns*. *exclude_dirs* are pruned by resolved location only,
    so a sibling with the same name is still walked. Symlinks are neither
    followed nor yielded. Raises TraversalError if the
    root is missing or any directory under it cannot be listed.
    """
    root_path = Path(root_path)
    if not root_path.exists():
        raise TraversalError(root_path, "path does not exist")
    if not root_path.is_dir():
        raise TraversalError(root_path, "not a directory")

    ignore = list(ignore_patterns or ())
    excluded = {Path(d).resolve() for d in exclude_dirs or ()}

    def _on_error(err: OSError) -> None:
        raise TraversalError(err.filename or root_path, err.strerror or str(err)) from err

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_on_error):
        base = Path(dirpath)
        rel_dir = PurePosixPath(base.relative_to(root_path).as_posix())
        # Prune in place so ignored subtrees are never listed
        dirnames[:] = sorted(
            d for d in dirnames
            if not _matches_any(rel_dir / d, ignore)
            and (base / d).resolve() not in excluded
        )
        for name in sorted(filenames):
            rel = rel_dir / name
            if _matches_any(rel, ignore):
                continue
            fpath = base / name
            if fpath.is_symlink() or not fpath.is_file():
                logger.debug("skipping non-regular file %s", rel)
                continue
            yield str(rel), fpath


def iter_files(
    root_path: Path,
    ignore_patterns: Iterable[str] | None = None,
    exclude_dirs: Iterable[Path] | None = None,
) -> Iterator[tuple[str, bytes]]:
    """Yield ``(relative path, content)`` for every regular file under *root_path*."""
    for rel, fpath in iter_paths(root_path, ignore_patterns, exclude_dirs):
        try:
            content = fpath.read_bytes()
        except OSError as e:
            raise TraversalError(fpath, e.strerror or str(e)) from e
        yield rel, content


def iter_leaf_entries(
    root_path: Path,
    ignore_patterns: Iterable[str] | None = None,
    algorithm: str = DEFAULT_ALGORITHM,
    exclude_dirs: Iterable[Path] | None = None,
) -> Iterator[LeafEntry]:
    """Hash every file under *root_path*, one blocking read at a time."""
    for rel, fpath in iter_paths(root_path, ignore_patterns, exclude_dirs):
        try:
            digest = compute_file_hash(fpath, algorithm)
        except OSError as e:
            raise TraversalError(fpath, e.strerror or str(e)) from e
        yield LeafEntry(path=rel, digest=digest)


def entries_from_contents(
    files: Iterable[tuple[str, bytes]],
    algorithm: str = DEFAULT_ALGORITHM,
) -> list[LeafEntry]:
    """Turn in-memory ``(path, content)`` pairs into leaf entries."""
    return [
        LeafEntry(
            path=PurePosixPath(path.replace("\\", "/")).as_posix(),
            digest=compute_hash(content, algorithm),
        )
        for path, content in files
    ]


class MerkleTreeBuilder:
    """Builds MerkleTrees and Snapshots by walking a directory on disk."""

    @staticmethod
    def build(
        root_path: Path,
        ignore_patterns: list[str] | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
        exclude_dirs: Iterable[Path] | None = None,
    ) -> MerkleTree:
        """Walk *root_path* and construct a full Merkle tree.

        Raises TraversalError on I/O failure and EmptyTreeError when no
        files survive the ignore patterns and excluded directories.
        """
        root_path = Path(root_path).resolve()
        entries = list(
            iter_leaf_entries(root_path, ignore_patterns, algorithm, exclude_dirs)
        )
        logger.debug("hashed %d files under %s", len(entries), root_path)
        if not entries:
            raise EmptyTreeError(str(root_path))
        return MerkleTree.build(entries, algorithm)

    @staticmethod
    def snapshot(
        root_path: Path,
        ignore_patterns: list[str] | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
        timestamp: datetime | None = None,
        exclude_dirs: Iterable[Path] | None = None,
    ) -> Snapshot:
        """Build a tree for *root_path* and flatten it into a Snapshot."""
        tree = MerkleTreeBuilder.build(root_path, ignore_patterns, algorithm, exclude_dirs)
        return Snapshot.from_tree(tree, timestamp)
