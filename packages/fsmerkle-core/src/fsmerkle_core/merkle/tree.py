"""Merkle tree construction over a flat set of file digests."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from fsmerkle_core.merkle.models import (
    Digest,
    DuplicatePathError,
    EmptyTreeError,
    Internal,
    Leaf,
    LeafEntry,
    TreeNode,
)

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"

# Algorithms hashlib guarantees on every platform, minus the broken ones
SUPPORTED_ALGORITHMS = frozenset({
    "sha256",
    "sha384",
    "sha512",
    "sha3_256",
    "sha3_512",
    "blake2b",
    "blake2s",
})

_CHUNK_SIZE = 64 * 1024


def _new_hasher(algorithm: str):
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"unsupported hash algorithm: {algorithm!r}")
    return hashlib.new(algorithm)


def compute_hash(content: bytes, algorithm: str = DEFAULT_ALGORITHM) -> Digest:
    """Digest of an arbitrary byte sequence."""
    h = _new_hasher(algorithm)
    h.update(content)
    return h.digest()


def combine(left: Digest, right: Digest, algorithm: str = DEFAULT_ALGORITHM) -> Digest:
    """Parent digest of two children: H(left ++ right).

    Order matters, ``combine(a, b) != combine(b, a)``.
    """
    return compute_hash(left + right, algorithm)


def compute_file_hash(path: Path, algorithm: str = DEFAULT_ALGORITHM) -> Digest:
    """Read a file from disk in one pass and return its digest."""
    h = _new_hasher(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.digest()


class MerkleTree:
    """Immutable binary hash tree stored as an index-addressed arena.

    The first ``leaf_count`` nodes are the leaves in path order; each level
    above is appended after the one it was built from, so the root is always
    the last node.
    """

    def __init__(
        self,
        nodes: tuple[TreeNode, ...],
        leaf_count: int,
        depth: int,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        self._nodes = nodes
        self._leaf_count = leaf_count
        self._depth = depth
        self.algorithm = algorithm

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        entries: Iterable[LeafEntry],
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> MerkleTree:
        """Build a tree from leaf entries given in any order.

        Entries are sorted by path first, so the root digest depends only on
        the (path, content) set and not on enumeration order.
        """
        leaves = sorted(entries, key=lambda e: e.path)
        if not leaves:
            raise EmptyTreeError()

        nodes: list[TreeNode] = []
        seen: set[str] = set()
        for entry in leaves:
            if entry.path in seen:
                raise DuplicatePathError(entry.path)
            seen.add(entry.path)
            nodes.append(Leaf(digest=entry.digest, path=entry.path))

        # Indices of the current level, reduced pairwise until one remains
        level = list(range(len(nodes)))
        depth = 0
        while len(level) > 1:
            next_level: list[int] = []
            for i in range(0, len(level), 2):
                left = level[i]
                # Odd tail is paired with itself, not dropped
                right = level[i + 1] if i + 1 < len(level) else left
                digest = combine(nodes[left].digest, nodes[right].digest, algorithm)
                nodes.append(Internal(digest=digest, left=left, right=right))
                next_level.append(len(nodes) - 1)
            level = next_level
            depth += 1

        logger.debug(
            "built merkle tree: %d leaves, %d nodes, depth %d",
            len(leaves), len(nodes), depth,
        )
        return cls(tuple(nodes), leaf_count=len(leaves), depth=depth, algorithm=algorithm)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def root(self) -> TreeNode:
        return self._nodes[-1]

    @property
    def root_hash(self) -> Digest:
        return self.root.digest

    @property
    def leaf_count(self) -> int:
        return self._leaf_count

    @property
    def depth(self) -> int:
        """Number of combination levels above the leaves (0 for one file)."""
        return self._depth

    @property
    def nodes(self) -> tuple[TreeNode, ...]:
        return self._nodes

    @property
    def leaves(self) -> tuple[Leaf, ...]:
        return self._nodes[: self._leaf_count]  # type: ignore[return-value]

    def children(self, node: TreeNode) -> tuple[TreeNode, TreeNode] | None:
        """Return ``(left, right)`` for an internal node, ``None`` for a leaf."""
        if isinstance(node, Leaf):
            return None
        return self._nodes[node.left], self._nodes[node.right]

    def walk(self) -> Iterator[tuple[int, TreeNode]]:
        """Yield ``(depth, node)`` pairs root first, left before right."""
        stack: list[tuple[int, int]] = [(0, len(self._nodes) - 1)]
        while stack:
            level, index = stack.pop()
            node = self._nodes[index]
            yield level, node
            if isinstance(node, Internal):
                stack.append((level + 1, node.right))
                stack.append((level + 1, node.left))

    # ------------------------------------------------------------------
    # Flatten
    # ------------------------------------------------------------------

    def flatten(self) -> dict[str, Digest]:
        """Map every leaf path to its digest, independent of tree shape."""
        return {leaf.path: leaf.digest for leaf in self.leaves}

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return (
            f"MerkleTree(root={self.root_hash.hex()[:16]}, "
            f"leaves={self._leaf_count}, depth={self._depth})"
        )
