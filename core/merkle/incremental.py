"""
Incremental Merkle Tree

Append-only, fixed-depth commitment tree with a bounded root history.

Tree Rules (Hard Contracts):
1. Depth D is fixed at construction; capacity is 2^D leaves.
2. Parent hashing: pair_hash(left, right) from core.crypto.hashing.
3. Missing siblings take the precomputed zero hash of their level.
4. Leaves are appended left to right; indices are never reused.
5. Nodes live in a sparse {(level, index): hash} map, level 0 = leaves,
   level D = root.

Neither class here locks; CommitmentLedger serializes access.
"""
from __future__ import annotations

from typing import Iterator, Optional

from core.crypto.hashing import pair_hash, zero_hashes
from core.schemas.errors import TreeFullException


DEFAULT_TREE_DEPTH = 20
DEFAULT_ROOT_HISTORY_SIZE = 30
MAX_TREE_DEPTH = 32


class RootHistory:
    """
    Ring buffer of the most recent roots.

    Slot for the k-th pushed root is k mod size, so a push is O(1) and the
    oldest root is overwritten once the ring is full.
    """

    def __init__(self, size: int = DEFAULT_ROOT_HISTORY_SIZE) -> None:
        if size < 1:
            raise ValueError(f"Root history size must be positive, got {size}")
        self.size = size
        self._ring: list[Optional[bytes]] = [None] * size
        self._pushed = 0

    def push(self, root: bytes) -> None:
        self._ring[self._pushed % self.size] = root
        self._pushed += 1

    def __contains__(self, root: object) -> bool:
        return root is not None and root in self._ring

    def __len__(self) -> int:
        return min(self._pushed, self.size)

    def __iter__(self) -> Iterator[bytes]:
        """Iterate roots newest first."""
        for offset in range(len(self)):
            root = self._ring[(self._pushed - 1 - offset) % self.size]
            if root is not None:
                yield root

    @property
    def latest(self) -> Optional[bytes]:
        if self._pushed == 0:
            return None
        return self._ring[(self._pushed - 1) % self.size]


class IncrementalMerkleTree:
    """
    Sparse incremental Merkle tree.

    Each insertion rewrites the D nodes on the path from the new leaf to the
    root. Siblings to the right of the newest leaf are always empty subtrees,
    so they are read from the zero-hash table instead of being stored.

    Example:
        >>> tree = IncrementalMerkleTree(depth=2)
        >>> tree.insert(leaf)
        0
        >>> tree.root == pair_hash(pair_hash(leaf, ZERO), zeros[1])
        True
    """

    def __init__(self, depth: int = DEFAULT_TREE_DEPTH) -> None:
        if not 1 <= depth <= MAX_TREE_DEPTH:
            raise ValueError(f"Tree depth must be between 1 and {MAX_TREE_DEPTH}, got {depth}")
        self.depth = depth
        self.capacity = 1 << depth
        self.zeros = zero_hashes(depth)
        self._nodes: dict[tuple[int, int], bytes] = {}
        self._count = 0
        self._root = self.zeros[depth]

    @property
    def root(self) -> bytes:
        return self._root

    @property
    def empty_root(self) -> bytes:
        return self.zeros[self.depth]

    @property
    def leaf_count(self) -> int:
        return self._count

    @property
    def is_full(self) -> bool:
        return self._count >= self.capacity

    def node(self, level: int, index: int) -> bytes:
        """Stored node value, or the zero hash of its level when absent."""
        if not 0 <= level <= self.depth:
            raise IndexError(f"Level {level} outside tree of depth {self.depth}")
        return self._nodes.get((level, index), self.zeros[level])

    def leaf(self, index: int) -> bytes:
        if not 0 <= index < self._count:
            raise IndexError(f"Leaf index {index} out of range for {self._count} leaves")
        return self._nodes[(0, index)]

    def insert(self, leaf: bytes) -> int:
        """
        Append a leaf and recompute the path to the root.

        Returns:
            The leaf index assigned to the new leaf

        Raises:
            TreeFullException: If the tree already holds 2^depth leaves
        """
        if self.is_full:
            raise TreeFullException(self.capacity)

        leaf_index = self._count
        self._nodes[(0, leaf_index)] = leaf

        current = leaf
        index = leaf_index
        for level in range(self.depth):
            if index % 2 == 0:
                current = pair_hash(current, self.node(level, index + 1))
            else:
                current = pair_hash(self._nodes[(level, index - 1)], current)
            index //= 2
            self._nodes[(level + 1, index)] = current

        self._root = current
        self._count += 1
        return leaf_index


__all__ = [
    "DEFAULT_TREE_DEPTH",
    "DEFAULT_ROOT_HISTORY_SIZE",
    "MAX_TREE_DEPTH",
    "RootHistory",
    "IncrementalMerkleTree",
]
