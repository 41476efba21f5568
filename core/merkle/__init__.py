"""
Commitment Tree and Witnesses

This package provides:
- IncrementalMerkleTree: fixed-depth append-only tree over a sparse node map
- RootHistory: O(1) ring buffer of recent roots
- TreeReplica / InclusionWitness: off-ledger witness tooling fed by the
  ledger event stream

Tree Rules:
1. Parent hashing: pair_hash(left, right) = sha256(left || right) mod p
2. Empty leaf: 32 zero bytes; empty subtree at level i: zeros[i]
3. Root of an empty tree: zeros[depth]

Usage:
    from core.merkle import IncrementalMerkleTree, TreeReplica, verify_inclusion

    tree = IncrementalMerkleTree(depth=20)
    index = tree.insert(commitment)

    replica = TreeReplica(depth=20)
    replica.apply_all(ledger.events())
    assert verify_inclusion(replica.witness(index))
"""
from .incremental import (
    DEFAULT_ROOT_HISTORY_SIZE,
    DEFAULT_TREE_DEPTH,
    MAX_TREE_DEPTH,
    IncrementalMerkleTree,
    RootHistory,
)

from .witness import (
    InclusionWitness,
    TreeReplica,
    build_root,
    compute_witness_root,
    verify_inclusion,
)


__all__ = [
    "DEFAULT_ROOT_HISTORY_SIZE",
    "DEFAULT_TREE_DEPTH",
    "MAX_TREE_DEPTH",
    "IncrementalMerkleTree",
    "RootHistory",
    "InclusionWitness",
    "TreeReplica",
    "build_root",
    "compute_witness_root",
    "verify_inclusion",
]
