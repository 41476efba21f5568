"""
Inclusion Witness Unit Tests
Tests for core/merkle/witness.py

Tests:
- TreeReplica rebuilds the ledger tree from its event stream
- Witnesses verify against the ledger root and fail when tampered
- Out-of-order or diverging events are rejected
"""
import pytest

from core.crypto.hashing import from_hex, int_to_bytes32, to_hex
from core.merkle.witness import InclusionWitness, TreeReplica, compute_witness_root, verify_inclusion
from core.schemas.errors import ValidationException
from core.schemas.ledger import CommitmentInserted

from fixtures.common import make_commitment, make_ledger


def synced_replica(count: int = 5):
    ledger = make_ledger(depth=4)
    for i in range(count):
        ledger.add_commitment(make_commitment(i))
    replica = TreeReplica(depth=4)
    replica.apply_all(ledger.events())
    return ledger, replica


class TestTreeReplica:
    """Tests for rebuilding the tree from events."""

    def test_replica_root_matches_ledger(self):
        ledger, replica = synced_replica(5)
        assert replica.root == ledger.root
        assert replica.leaf_count == 5

    def test_incremental_sync_skips_known_events(self):
        ledger, replica = synced_replica(3)
        ledger.add_commitment(make_commitment(99))
        replica.apply_all(ledger.events())
        assert replica.root == ledger.root
        assert replica.leaf_count == 4

    def test_out_of_order_event_rejected(self):
        ledger, _ = synced_replica(3)
        replica = TreeReplica(depth=4)
        with pytest.raises(ValidationException, match="Expected event for leaf 0"):
            replica.apply(ledger.events()[1])

    def test_diverging_root_rejected(self):
        event = CommitmentInserted(
            leaf_index=0,
            commitment=make_commitment(1),
            new_root=to_hex(int_to_bytes32(12345)),
        )
        with pytest.raises(ValidationException) as exc_info:
            TreeReplica(depth=4).apply(event)
        assert exc_info.value.details["field_path"] == "new_root"


class TestWitness:
    """Tests for inclusion witnesses."""

    def test_every_leaf_verifies(self):
        ledger, replica = synced_replica(6)
        for index in range(6):
            witness = replica.witness(index)
            assert len(witness.siblings) == 4
            assert witness.root == ledger.root
            assert verify_inclusion(witness)

    def test_witness_for_commitment(self):
        _, replica = synced_replica(4)
        commitment = from_hex(make_commitment(2))
        witness = replica.witness_for(commitment)
        assert witness.index == 2
        assert witness.leaf == commitment

    def test_unknown_commitment(self):
        _, replica = synced_replica(2)
        with pytest.raises(KeyError):
            replica.witness_for(from_hex(make_commitment(50)))

    def test_tampered_sibling_fails(self):
        _, replica = synced_replica(4)
        witness = replica.witness(1)
        siblings = list(witness.siblings)
        siblings[0] = int_to_bytes32(1)
        tampered = InclusionWitness(leaf=witness.leaf, index=1, siblings=siblings, root=witness.root)
        assert not verify_inclusion(tampered)

    def test_wrong_index_fails(self):
        _, replica = synced_replica(4)
        witness = replica.witness(1)
        moved = InclusionWitness(leaf=witness.leaf, index=0, siblings=witness.siblings, root=witness.root)
        assert not verify_inclusion(moved)

    def test_index_beyond_depth_fails(self):
        _, replica = synced_replica(4)
        witness = replica.witness(1)
        overflow = InclusionWitness(
            leaf=witness.leaf, index=1 + 16, siblings=witness.siblings, root=witness.root
        )
        assert compute_witness_root(overflow.leaf, overflow.index, overflow.siblings) == witness.root
        assert not verify_inclusion(overflow)

    def test_dict_round_trip_keeps_path_bits(self):
        _, replica = synced_replica(6)
        witness = replica.witness(5)
        data = witness.to_dict()
        assert data["path_indices"] == [1, 0, 1, 0]
        assert InclusionWitness.from_dict(data) == witness

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            InclusionWitness(leaf=int_to_bytes32(1), index=-1, siblings=[], root=int_to_bytes32(1))
