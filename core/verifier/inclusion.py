"""
Inclusion Proof Verifier

Development verifier that accepts a plain Merkle inclusion witness in
place of a SNARK. It checks the relation the withdraw circuit enforces on
the tree (leaf folds up to public_inputs[0] with pair_hash) but hides
nothing, so it must never back a production deployment.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from core.crypto.hashing import bytes32_to_int
from core.merkle.witness import InclusionWitness, verify_inclusion

logger = logging.getLogger(__name__)


class InclusionProofVerifier:
    """
    Verifies InclusionWitness objects (or their to_dict() form).

    Args:
        depth: Expected number of siblings; None accepts any depth
    """

    def __init__(self, depth: int | None = None) -> None:
        self.depth = depth

    def verify(self, proof: Any, public_inputs: Sequence[int]) -> bool:
        if not public_inputs:
            return False
        try:
            witness = proof if isinstance(proof, InclusionWitness) else InclusionWitness.from_dict(proof)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Unparseable inclusion witness: {e}")
            return False

        if self.depth is not None and len(witness.siblings) != self.depth:
            return False
        if bytes32_to_int(witness.root) != public_inputs[0]:
            return False
        return verify_inclusion(witness)


__all__ = ["InclusionProofVerifier"]
