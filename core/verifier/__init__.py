"""
Proof Verifiers

- ProofVerifier: the boolean oracle contract used by the withdrawal protocol
- MockVerifier: fixed answer, for development chains and tests
- InclusionProofVerifier: checks a bare Merkle witness (development only)
- SnarkjsVerifier: Groth16 verification through the snarkjs CLI
"""

from .base import MockVerifier, ProofVerifier
from .inclusion import InclusionProofVerifier
from .snarkjs import SnarkjsError, SnarkjsVerifier

__all__ = [
    "ProofVerifier",
    "MockVerifier",
    "InclusionProofVerifier",
    "SnarkjsVerifier",
    "SnarkjsError",
]
