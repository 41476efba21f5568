"""
Proof Verifier Boundary

The ledger treats proof verification as an opaque boolean oracle:

    verify(proof, public_inputs) -> bool

public_inputs[0] is always the Merkle root the proof was built against.
Implementations must be stateless; they return False for a proof that does
not verify and raise only for infrastructure failures.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ProofVerifier(Protocol):
    """Anything that can check a withdraw proof."""

    def verify(self, proof: Any, public_inputs: Sequence[int]) -> bool: ...


class MockVerifier:
    """
    Verifier with a fixed answer.

    Mirrors the mock verifier deployed on development chains. Records every
    call so tests can assert what the protocol handed over.
    """

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list[tuple[Any, list[int]]] = []

    def verify(self, proof: Any, public_inputs: Sequence[int]) -> bool:
        self.calls.append((proof, list(public_inputs)))
        return self.result


__all__ = ["ProofVerifier", "MockVerifier"]
