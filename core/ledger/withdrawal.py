"""
Withdrawal Protocol

Ties the ledger, the nullifier registry and the proof verifier together.

Check order (each a hard precondition, first failure wins):
1. nullifier unused                           -> NullifierReusedException
2. public root in the known-root window       -> UnknownRootException
3. recipient non-zero, amount > 0, public
   inputs bind nullifier/recipient/amount     -> ValidationException
4. verifier accepts (proof, public signals)   -> ProofRejectedException
5. pool holds at least amount                 -> InsufficientPoolException

The whole call holds the ledger guard, so checks, proof verification,
nullifier marking and payout are serialized with deposits. A failing call
leaves both the registry and the pool untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from core.crypto.hashing import to_hex
from core.ledger.commitment_ledger import CommitmentLedger
from core.ledger.guard import nonreentrant
from core.ledger.nullifiers import NullifierRegistry, parse_nullifier
from core.schemas.errors import (
    AuthorizationException,
    InsufficientPoolException,
    NullifierAlreadyUsedException,
    NullifierReusedException,
    ProofRejectedException,
    UnknownRootException,
    ValidationException,
)
from core.schemas.ledger import (
    ZERO_ADDRESS,
    PoolStats,
    PublicInputs,
    WithdrawalReceipt,
    normalize_address,
)
from core.verifier.base import ProofVerifier

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
DEFAULT_FEE_BPS = 10
MAX_FEE_BPS = 1_000


def compute_fee(amount: int, fee_bps: int) -> int:
    """Basis-point fee, rounded down."""
    return amount * fee_bps // BPS_DENOMINATOR


class WithdrawalProtocol:
    """
    Withdraws pool funds against a zero-knowledge proof of commitment ownership.

    Args:
        ledger: Ledger whose roots and pool back the withdrawal
        registry: Spent-nullifier registry
        verifier: Proof oracle
        fee_sink: Account receiving the fee
        fee_bps: Fee in basis points (10 = 0.1%)
        owner: Account allowed to change the fee settings
    """

    def __init__(
        self,
        *,
        ledger: CommitmentLedger,
        registry: NullifierRegistry,
        verifier: ProofVerifier,
        fee_sink: str,
        fee_bps: int = DEFAULT_FEE_BPS,
        owner: str | None = None,
    ) -> None:
        self.ledger = ledger
        self.registry = registry
        self.verifier = verifier
        self.guard = ledger.guard
        self._receipts: list[WithdrawalReceipt] = []
        self.owner = normalize_address(owner, "owner") if owner else None
        self._set_fee(fee_bps, fee_sink)

    def _set_fee(self, fee_bps: int, fee_sink: str) -> None:
        if not 0 <= fee_bps <= MAX_FEE_BPS:
            raise ValidationException(
                f"Fee must be between 0 and {MAX_FEE_BPS} bps, got {fee_bps}",
                field_path="fee_bps",
            )
        sink = normalize_address(fee_sink, "fee_sink")
        if sink == ZERO_ADDRESS:
            raise ValidationException("Fee sink must not be the zero address", field_path="fee_sink")
        self.fee_bps = fee_bps
        self.fee_sink = sink

    @nonreentrant
    def set_fee(self, fee_bps: int, fee_sink: str, *, caller: str) -> None:
        """Owner-only update of the fee settings."""
        if self.owner is None or normalize_address(caller, "caller") != self.owner:
            raise AuthorizationException("Only the owner can change fees", caller=caller)
        self._set_fee(fee_bps, fee_sink)
        logger.info(f"Withdrawal fee set to {fee_bps} bps, sink {self.fee_sink}")

    def stats(self) -> PoolStats:
        return self.ledger.stats()

    def receipts(self, from_index: int = 0) -> list[WithdrawalReceipt]:
        """Withdrawal events in execution order."""
        return self._receipts[max(from_index, 0):]

    @nonreentrant
    def withdraw(
        self,
        proof: Any,
        public_inputs: Union[PublicInputs, Mapping[str, Any]],
        nullifier: Union[bytes, str, int],
        recipient: str,
        amount: int,
    ) -> WithdrawalReceipt:
        """
        Pay amount (minus fee) from the pool to recipient.

        Raises:
            NullifierReusedException: nullifier already spent
            UnknownRootException: root outside the history window
            ValidationException: zero recipient, non-positive amount, or
                public inputs that do not match the call
            ProofRejectedException: verifier returned False
            InsufficientPoolException: pool balance below amount
        """
        nullifier_bytes = parse_nullifier(nullifier)
        nullifier_hex = to_hex(nullifier_bytes)

        # 1. anti-replay
        if self.registry.is_used(nullifier_bytes):
            raise NullifierReusedException(nullifier_hex)

        inputs = self._parse_public_inputs(public_inputs)

        # 2. root window
        if not self.ledger.is_known_root(inputs.root):
            raise UnknownRootException(inputs.root)

        # 3. arguments
        recipient_addr = normalize_address(recipient, "recipient")
        if recipient_addr == ZERO_ADDRESS:
            raise ValidationException("Recipient must not be the zero address", field_path="recipient")
        if amount <= 0:
            raise ValidationException("Withdrawal amount must be positive", field_path="amount")
        mismatched = [
            name
            for name, expected, actual in (
                ("nullifier", nullifier_hex, inputs.nullifier),
                ("recipient", recipient_addr, inputs.recipient),
                ("amount", amount, inputs.amount),
            )
            if expected != actual
        ]
        if mismatched:
            raise ValidationException(
                "Public inputs do not match the withdrawal arguments",
                field_path="public_inputs",
                details={"mismatched": mismatched},
            )

        # 4. proof
        if not self.verifier.verify(proof, inputs.signals()):
            raise ProofRejectedException(
                "Proof verification failed",
                details={"root": inputs.root, "nullifier": nullifier_hex},
            )

        # 5. liquidity
        available = self.ledger.pool_balance()
        if available < amount:
            raise InsufficientPoolException(amount, available)

        fee = compute_fee(amount, self.fee_bps)
        payout = amount - fee
        try:
            self.registry.mark_used(nullifier_bytes)
        except NullifierAlreadyUsedException as e:
            raise NullifierReusedException(nullifier_hex) from e
        self.ledger.balances.transfer_batch(
            self.ledger.token,
            self.ledger.address,
            [(recipient_addr, payout), (self.fee_sink, fee)],
        )
        self.ledger.record_withdrawal(amount, fee)

        logger.info(
            f"Chain {self.ledger.chain_id}: withdrew {amount} "
            f"(payout {payout}, fee {fee}) for nullifier {nullifier_hex[:18]}..."
        )
        receipt = WithdrawalReceipt(
            nullifier=nullifier_hex,
            root=inputs.root,
            recipient=recipient_addr,
            amount=amount,
            fee=fee,
            payout=payout,
            fee_sink=self.fee_sink,
        )
        self._receipts.append(receipt)
        return receipt

    @staticmethod
    def _parse_public_inputs(public_inputs: Union[PublicInputs, Mapping[str, Any]]) -> PublicInputs:
        if isinstance(public_inputs, PublicInputs):
            return public_inputs
        try:
            return PublicInputs.model_validate(public_inputs)
        except PydanticValidationError as e:
            raise ValidationException(
                f"Malformed public inputs: {e.error_count()} error(s)",
                field_path="public_inputs",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e


__all__ = [
    "BPS_DENOMINATOR",
    "DEFAULT_FEE_BPS",
    "MAX_FEE_BPS",
    "WithdrawalProtocol",
    "compute_fee",
]
