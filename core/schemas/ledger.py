"""
Ledger Schemas

Purpose: Addresses, ledger events, withdrawal public inputs and receipts.

Hashes travel as 0x-prefixed 64-char hex strings in every model; the
core components convert them to 32-byte values at their boundary.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from .errors import ValidationException


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

ZERO_ADDRESS = "0x" + "00" * 20


def normalize_address(value: str, field_path: str = "address") -> str:
    """
    Validate and lowercase an account address.

    Raises:
        ValidationException: If value is not 0x + 40 hex chars
    """
    if not isinstance(value, str) or not ADDRESS_PATTERN.match(value):
        raise ValidationException(
            f"Invalid address: {value!r}",
            field_path=field_path,
        )
    return value.lower()


def _check_bytes32(value: str) -> str:
    if not BYTES32_PATTERN.match(value):
        raise ValueError(f"Expected 0x-prefixed 32-byte hex, got {value!r}")
    return value.lower()


def _check_address(value: str) -> str:
    if not ADDRESS_PATTERN.match(value):
        raise ValueError(f"Expected 0x-prefixed 20-byte address, got {value!r}")
    return value.lower()


Bytes32Hex = Annotated[str, AfterValidator(_check_bytes32)]
AddressHex = Annotated[str, AfterValidator(_check_address)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CommitmentInserted(BaseModel):
    """
    Event published for every tree insertion.

    Witness tooling replays these in leaf_index order to rebuild the tree.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    leaf_index: int = Field(..., ge=0, description="Position of the new leaf")
    commitment: Bytes32Hex = Field(..., description="Inserted commitment (0x hex)")
    new_root: Bytes32Hex = Field(..., description="Tree root after the insertion (0x hex)")
    amount: int | None = Field(default=None, ge=0, description="Deposited amount, if any")
    inserted_at: datetime = Field(default_factory=utc_now)


class PublicInputs(BaseModel):
    """
    Public signals of a withdraw proof.

    The signal order handed to the verifier is
    [root, nullifier, recipient, amount]; index 0 is always the root.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    root: Bytes32Hex = Field(..., description="Merkle root the proof was built against")
    nullifier: Bytes32Hex = Field(..., description="Nullifier revealed by the proof")
    recipient: AddressHex = Field(..., description="Payout address bound into the proof")
    amount: int = Field(..., ge=0, description="Withdrawn amount bound into the proof")

    def signals(self) -> list[int]:
        """Public signals as integers, root first."""
        return [
            int(self.root, 16),
            int(self.nullifier, 16),
            int(self.recipient, 16),
            self.amount,
        ]


class WithdrawalReceipt(BaseModel):
    """Result of a successful withdrawal."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    nullifier: str
    root: str
    recipient: str
    amount: int = Field(..., gt=0)
    fee: int = Field(..., ge=0)
    payout: int = Field(..., ge=0, description="amount - fee, credited to recipient")
    fee_sink: str
    withdrawn_at: datetime = Field(default_factory=utc_now)


class PoolStats(BaseModel):
    """Aggregate counters for one ledger pool."""

    model_config = ConfigDict(extra="forbid")

    total_deposits: int = 0
    total_withdrawals: int = 0
    deposited_volume: int = 0
    withdrawn_volume: int = 0
    fees_collected: int = 0


class LedgerState(BaseModel):
    """Snapshot of a ledger for status endpoints."""

    model_config = ConfigDict(extra="forbid")

    chain_id: int
    token: str
    root: str
    leaf_count: int
    capacity: int
    root_history_size: int
    pool_balance: int
    nullifiers_spent: int
    stats: PoolStats
    extra: dict[str, Any] = Field(default_factory=dict)
