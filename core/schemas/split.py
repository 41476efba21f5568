"""
Split Schemas

Purpose: Payment splits, their legs, chain routes and gas-price entries
kept by the cross-chain split router.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .ledger import AddressHex, Bytes32Hex, CommitmentInserted, utc_now


MAX_SPLIT_DESTINATIONS = 5


class SplitStatus(str, Enum):
    PENDING = "pending"
    EXECUTED = "executed"


class SplitLeg(BaseModel):
    """One (destination, amount, commitment) triple of a split."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    destination: int = Field(..., ge=0, description="Destination chain id")
    amount: int = Field(..., gt=0)
    commitment: Bytes32Hex


class PaymentSplit(BaseModel):
    """
    Escrowed multi-destination payment.

    Status moves PENDING -> EXECUTED exactly once and never reverts.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    split_id: Bytes32Hex
    initiator: AddressHex
    token: str = Field(..., min_length=1)
    total: int = Field(..., gt=0)
    legs: list[SplitLeg] = Field(..., min_length=1, max_length=MAX_SPLIT_DESTINATIONS)
    status: SplitStatus = SplitStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    executed_at: datetime | None = None

    @model_validator(mode="after")
    def _legs_sum_to_total(self) -> "PaymentSplit":
        leg_sum = sum(leg.amount for leg in self.legs)
        if leg_sum != self.total:
            raise ValueError(f"Leg amounts sum to {leg_sum}, expected total {self.total}")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == SplitStatus.PENDING


class ChainRoute(BaseModel):
    """Registered destination ledger."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chain_id: int = Field(..., ge=0, description="Ledger chain id")
    transport_chain_id: int = Field(..., ge=0, description="Chain id as known to the transport")
    ledger_address: AddressHex = Field(..., description="Commitment ledger on that chain")
    router_address: AddressHex = Field(..., description="Split router receiving messages on that chain")
    is_local: bool = False


class GasPriceEntry(BaseModel):
    """Advisory gas price used only for allocation weighting."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chain_id: int = Field(..., ge=0)
    gas_price: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=utc_now)


class SplitExecution(BaseModel):
    """Outcome of executing a split on the source chain."""

    model_config = ConfigDict(extra="forbid")

    split_id: str
    local_deposits: list[CommitmentInserted] = Field(default_factory=list)
    messages_sent: int = 0
    fee_per_remote_leg: int = 0
    failed_legs: list[int] = Field(
        default_factory=list,
        description="Indices of remote legs the transport refused",
    )
