"""
API Request Models

Pydantic models for API request validation. Hash-like fields accept 0x hex;
the core re-validates every value at its own boundary.
"""

from typing import Any

from pydantic import BaseModel, Field

from core.schemas.split import MAX_SPLIT_DESTINATIONS


class DepositRequest(BaseModel):
    """Request body for POST /ledger/deposit."""

    commitment: str = Field(..., description="Commitment as 0x hex bytes32")
    amount: int = Field(..., gt=0)
    depositor: str = Field(..., description="Account funding the deposit")


class WithdrawRequest(BaseModel):
    """Request body for POST /withdraw."""

    proof: Any = Field(..., description="Proof object handed to the verifier unchanged")
    public_inputs: dict[str, Any] = Field(
        ...,
        description="{root, nullifier, recipient, amount}",
    )
    nullifier: str
    recipient: str
    amount: int


class AllocationRequest(BaseModel):
    """Request body for POST /splits/allocation."""

    total: int = Field(..., gt=0)
    destinations: list[int] = Field(..., min_length=1, max_length=MAX_SPLIT_DESTINATIONS)


class SplitRequest(BaseModel):
    """Request body for POST /splits."""

    destinations: list[int]
    amounts: list[int]
    commitments: list[str]
    token: str
    initiator: str
    total: int | None = None


class ExecuteSplitRequest(BaseModel):
    """Request body for POST /splits/{split_id}/execute."""

    caller: str = Field(..., description="Executor; receives messaging refunds")
    native_fee: int = Field(default=0, ge=0)
