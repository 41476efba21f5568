"""
API Response Models

Pydantic models for API response serialization. Ledger snapshots, events,
receipts and splits are served with the core schema models directly.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from core.schemas.ledger import CommitmentInserted
from core.schemas.split import PaymentSplit


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "privpay-api"
    version: str = "v1"
    chain_id: int | None = None


class RootStatusResponse(BaseModel):
    """Response for GET /ledger/roots/{root}."""

    root: str
    known: bool = Field(..., description="Root is current or inside the history window")
    current: bool = Field(..., description="Root is the current tree root")


class EventsResponse(BaseModel):
    """Response for GET /ledger/events."""

    events: list[CommitmentInserted] = Field(default_factory=list)
    next_index: int = Field(..., description="from_index for the next poll")


class NullifierStatusResponse(BaseModel):
    """Response for GET /nullifiers/{nullifier}."""

    nullifier: str
    used: bool
    spent_at: datetime | None = None


class AllocationResponse(BaseModel):
    """Response for POST /splits/allocation."""

    total: int
    destinations: list[int]
    amounts: list[int]


class SplitCreatedResponse(BaseModel):
    """Response for POST /splits."""

    split_id: str
    split: PaymentSplit


class BridgeReceiveResponse(BaseModel):
    """Response for POST /bridge/receive."""

    ok: bool = True
    source_chain: int
    nonce: int


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str = Field(..., description="Error code")
    category: str | None = Field(default=None, description="Taxonomy family")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = False


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail
