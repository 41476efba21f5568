"""API request and response models."""

from api.models.requests import (
    AllocationRequest,
    DepositRequest,
    ExecuteSplitRequest,
    SplitRequest,
    WithdrawRequest,
)
from api.models.responses import (
    AllocationResponse,
    BridgeReceiveResponse,
    ErrorDetail,
    ErrorResponse,
    EventsResponse,
    HealthResponse,
    NullifierStatusResponse,
    RootStatusResponse,
    SplitCreatedResponse,
)

__all__ = [
    "AllocationRequest",
    "DepositRequest",
    "ExecuteSplitRequest",
    "SplitRequest",
    "WithdrawRequest",
    "AllocationResponse",
    "BridgeReceiveResponse",
    "ErrorDetail",
    "ErrorResponse",
    "EventsResponse",
    "HealthResponse",
    "NullifierStatusResponse",
    "RootStatusResponse",
    "SplitCreatedResponse",
]
