"""
Split Routes

Gas-weighted allocation, split initiation and execution.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_node
from api.models.requests import AllocationRequest, ExecuteSplitRequest, SplitRequest
from api.models.responses import AllocationResponse, SplitCreatedResponse
from core.node import ChainNode
from core.schemas.split import PaymentSplit, SplitExecution


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/splits", tags=["splits"])


@router.post("/allocation", response_model=AllocationResponse)
async def allocation(request: AllocationRequest, node: ChainNode = Depends(get_node)) -> AllocationResponse:
    """Suggested amounts per destination, cheaper chains first."""
    amounts = node.router.calculate_optimal_split(request.total, request.destinations)
    return AllocationResponse(
        total=request.total,
        destinations=request.destinations,
        amounts=amounts,
    )


@router.post("", response_model=SplitCreatedResponse)
async def initiate_split(request: SplitRequest, node: ChainNode = Depends(get_node)) -> SplitCreatedResponse:
    split_id = node.router.initiate_split(
        request.destinations,
        request.amounts,
        request.commitments,
        request.token,
        initiator=request.initiator,
        total=request.total,
    )
    return SplitCreatedResponse(split_id=split_id, split=node.router.get_split(split_id))


@router.get("/{split_id}", response_model=PaymentSplit)
async def get_split(split_id: str, node: ChainNode = Depends(get_node)) -> PaymentSplit:
    return node.router.get_split(split_id)


@router.post("/{split_id}/execute", response_model=SplitExecution)
async def execute_split(
    split_id: str,
    request: ExecuteSplitRequest,
    node: ChainNode = Depends(get_node),
) -> SplitExecution:
    """Deposit local legs and hand remote legs to the transport."""
    return node.router.execute_split(split_id, caller=request.caller, native_fee=request.native_fee)
