"""
Ledger Routes

Read access to the commitment ledger and the deposit entry point.
Witness tooling polls /ledger/events and rebuilds the tree locally.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from api.deps import get_node
from api.models.requests import DepositRequest
from api.models.responses import EventsResponse, RootStatusResponse
from core.crypto.hashing import to_bytes32
from core.node import ChainNode
from core.schemas.ledger import CommitmentInserted, LedgerState


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("/state", response_model=LedgerState)
async def ledger_state(node: ChainNode = Depends(get_node)) -> LedgerState:
    return node.state()


@router.get("/roots/{root}", response_model=RootStatusResponse)
async def root_status(root: str, node: ChainNode = Depends(get_node)) -> RootStatusResponse:
    """Whether a root is accepted for withdrawal proofs."""
    try:
        current = to_bytes32(root) == node.ledger.root
    except (TypeError, ValueError):
        current = False
    return RootStatusResponse(
        root=root,
        known=node.ledger.is_known_root(root),
        current=current,
    )


@router.get("/events", response_model=EventsResponse)
async def ledger_events(
    from_index: int = Query(default=0, ge=0),
    limit: int = Query(default=500, ge=1, le=5000),
    node: ChainNode = Depends(get_node),
) -> EventsResponse:
    """Insertion events in leaf order, starting at from_index."""
    events = node.ledger.events(from_index)[:limit]
    next_index = events[-1].leaf_index + 1 if events else from_index
    return EventsResponse(events=events, next_index=next_index)


@router.post("/deposit", response_model=CommitmentInserted)
async def deposit(request: DepositRequest, node: ChainNode = Depends(get_node)) -> CommitmentInserted:
    """Move funds from the depositor into the pool and insert the commitment."""
    return node.ledger.deposit(request.commitment, request.amount, depositor=request.depositor)
