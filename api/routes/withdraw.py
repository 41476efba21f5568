"""
Withdrawal Routes

Nullifier lookups and proof-gated withdrawals.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_node
from api.models.requests import WithdrawRequest
from api.models.responses import NullifierStatusResponse
from core.crypto.hashing import to_hex
from core.ledger.nullifiers import parse_nullifier
from core.node import ChainNode
from core.schemas.ledger import WithdrawalReceipt


router = APIRouter(tags=["withdrawal"])


@router.get("/nullifiers/{nullifier}", response_model=NullifierStatusResponse)
async def nullifier_status(
    nullifier: str,
    node: ChainNode = Depends(get_node),
) -> NullifierStatusResponse:
    key = parse_nullifier(nullifier)
    spent_at = node.registry.spent_at(key)
    return NullifierStatusResponse(
        nullifier=to_hex(key),
        used=spent_at is not None,
        spent_at=spent_at,
    )


@router.post("/withdraw", response_model=WithdrawalReceipt)
async def withdraw(request: WithdrawRequest, node: ChainNode = Depends(get_node)) -> WithdrawalReceipt:
    """
    Withdraw from the pool against a proof.

    Errors follow the protocol's check order: 409 spent nullifier, 422
    unknown root or rejected proof, 400 bad arguments, 402 empty pool.
    """
    return node.withdrawal.withdraw(
        request.proof,
        request.public_inputs,
        request.nullifier,
        request.recipient,
        request.amount,
    )
