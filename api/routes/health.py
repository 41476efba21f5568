"""
Health Check Route

Simple health check endpoint for liveness checks.
"""

from fastapi import APIRouter, Depends

from api.deps import get_node
from api.models.responses import HealthResponse
from core.node import ChainNode


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(node: ChainNode = Depends(get_node)) -> HealthResponse:
    """
    Health check endpoint.

    Returns service status and the chain this node serves.
    """
    return HealthResponse(ok=True, chain_id=node.chain_id)
