"""
Bridge Route

Inbound end of the HTTP relay transport. The relayer posts the message
envelope it picked up on the source chain, authenticated with the shared
token in the X-Relayer-Token header.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from api.deps import get_node
from api.errors import InvalidRequestError
from api.models.responses import BridgeReceiveResponse
from core.node import ChainNode
from core.schemas.transport import TransportMessage
from core.transport.http_relay import HttpRelayTransport


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bridge", tags=["bridge"])


@router.post("/receive", response_model=BridgeReceiveResponse)
async def receive_message(
    message: TransportMessage,
    x_relayer_token: Optional[str] = Header(default=None),
    node: ChainNode = Depends(get_node),
) -> BridgeReceiveResponse:
    transport = node.transport
    if not isinstance(transport, HttpRelayTransport):
        raise InvalidRequestError("This node does not accept relayed messages")
    transport.accept(message, x_relayer_token)
    return BridgeReceiveResponse(ok=True, source_chain=message.source_chain, nonce=message.nonce)
