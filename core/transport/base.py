"""
Messaging Transport Boundary

A transport carries opaque payload bytes from a router on one chain to a
router on another. Sending is fire-and-forget: send() returns nothing and a
failure on the destination never travels back to the sender.

Receivers are invoked as

    receiver.on_message_received(
        payload, caller=transport.address, source_chain=..., source_address=..., nonce=...
    )

and must authenticate ``caller`` against the transport they trust.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MessageReceiver(Protocol):
    """Inbound side of a router."""

    def on_message_received(
        self,
        payload: bytes,
        *,
        caller: str,
        source_chain: int,
        source_address: str,
        nonce: int,
    ) -> None: ...


@runtime_checkable
class MessagingTransport(Protocol):
    """Outbound side used by the split router."""

    address: str

    def estimate_fee(self, destination_chain: int, payload: bytes) -> int: ...

    def send(
        self,
        destination_chain: int,
        destination_address: str,
        payload: bytes,
        refund_address: str,
        fee: int,
        *,
        source_chain: int,
        sender: str,
    ) -> None: ...

    def register_receiver(self, chain: int, address: str, receiver: MessageReceiver) -> None: ...


__all__ = ["MessageReceiver", "MessagingTransport"]
