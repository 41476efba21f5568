"""
In-Memory Transport

A messaging hub connecting several in-process chain nodes. Outbound
messages are queued with per-path nonces and handed to the destination
receiver by deliver_pending(). Used by tests and the single-process
development node.

Delivery failures are logged and kept in ``failed``; nothing is retried
and nothing is rolled back on the source side.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Optional

from core.crypto.hashing import to_hex
from core.schemas.errors import ErrorCodes, LedgerException, ValidationException
from core.schemas.ledger import normalize_address
from core.schemas.transport import DeliveryFailure, TransportMessage
from core.transport.base import MessageReceiver

logger = logging.getLogger(__name__)

DEFAULT_HUB_ADDRESS = "0x" + "00" * 18 + "e4d0"


class InMemoryTransport:
    """
    Process-local message hub.

    Usage:
        hub = InMemoryTransport(fee_per_message=10)
        hub.register_receiver(2, router_b.address, router_b)
        hub.send(2, router_b.address, payload, refund, 10, source_chain=1, sender=router_a.address)
        hub.deliver_pending()

    Args:
        address: Address receivers see as ``caller``
        fee_per_message: Flat native fee quoted by estimate_fee
        auto_deliver: Deliver synchronously inside send()
    """

    def __init__(
        self,
        *,
        address: str = DEFAULT_HUB_ADDRESS,
        fee_per_message: int = 0,
        auto_deliver: bool = False,
    ) -> None:
        if fee_per_message < 0:
            raise ValidationException("Messaging fee must be non-negative", field_path="fee_per_message")
        self.address = normalize_address(address, "transport_address")
        self.fee_per_message = fee_per_message
        self.auto_deliver = auto_deliver
        self._receivers: dict[tuple[int, str], MessageReceiver] = {}
        self._nonces: dict[tuple[int, str, int], int] = {}
        self._queue: deque[TransportMessage] = deque()
        self._lock = threading.Lock()
        self.delivered: list[TransportMessage] = []
        self.failed: list[DeliveryFailure] = []
        self.fees_collected = 0

    def register_receiver(self, chain: int, address: str, receiver: MessageReceiver) -> None:
        key = (chain, normalize_address(address, "receiver_address"))
        self._receivers[key] = receiver
        logger.debug(f"Registered receiver {key[1]} on chain {chain}")

    def estimate_fee(self, destination_chain: int, payload: bytes) -> int:
        return self.fee_per_message

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
    ) -> None:
        """
        Queue a message for delivery.

        Raises:
            ValidationException: If fee is below the quoted fee
        """
        required = self.estimate_fee(destination_chain, payload)
        if fee < required:
            raise ValidationException(
                f"Messaging fee {fee} below required {required}",
                field_path="fee",
                code=ErrorCodes.INSUFFICIENT_MESSAGING_FEE,
                details={"required": required, "provided": fee},
            )
        source = normalize_address(sender, "sender")
        with self._lock:
            path = (source_chain, source, destination_chain)
            nonce = self._nonces.get(path, 0) + 1
            self._nonces[path] = nonce
            message = TransportMessage(
                source_chain=source_chain,
                source_address=source,
                destination_chain=destination_chain,
                destination_address=destination_address,
                nonce=nonce,
                payload=to_hex(payload),
                fee=fee,
                refund_address=refund_address,
            )
            self._queue.append(message)
            self.fees_collected += fee

        logger.info(
            f"Queued message {source_chain}->{destination_chain} nonce {nonce} "
            f"({len(payload)} bytes, fee {fee})"
        )
        if self.auto_deliver:
            self.deliver_pending()

    @property
    def pending(self) -> list[TransportMessage]:
        with self._lock:
            return list(self._queue)

    def deliver_pending(self, limit: Optional[int] = None) -> int:
        """
        Hand queued messages to their receivers in send order.

        Returns:
            Number of messages delivered successfully
        """
        delivered = 0
        processed = 0
        while limit is None or processed < limit:
            with self._lock:
                if not self._queue:
                    break
                message = self._queue.popleft()
            processed += 1
            if self._dispatch(message):
                delivered += 1
        return delivered

    def redeliver(self, message: TransportMessage) -> bool:
        """Hand a message to its receiver again, as a relayer replay would."""
        return self._dispatch(message)

    def _dispatch(self, message: TransportMessage) -> bool:
        receiver = self._receivers.get((message.destination_chain, message.destination_address))
        if receiver is None:
            self._record_failure(
                message,
                ErrorCodes.TRANSPORT_ERROR,
                f"No receiver at {message.destination_address} on chain {message.destination_chain}",
            )
            return False
        try:
            receiver.on_message_received(
                message.payload_bytes,
                caller=self.address,
                source_chain=message.source_chain,
                source_address=message.source_address,
                nonce=message.nonce,
            )
        except LedgerException as e:
            self._record_failure(message, e.code, e.message)
            return False
        self.delivered.append(message)
        return True

    def _record_failure(self, message: TransportMessage, code: str, error: str) -> None:
        logger.warning(
            f"Delivery {message.source_chain}->{message.destination_chain} "
            f"nonce {message.nonce} failed: {code}: {error}"
        )
        self.failed.append(
            DeliveryFailure(message=message, error_code=code, error_message=error)
        )


__all__ = ["DEFAULT_HUB_ADDRESS", "InMemoryTransport"]
