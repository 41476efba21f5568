"""
HTTP Relay Transport

Hands outbound messages to an external relayer over HTTP and accepts
inbound messages the relayer pushes back through the API.

Outbound: POST {relayer_url}/messages with the TransportMessage envelope
as JSON and the shared token in the X-Relayer-Token header.

Inbound: the API route passes the envelope and the presented token to
accept(), which authenticates the token and invokes the registered
receiver with ``caller=self.address``.
"""

from __future__ import annotations

import hmac
import logging
import threading
from typing import Optional

import requests

from core.crypto.hashing import to_hex
from core.schemas.errors import (
    AuthorizationException,
    ErrorCodes,
    TransportException,
    ValidationException,
)
from core.schemas.ledger import normalize_address
from core.schemas.transport import TransportMessage
from core.transport.base import MessageReceiver

logger = logging.getLogger(__name__)

RELAYER_TOKEN_HEADER = "X-Relayer-Token"


class HttpRelayTransport:
    """
    Transport backed by an HTTP relayer.

    Args:
        address: Address receivers see as ``caller`` for relayed messages
        relayer_url: Base URL of the relayer
        relayer_token: Shared secret for both directions
        fee_per_message: Flat native fee quoted by estimate_fee
        timeout: Request timeout in seconds
        session: Optional requests.Session (tests inject a stub)
    """

    def __init__(
        self,
        *,
        address: str,
        relayer_url: str,
        relayer_token: str,
        fee_per_message: int = 0,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not relayer_url:
            raise ValidationException("Relayer URL is required", field_path="relayer_url")
        if not relayer_token:
            raise ValidationException("Relayer token is required", field_path="relayer_token")
        self.address = normalize_address(address, "transport_address")
        self.relayer_url = relayer_url.rstrip("/")
        self.fee_per_message = fee_per_message
        self.timeout = timeout
        self._token = relayer_token
        self._session = session
        self._receivers: dict[tuple[int, str], MessageReceiver] = {}
        self._nonces: dict[tuple[int, str, int], int] = {}
        self._lock = threading.Lock()

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def register_receiver(self, chain: int, address: str, receiver: MessageReceiver) -> None:
        self._receivers[(chain, normalize_address(address, "receiver_address"))] = receiver

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
        Post a message to the relayer.

        Raises:
            ValidationException: If fee is below the quoted fee
            TransportException: If the relayer is unreachable or refuses
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
        url = f"{self.relayer_url}/messages"
        try:
            response = self._get_session().post(
                url,
                json=message.model_dump(mode="json"),
                headers={RELAYER_TOKEN_HEADER: self._token},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Relayer unreachable at {url}: {e}")
            raise TransportException(
                f"Relayer unreachable: {e}",
                details={"url": url, "nonce": nonce},
            ) from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Relayer refused message nonce {nonce}: HTTP {response.status_code}")
            raise TransportException(
                f"Relayer returned HTTP {response.status_code}",
                details={"url": url, "nonce": nonce, "status_code": response.status_code},
            )
        logger.info(f"Relayed message {source_chain}->{destination_chain} nonce {nonce}")

    def accept(self, message: TransportMessage, token: Optional[str]) -> None:
        """
        Deliver a relayed message to its local receiver.

        Raises:
            AuthorizationException: If the relayer token does not match
            ValidationException: If no receiver is registered for the destination
            LedgerException: Whatever the receiver raises
        """
        if not token or not hmac.compare_digest(token, self._token):
            logger.warning(
                f"Rejected relayed message from chain {message.source_chain}: bad relayer token"
            )
            raise AuthorizationException(
                "Invalid relayer token",
                code=ErrorCodes.UNTRUSTED_TRANSPORT,
            )
        receiver = self._receivers.get((message.destination_chain, message.destination_address))
        if receiver is None:
            raise ValidationException(
                f"No receiver at {message.destination_address} on chain {message.destination_chain}",
                field_path="destination_address",
            )
        receiver.on_message_received(
            message.payload_bytes,
            caller=self.address,
            source_chain=message.source_chain,
            source_address=message.source_address,
            nonce=message.nonce,
        )


__all__ = ["HttpRelayTransport", "RELAYER_TOKEN_HEADER"]
