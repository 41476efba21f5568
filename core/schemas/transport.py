"""
Transport Schemas

Purpose: Wire payload of a cross-chain split leg and the message
envelope carried by messaging transports.

The payload encoding is canonical JSON so that every node produces the
same bytes for the same leg.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .canonical import dumps_canonical, loads_canonical
from .errors import ValidationException
from .ledger import AddressHex, Bytes32Hex, utc_now


class LegPayload(BaseModel):
    """
    Cross-chain leg: {commitment, amount, token}.

    Encoded with encode() on the source router and decoded with decode()
    by the destination router's inbound handler.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    commitment: Bytes32Hex
    amount: int = Field(..., gt=0)
    token: str = Field(..., min_length=1)

    def encode(self) -> bytes:
        return dumps_canonical(self).encode("utf-8")

    @classmethod
    def decode(cls, data: bytes) -> "LegPayload":
        """
        Parse wire bytes into a payload.

        Raises:
            ValidationException: If the bytes are not a valid leg payload
        """
        try:
            return cls.model_validate(loads_canonical(data))
        except PydanticValidationError as e:
            raise ValidationException(
                f"Malformed leg payload: {e.error_count()} error(s)",
                field_path="payload",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e


class TransportMessage(BaseModel):
    """
    Envelope of one outbound message.

    Nonces are assigned by the transport per
    (source_chain, source_address, destination_chain) path.
    """

    model_config = ConfigDict(extra="forbid")

    source_chain: int = Field(..., ge=0)
    source_address: AddressHex
    destination_chain: int = Field(..., ge=0)
    destination_address: AddressHex
    nonce: int = Field(..., ge=0)
    payload: str = Field(..., description="Payload bytes as 0x hex")
    fee: int = Field(default=0, ge=0)
    refund_address: AddressHex
    sent_at: datetime = Field(default_factory=utc_now)

    @property
    def payload_bytes(self) -> bytes:
        return bytes.fromhex(self.payload[2:])


class DeliveryFailure(BaseModel):
    """A message whose delivery raised on the destination."""

    model_config = ConfigDict(extra="forbid")

    message: TransportMessage
    error_code: str
    error_message: str
    failed_at: datetime = Field(default_factory=utc_now)
