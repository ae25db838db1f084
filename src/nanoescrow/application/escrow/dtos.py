"""Data Transfer Objects for the escrow application layer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer

from ...domain.escrow.entities import PaymentChannel


class CallReceiptDTO(BaseModel):
    """DTO returned for an accepted metered call when no passthrough is set."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "method_name": "classify",
                "channel_id": "42",
                "authorized_amount": 30,
                "nonce": 6,
            }
        }
    )

    method_name: str
    channel_id: str
    authorized_amount: int
    nonce: int


class ChannelStateResponseDTO(BaseModel):
    """DTO for returning the stored state of a payment channel."""

    channel_id: str
    sender: Optional[str]
    recipient: Optional[str]
    full_amount: int
    authorized_amount: int
    remaining_amount: int
    nonce: int
    expiration: datetime

    @field_serializer("expiration")
    def serialize_expiration(self, value: datetime) -> str:
        return value.isoformat()

    @classmethod
    def from_channel(cls, channel: PaymentChannel) -> "ChannelStateResponseDTO":
        return cls(
            channel_id=channel.channel_id,
            sender=channel.sender,
            recipient=channel.recipient,
            full_amount=channel.full_amount,
            authorized_amount=channel.authorized_amount,
            remaining_amount=channel.remaining_amount,
            nonce=channel.nonce,
            expiration=channel.expiration,
        )
