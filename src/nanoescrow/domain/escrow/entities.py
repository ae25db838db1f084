"""Escrow domain entities: PaymentChannel, IncomeRecord and validation results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from ..errors import ErrorKind


class PaymentChannel(BaseModel):
    """Mirrored state of a payment channel as held by the channel state store."""

    channel_id: str = Field(..., min_length=1, description="Payment channel identifier")
    sender: Optional[str] = Field(None, description="Channel sender address")
    recipient: Optional[str] = Field(None, description="Channel recipient address")
    full_amount: int = Field(..., ge=0, description="Deposit")
    authorized_amount: int = Field(0, ge=0, description="Cumulative amount authorized by sender")
    nonce: int = Field(0, ge=0, description="Sequence number of the latest advance")
    expiration: datetime = Field(..., description="Channel expiration (UTC)")

    @model_validator(mode="after")
    def check_authorized_within_deposit(self) -> "PaymentChannel":
        if self.authorized_amount > self.full_amount:
            raise ValueError(
                f"Authorized amount {self.authorized_amount} exceeds "
                f"full amount {self.full_amount}"
            )
        return self

    @field_serializer("expiration")
    def serialize_expiration(self, value: datetime) -> str:
        return value.isoformat()

    @property
    def remaining_amount(self) -> int:
        return self.full_amount - self.authorized_amount

    def is_expired(self, now: datetime) -> bool:
        expiration = self.expiration
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        return expiration <= now


class CommittedChannel(BaseModel):
    """Channel facts committed on chain, as reported by the chain oracle."""

    channel_id: str = Field(..., min_length=1)
    full_amount: int = Field(..., ge=0)
    expiration: datetime
    sender: Optional[str] = None
    recipient: Optional[str] = None

    def to_payment_channel(self) -> PaymentChannel:
        """Build the initial store mirror of a freshly discovered channel."""
        return PaymentChannel(
            channel_id=self.channel_id,
            sender=self.sender,
            recipient=self.recipient,
            full_amount=self.full_amount,
            authorized_amount=0,
            nonce=0,
            expiration=self.expiration,
        )


class InvoiceMetadata(BaseModel):
    """Caller-presented invoice. Authenticity is verified upstream."""

    model_config = ConfigDict(frozen=True)

    invoice_id: str = Field(..., min_length=1)
    price: Optional[int] = Field(None, ge=0)


class CallMetadata(BaseModel):
    """Call envelope fields the income validator needs."""

    model_config = ConfigDict(frozen=True)

    method_name: Optional[str] = None
    channel_id: Optional[str] = None
    nonce: int
    previous_authorized_amount: int
    invoice: Optional[InvoiceMetadata] = None


class IncomeRecord(BaseModel):
    """Income claimed by a single call.

    ``income`` is the difference between the authorized amount signed for this
    call and the previously authorized amount. It is kept unconstrained here so
    that a negative claim reaches the validator and is rejected there with a
    proper status instead of failing model construction.
    """

    model_config = ConfigDict(frozen=True)

    income: int
    metadata: CallMetadata


class PricingResult(BaseModel):
    """Price required for a specific call."""

    model_config = ConfigDict(frozen=True)

    price: int = Field(..., ge=0)
    source: Literal["method", "invoice"]


class ValidationOutcome(BaseModel):
    """Accept/reject decision for one call."""

    model_config = ConfigDict(frozen=True)

    kind: Optional[ErrorKind] = None
    reason: str = ""
    channel: Optional[PaymentChannel] = None

    @property
    def accepted(self) -> bool:
        return self.kind is None

    @classmethod
    def accept(cls, channel: PaymentChannel) -> "ValidationOutcome":
        return cls(kind=None, reason="accepted", channel=channel)

    @classmethod
    def reject(cls, kind: ErrorKind, reason: str) -> "ValidationOutcome":
        return cls(kind=kind, reason=reason)
