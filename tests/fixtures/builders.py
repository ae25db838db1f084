"""Builders for channels and income records used across tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from nanoescrow.domain.escrow.entities import (
    CallMetadata,
    IncomeRecord,
    InvoiceMetadata,
    PaymentChannel,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_channel(
    channel_id: str = "42",
    *,
    full_amount: int = 100,
    authorized_amount: int = 20,
    nonce: int = 5,
    expiration: datetime = NOW + timedelta(days=1),
) -> PaymentChannel:
    """Build a channel; the defaults are the channel used by most scenarios."""
    return PaymentChannel(
        channel_id=channel_id,
        sender="0xsender",
        recipient="0xrecipient",
        full_amount=full_amount,
        authorized_amount=authorized_amount,
        nonce=nonce,
        expiration=expiration,
    )


def make_record(
    income: int = 10,
    *,
    channel_id: Optional[str] = "42",
    method_name: Optional[str] = "classify",
    nonce: int = 5,
    previous_authorized_amount: int = 20,
    invoice: Optional[InvoiceMetadata] = None,
) -> IncomeRecord:
    """Build the income record of a call against ``make_channel()``'s defaults."""
    return IncomeRecord(
        income=income,
        metadata=CallMetadata(
            method_name=method_name,
            channel_id=channel_id,
            nonce=nonce,
            previous_authorized_amount=previous_authorized_amount,
            invoice=invoice,
        ),
    )
