"""Pure validation functions for per-call income checks.

These functions contain business logic validation rules that can be tested
in isolation without dependencies on stores, oracles or infrastructure.
Each raises IncomeValidationError carrying the status the caller must see.
"""

from __future__ import annotations

from datetime import datetime

from ....domain.errors import ErrorKind, IncomeValidationError
from ....domain.escrow.entities import IncomeRecord, PaymentChannel


def validate_income_record(record: IncomeRecord) -> None:
    """Validate the shape of an income claim. Pure function.

    Args:
        record: The income claimed by the call, with its metadata

    Raises:
        IncomeValidationError: INVALID_ARGUMENT if income is negative or
            required metadata is missing.
    """
    metadata = record.metadata
    if record.income < 0:
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT,
            f"Income cannot be negative. Got {record.income}",
        )
    if not metadata.channel_id or not metadata.channel_id.strip():
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT, "Payment channel id is missing"
        )
    if not metadata.method_name or not metadata.method_name.strip():
        raise IncomeValidationError(ErrorKind.INVALID_ARGUMENT, "Method name is missing")
    if metadata.nonce < 0:
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT,
            f"Nonce cannot be negative. Got {metadata.nonce}",
        )
    if metadata.previous_authorized_amount < 0:
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT,
            "Previous authorized amount cannot be negative. "
            f"Got {metadata.previous_authorized_amount}",
        )


def validate_income_covers_price(income: int, price: int) -> None:
    """Validate that the claimed income pays for the call. Pure function.

    Raises:
        IncomeValidationError: PERMISSION_DENIED if income is below price.
    """
    if income < price:
        raise IncomeValidationError(
            ErrorKind.PERMISSION_DENIED,
            f"Income {income} does not cover price {price}",
        )


def validate_claim_matches_channel(
    channel: PaymentChannel,
    claimed_nonce: int,
    claimed_previous_amount: int,
) -> None:
    """Validate that the caller's view of the channel is current. Pure function.

    Args:
        channel: Channel state read from the store
        claimed_nonce: Nonce the caller believes is current
        claimed_previous_amount: Authorized amount the caller believes is current

    Raises:
        IncomeValidationError: FAILED_PRECONDITION on a stale or replayed claim.
    """
    if claimed_nonce != channel.nonce:
        raise IncomeValidationError(
            ErrorKind.FAILED_PRECONDITION,
            f"Incorrect payment channel nonce. Got {claimed_nonce}, "
            f"expected {channel.nonce}",
        )
    if claimed_previous_amount != channel.authorized_amount:
        raise IncomeValidationError(
            ErrorKind.FAILED_PRECONDITION,
            f"Previous authorized amount mismatch. Got {claimed_previous_amount}, "
            f"expected {channel.authorized_amount}",
        )


def validate_channel_capacity(
    channel: PaymentChannel,
    income: int,
    now: datetime,
) -> int:
    """Validate that the channel can absorb the income. Pure function.

    Returns:
        The prospective authorized amount.

    Raises:
        IncomeValidationError: RESOURCE_EXHAUSTED if the channel is expired or
            the prospective authorized amount exceeds the deposit.
    """
    if channel.is_expired(now):
        raise IncomeValidationError(
            ErrorKind.RESOURCE_EXHAUSTED,
            f"Payment channel expired at {channel.expiration.isoformat()}",
        )
    prospective = channel.authorized_amount + income
    if prospective > channel.full_amount:
        raise IncomeValidationError(
            ErrorKind.RESOURCE_EXHAUSTED,
            f"Authorized amount {prospective} exceeds payment channel "
            f"full amount {channel.full_amount}",
        )
    return prospective
